from pydantic_settings import BaseSettings
from functools import lru_cache
import os


class Settings(BaseSettings):
    app_name: str = "Student Profiles API"
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = "INFO"

    # Database - supports both SQLite (local) and PostgreSQL (production)
    database_url: str = "sqlite+aiosqlite:///./student_profiles.db"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Resume uploads
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB
    extraction_timeout_seconds: float = 20.0

    # When true, an ingestion that finds no discrepancies deletes the
    # previous discrepancy record instead of leaving it in place
    clear_stale_discrepancies: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"
        # Make field names case-insensitive for environment variables
        case_sensitive = False

    def get_cors_origins(self) -> list:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
