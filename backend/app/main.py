from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import init_db
from .exceptions import StudentProfileError, status_code_for
from .routers import students_router, resumes_router, surveys_router, analytics_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    logger.info(f"{settings.app_name} started")
    yield
    # Shutdown
    logger.info(f"{settings.app_name} shutting down")


app = FastAPI(
    title=settings.app_name,
    description="Student profile management API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware - uses origins from environment variable
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


@app.exception_handler(StudentProfileError)
async def student_profile_error_handler(request: Request, exc: StudentProfileError):
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": exc.to_dict(),
        },
    )


# Include routers
app.include_router(students_router)
app.include_router(resumes_router)
app.include_router(surveys_router)
app.include_router(analytics_router)


@app.get("/")
async def root():
    return {"message": settings.app_name, "status": "running", "version": "1.0.0"}


@app.get("/api/health")
async def health_check():
    """Health check endpoint for load balancer"""
    return {"status": "healthy"}
