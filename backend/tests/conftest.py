"""
Pytest configuration and shared fixtures for all tests.

Every test gets its own SQLite database file under tmp_path, so tests never
share state and never touch the development database.
"""
import io

import fitz  # PyMuPDF
import pytest
import pytest_asyncio
from docx import Document
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings, get_settings
from app.database import build_engine, get_db, init_db
from app.main import app
from app.models import ProficiencyLevel, Student, StudentSkill


# ============================================================================
# Document builders
# ============================================================================

def make_pdf(*pages: str, encrypt: bool = False) -> bytes:
    """Build a real PDF with one page per text argument."""
    document = fitz.open()
    for text in pages:
        page = document.new_page()
        page.insert_text((72, 72), text, fontsize=10)
    if encrypt:
        data = document.tobytes(
            encryption=fitz.PDF_ENCRYPT_AES_256,
            owner_pw="owner-secret",
            user_pw="user-secret",
        )
    else:
        data = document.tobytes()
    document.close()
    return data


def make_docx(*paragraphs: str) -> bytes:
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


# ============================================================================
# Database fixtures
# ============================================================================

@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        extraction_timeout_seconds=10.0,
    )


@pytest_asyncio.fixture
async def engine(test_settings):
    engine = build_engine(test_settings.database_url)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def student(session_maker):
    """Student with stored email a@x.com and skill Python (advanced)."""
    async with session_maker() as session:
        record = Student(name="Ada Student", email="a@x.com")
        record.skills = [
            StudentSkill(skill_name="Python", proficiency_level=ProficiencyLevel.ADVANCED)
        ]
        session.add(record)
        await session.commit()
        return record.id


# ============================================================================
# HTTP client
# ============================================================================

@pytest_asyncio.fixture
async def client(session_maker, test_settings):
    """AsyncClient against the app with database and settings overridden."""
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()
