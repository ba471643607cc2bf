"""
Resumes Router - upload with parsing, version history, download and discrepancies
"""
import logging
from typing import List
from urllib.parse import quote
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ..config import Settings, get_settings
from ..database import get_db
from ..exceptions import NotFound, PayloadTooLarge
from ..models import ResumeDiscrepancy
from ..schemas.resume import DiscrepancyResponse, ResumeUploadResponse, ResumeVersionResponse
from ..services import version_store
from ..services.resume_pipeline import ingest_resume
from ..services.text_extractor import ensure_supported

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Resumes"])


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the RFC 5987 UTF-8 name."""
    fallback = "".join(
        char if char.isascii() and char.isprintable() and char not in '"\\' else "_"
        for char in filename
    ) or "resume"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


@router.post("/students/{student_id}/resume", response_model=ResumeUploadResponse)
async def upload_resume(
    student_id: int,
    resume: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Upload a resume version, then parse it and merge findings into the profile.

    The file is always stored once it passes type/size checks; parsing is
    best effort and reported through `parsed` / `reconciled`.
    """
    # ===== VALIDATE FILE =====
    ensure_supported(resume.content_type)

    if resume.size is not None and resume.size > settings.max_upload_bytes:
        raise PayloadTooLarge(resume.size, settings.max_upload_bytes)

    payload = await resume.read()
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded"
        )
    if len(payload) > settings.max_upload_bytes:
        raise PayloadTooLarge(len(payload), settings.max_upload_bytes)

    # ===== STORE + PARSE =====
    result = await ingest_resume(
        db,
        student_id=student_id,
        filename=resume.filename or "resume",
        media_type=resume.content_type,
        payload=payload,
        settings=settings,
    )

    return ResumeUploadResponse(
        id=result.artifact_id,
        version=result.version,
        filename=result.filename,
        content_hash=result.content_hash,
        parsed=result.parsed,
        reconciled=result.reconciled,
        extracted_data=result.extracted_data,
    )


@router.get("/students/{student_id}/resumes", response_model=List[ResumeVersionResponse])
async def list_resume_versions(student_id: int, db: AsyncSession = Depends(get_db)):
    """All stored versions for a student, newest first"""
    return await version_store.list_versions(db, student_id)


@router.get("/resumes/{artifact_id}/download")
async def download_resume(artifact_id: int, db: AsyncSession = Depends(get_db)):
    """Download one stored resume version"""
    artifact = await version_store.fetch_payload(db, artifact_id)
    return Response(
        content=artifact.file_data,
        media_type=artifact.file_type,
        headers={"Content-Disposition": content_disposition(artifact.file_name)}
    )


@router.get("/students/{student_id}/discrepancies", response_model=DiscrepancyResponse)
async def get_discrepancies(student_id: int, db: AsyncSession = Depends(get_db)):
    """Latest resume discrepancies awaiting review"""
    result = await db.execute(
        select(ResumeDiscrepancy).where(ResumeDiscrepancy.student_id == student_id)
    )
    record = result.scalar_one_or_none()
    if not record:
        raise NotFound("Discrepancy record for student", student_id)
    return record
