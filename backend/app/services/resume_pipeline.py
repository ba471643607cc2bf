"""
Resume ingestion: store the upload, then reconcile what could be parsed from it.

The artifact write always happens. Text and field extraction run first, before
any database work, so the write transaction stays short; a parse failure only
means there is nothing to reconcile. Reconciliation writes live in a savepoint
inside the same transaction as the artifact, so a failure discards only them
and one commit makes the whole upload visible.
"""
import logging
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..exceptions import ParseFailure, ReconciliationFailure
from . import version_store
from .reconciler import ReconciliationResult, reconcile
from .resume_parser import DEFAULT_CONFIG, ExtractedResume, ExtractionConfig, extract_resume_data
from .text_extractor import ensure_supported, extract_text_with_timeout

logger = logging.getLogger(__name__)


class IngestionResult(BaseModel):
    artifact_id: int
    version: int
    filename: str
    content_hash: str
    parsed: bool
    reconciled: bool = False
    extracted_data: Optional[ExtractedResume] = None
    reconciliation: Optional[ReconciliationResult] = None


async def ingest_resume(
    db: AsyncSession,
    student_id: int,
    filename: str,
    media_type: str,
    payload: bytes,
    settings: Optional[Settings] = None,
    config: ExtractionConfig = DEFAULT_CONFIG,
) -> IngestionResult:
    """
    Store a resume version and merge what can be parsed from it. Commits.

    Raises UnsupportedFormat before anything is written and NotFound when the
    student does not exist. ParseFailure and ReconciliationFailure are logged
    and reported through `parsed` and `reconciled` on the result.
    """
    settings = settings or get_settings()
    ensure_supported(media_type)

    # ===== PARSE (NO DATABASE WORK) =====
    extracted = None
    try:
        text = await extract_text_with_timeout(
            payload, media_type, settings.extraction_timeout_seconds
        )
        extracted = extract_resume_data(text, config)
    except ParseFailure as e:
        logger.warning(f"Resume parsing failed for student {student_id} ({filename}): {e.message}")

    async with version_store.student_locks.hold(student_id):
        # ===== STORE ARTIFACT (MUST SUCCEED) =====
        artifact = await version_store.store(db, student_id, filename, media_type, payload)
        stored = {
            "artifact_id": artifact.id,
            "version": artifact.version,
            "filename": artifact.file_name,
            "content_hash": artifact.file_hash,
        }

        # ===== RECONCILE (BEST EFFORT) =====
        reconciliation = None
        if extracted is not None:
            try:
                reconciliation = await _reconcile_in_savepoint(
                    db, student_id, extracted, settings.clear_stale_discrepancies
                )
            except ReconciliationFailure as e:
                logger.error(
                    f"Resume reconciliation failed for student {student_id}: {e.message}",
                    exc_info=e.cause or e,
                )

        ingestion = IngestionResult(
            **stored,
            parsed=extracted is not None,
            reconciled=reconciliation is not None,
            extracted_data=extracted,
            reconciliation=reconciliation,
        )
        await db.commit()

    return ingestion


async def _reconcile_in_savepoint(
    db: AsyncSession,
    student_id: int,
    extracted: ExtractedResume,
    clear_stale: bool,
) -> ReconciliationResult:
    try:
        async with db.begin_nested():
            return await reconcile(db, student_id, extracted, clear_stale=clear_stale)
    except ReconciliationFailure:
        raise
    except Exception as e:
        raise ReconciliationFailure(
            f"Could not reconcile resume data: {e}", student_id=student_id, cause=e
        ) from e
