from .resume_parser import (
    ExtractedResume,
    ExtractionConfig,
    extract_resume_data,
    normalize_skill_name
)
from .text_extractor import (
    PDF_MEDIA_TYPE,
    DOCX_MEDIA_TYPE,
    SUPPORTED_MEDIA_TYPES,
    extract_text,
    extract_text_with_timeout
)
from .version_store import (
    compute_digest,
    student_locks,
    store,
    list_versions,
    fetch_payload
)
from .reconciler import (
    Discrepancy,
    ReconciliationResult,
    reconcile
)
from .survey_profile import (
    SurveyProfileUpdate,
    map_answers_to_profile,
    apply_survey_answers
)
from .resume_pipeline import (
    IngestionResult,
    ingest_resume
)

__all__ = [
    # Field extraction
    "ExtractedResume",
    "ExtractionConfig",
    "extract_resume_data",
    "normalize_skill_name",
    # Text extraction
    "PDF_MEDIA_TYPE",
    "DOCX_MEDIA_TYPE",
    "SUPPORTED_MEDIA_TYPES",
    "extract_text",
    "extract_text_with_timeout",
    # Version store
    "compute_digest",
    "student_locks",
    "store",
    "list_versions",
    "fetch_payload",
    # Reconciliation
    "Discrepancy",
    "ReconciliationResult",
    "reconcile",
    # Surveys
    "SurveyProfileUpdate",
    "map_answers_to_profile",
    "apply_survey_answers",
    # Pipeline
    "IngestionResult",
    "ingest_resume"
]
