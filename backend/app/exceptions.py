"""
Domain exceptions for resume ingestion and student profiles.
"""
from typing import Any, Dict, Optional


class StudentProfileError(Exception):
    """Base exception for the student profile service"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class UnsupportedFormat(StudentProfileError):
    """Raised when a document's media type is neither PDF nor DOCX"""

    def __init__(self, media_type: Optional[str], **kwargs):
        super().__init__(
            f"Unsupported document type: {media_type or 'unknown'}. Only PDF and DOCX files are allowed",
            error_code="UNSUPPORTED_FORMAT",
            details={"media_type": media_type},
            **kwargs,
        )


class ParseFailure(StudentProfileError):
    """Raised when text cannot be extracted from a document"""

    def __init__(self, message: str, media_type: Optional[str] = None, **kwargs):
        details = {"media_type": media_type} if media_type else {}
        super().__init__(message, error_code="PARSE_FAILURE", details=details, **kwargs)


class ReconciliationFailure(StudentProfileError):
    """Raised when merging extracted resume data into a profile fails"""

    def __init__(self, message: str, student_id: Optional[int] = None, **kwargs):
        details = {"student_id": student_id} if student_id is not None else {}
        super().__init__(message, error_code="RECONCILIATION_FAILURE", details=details, **kwargs)


class VersionConflict(StudentProfileError):
    """Raised when two artifacts for one student end up with the same version"""

    def __init__(self, student_id: int, version: int, **kwargs):
        super().__init__(
            f"Version {version} already exists for student {student_id}",
            error_code="VERSION_CONFLICT",
            details={"student_id": student_id, "version": version},
            **kwargs,
        )


class NotFound(StudentProfileError):
    """Raised when a requested record does not exist"""

    def __init__(self, resource: str, identifier: Any, **kwargs):
        super().__init__(
            f"{resource} {identifier} not found",
            error_code="NOT_FOUND",
            details={"resource": resource, "id": identifier},
            **kwargs,
        )


class PayloadTooLarge(StudentProfileError):
    """Raised when an upload exceeds the configured size limit"""

    def __init__(self, size: int, limit: int, **kwargs):
        super().__init__(
            f"File size must be less than {limit // (1024 * 1024)}MB",
            error_code="PAYLOAD_TOO_LARGE",
            details={"size": size, "limit": limit},
            **kwargs,
        )


def status_code_for(exc: StudentProfileError) -> int:
    """Map domain exceptions to HTTP status codes"""
    status_code_mapping = {
        UnsupportedFormat: 415,
        ParseFailure: 422,
        ReconciliationFailure: 500,
        VersionConflict: 409,
        NotFound: 404,
        PayloadTooLarge: 413,
    }
    return status_code_mapping.get(type(exc), 500)
