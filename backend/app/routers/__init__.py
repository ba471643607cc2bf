from .students import router as students_router
from .resumes import router as resumes_router
from .surveys import router as surveys_router
from .analytics import router as analytics_router

__all__ = [
    "students_router", "resumes_router", "surveys_router", "analytics_router"
]
