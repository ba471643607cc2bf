from .student import Student, StudentSkill, ProficiencyLevel
from .resume import UploadedFile, ResumeDiscrepancy
from .survey import Survey, SurveyResponse, SurveyTemplate

__all__ = [
    # Student models
    "Student", "StudentSkill", "ProficiencyLevel",
    # Resume models
    "UploadedFile", "ResumeDiscrepancy",
    # Survey models
    "Survey", "SurveyResponse", "SurveyTemplate",
]
