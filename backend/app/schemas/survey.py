"""
Survey, survey response and survey template schemas
"""
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field
from datetime import datetime


QuestionType = Literal["text", "multiple_choice", "checkboxes", "rating"]


class SurveyQuestion(BaseModel):
    id: Union[int, str]
    text: str = Field(..., min_length=1)
    type: QuestionType
    options: Optional[List[str]] = None


class SurveyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    questions: List[SurveyQuestion] = Field(..., min_length=1)


class SurveyUpdate(BaseModel):
    """Fields left out are unchanged"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    questions: Optional[List[SurveyQuestion]] = Field(None, min_length=1)
    is_active: Optional[bool] = None


class SurveyResponseModel(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    questions: List[SurveyQuestion] = Field(default_factory=list)
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SurveySummary(SurveyResponseModel):
    """Row in the survey list"""
    total_responses: int = 0
    unique_responses: int = 0


class SurveyAnswersCreate(BaseModel):
    student_id: int
    # Keys are question ids; ids mentioning goals, interests, activities or
    # skills also update the student's profile
    responses: Dict[str, Any]


class SurveyAnswersResponse(BaseModel):
    id: int
    survey_id: int
    student_id: int
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    responses: Dict[str, Any]
    completed_at: Optional[datetime] = None


class SurveyTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    template_type: str = Field(..., min_length=1, max_length=50)
    questions: List[SurveyQuestion] = Field(..., min_length=1)


class SurveyTemplateResponse(BaseModel):
    id: int
    name: str
    template_type: str
    questions: List[SurveyQuestion] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
