"""
Student profile schemas
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from ..models.student import ProficiencyLevel


class SkillInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    level: ProficiencyLevel = ProficiencyLevel.BEGINNER


class SkillResponse(BaseModel):
    id: int
    skill_name: str
    proficiency_level: ProficiencyLevel

    class Config:
        from_attributes = True


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    year_grade: Optional[str] = None
    major_focus: Optional[str] = None
    short_term_goals: Optional[str] = None
    long_term_goals: Optional[str] = None
    interests: Optional[str] = None
    extracurricular: Optional[str] = None
    skills: List[SkillInput] = Field(default_factory=list)


class StudentUpdate(BaseModel):
    """Fields left out are unchanged; `skills`, when given, replaces the whole list"""
    name: Optional[str] = None
    email: Optional[str] = None
    year_grade: Optional[str] = None
    major_focus: Optional[str] = None
    short_term_goals: Optional[str] = None
    long_term_goals: Optional[str] = None
    interests: Optional[str] = None
    extracurricular: Optional[str] = None
    skills: Optional[List[SkillInput]] = None


class StudentResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    year_grade: Optional[str] = None
    major_focus: Optional[str] = None
    short_term_goals: Optional[str] = None
    long_term_goals: Optional[str] = None
    interests: Optional[str] = None
    extracurricular: Optional[str] = None
    skills: List[SkillResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudentSummary(BaseModel):
    """Row in the student list and in search/filter results"""
    id: int
    name: str
    email: Optional[str] = None
    year_grade: Optional[str] = None
    major_focus: Optional[str] = None
    interests: Optional[str] = None
    skill_names: str = ""
    skill_levels: str = ""
    skill_count: int = 0


class StudentFilters(BaseModel):
    """All criteria are optional; list criteria match any of their values"""
    skills: List[str] = Field(default_factory=list)
    skill_levels: List[ProficiencyLevel] = Field(default_factory=list)
    year_grades: List[str] = Field(default_factory=list)
    majors: List[str] = Field(default_factory=list)
    min_skills: Optional[int] = Field(None, ge=0)


class StudentFilterRequest(BaseModel):
    filters: StudentFilters = Field(default_factory=StudentFilters)
    sort_by: Optional[Literal["name", "skills_count", "recent"]] = Field(None, alias="sortBy")
    group_by: Optional[Literal["major", "year", "skills"]] = Field(None, alias="groupBy")

    class Config:
        populate_by_name = True


class FilterOption(BaseModel):
    value: str
    label: str


class FilterOptionsResponse(BaseModel):
    skills: List[FilterOption] = Field(default_factory=list)
    skill_levels: List[FilterOption] = Field(default_factory=list)
    year_grades: List[FilterOption] = Field(default_factory=list)
    majors: List[FilterOption] = Field(default_factory=list)
