"""
Survey, survey response and survey template models
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, JSON,
    ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Survey(Base):
    """Questionnaire sent to students; questions are stored as a JSON list"""
    __tablename__ = "surveys"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    questions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    responses = relationship(
        "SurveyResponse", back_populates="survey",
        cascade="all, delete-orphan", passive_deletes=True
    )


class SurveyResponse(Base):
    """A student's answers to one survey; resubmitting replaces the answers"""
    __tablename__ = "survey_responses"
    __table_args__ = (
        UniqueConstraint("survey_id", "student_id", name="uq_survey_response_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    # {"<question id>": answer}
    responses = Column(JSON, nullable=False, default=dict)
    completed_at = Column(DateTime(timezone=True), server_default=func.now())

    survey = relationship("Survey", back_populates="responses")
    student = relationship("Student", back_populates="survey_responses")


class SurveyTemplate(Base):
    __tablename__ = "survey_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    template_type = Column(String(50), nullable=False, index=True)
    questions = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
