"""
Student profile models
"""
from sqlalchemy import (
    Column, Integer, String, Text, DateTime,
    ForeignKey, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
import enum


class ProficiencyLevel(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Student(Base):
    """Authoritative student record"""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    year_grade = Column(String(50), nullable=True)
    major_focus = Column(String(200), nullable=True)
    short_term_goals = Column(Text, nullable=True)
    long_term_goals = Column(Text, nullable=True)
    interests = Column(Text, nullable=True)
    extracurricular = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    skills = relationship(
        "StudentSkill", back_populates="student",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="StudentSkill.id"
    )
    resumes = relationship(
        "UploadedFile", back_populates="student",
        cascade="all, delete-orphan", passive_deletes=True
    )
    discrepancy = relationship(
        "ResumeDiscrepancy", back_populates="student", uselist=False,
        cascade="all, delete-orphan", passive_deletes=True
    )
    survey_responses = relationship(
        "SurveyResponse", back_populates="student",
        cascade="all, delete-orphan", passive_deletes=True
    )


class StudentSkill(Base):
    """One skill row per student; name keeps the casing it was added with"""
    __tablename__ = "student_skills"
    __table_args__ = (
        UniqueConstraint("student_id", "skill_name", name="uq_student_skill_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_name = Column(String(100), nullable=False)
    proficiency_level = Column(SQLEnum(ProficiencyLevel), default=ProficiencyLevel.BEGINNER, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    student = relationship("Student", back_populates="skills")
