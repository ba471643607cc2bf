"""
Resume artifact and discrepancy models.
"""
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, DateTime, LargeBinary, JSON,
    ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from ..database import Base


class UploadedFile(Base):
    """
    One immutable uploaded resume version.
    Rows are append-only: versions per student run 1, 2, 3... and are never reused.
    """
    __tablename__ = "uploaded_files"
    __table_args__ = (
        UniqueConstraint("student_id", "version", name="uq_uploaded_file_version"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    file_name = Column(String(255), nullable=False)
    file_type = Column(String(120), nullable=False)
    file_size = Column(Integer, nullable=False)
    file_data = Column(LargeBinary, nullable=False)
    file_hash = Column(String(64), nullable=False)  # sha256 hex digest
    version = Column(Integer, nullable=False)

    upload_date = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    student = relationship("Student", back_populates="resumes")


class ResumeDiscrepancy(Base):
    """
    Latest mismatches between a student's profile and their most recent resume.
    At most one row per student; each ingestion replaces the whole list.
    """
    __tablename__ = "resume_discrepancies"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), unique=True, nullable=False)

    # [{"field": ..., "profile_value": ..., "resume_value": ...}]
    discrepancies = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=True)

    student = relationship("Student", back_populates="discrepancy")
