"""
Resume upload, version history and discrepancy schemas
"""
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from ..services.reconciler import Discrepancy
from ..services.resume_parser import ExtractedResume


class ResumeVersionResponse(BaseModel):
    id: int
    file_name: str
    file_type: str
    file_size: int
    file_hash: str
    version: int
    upload_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class ResumeUploadResponse(BaseModel):
    id: int
    message: str = "Resume uploaded successfully"
    version: int
    filename: str
    content_hash: str
    parsed: bool
    reconciled: bool
    extracted_data: Optional[ExtractedResume] = None


class DiscrepancyResponse(BaseModel):
    student_id: int
    discrepancies: List[Discrepancy] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
