"""
Profile reconciliation: merge resume-extracted data into a student's profile.

Skills are only ever added. Conflicts (different email, profile skills the
resume does not mention) are recorded in the student's single discrepancy
record for human review instead of being resolved automatically.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ReconciliationFailure
from ..models import ProficiencyLevel, ResumeDiscrepancy, Student, StudentSkill
from .resume_parser import ExtractedResume, normalize_skill_name

logger = logging.getLogger(__name__)

RESUME_SKILL_LEVEL = ProficiencyLevel.INTERMEDIATE
SKILL_NOT_IN_RESUME = "not found in resume"


class Discrepancy(BaseModel):
    field: str
    profile_value: Optional[str] = None
    resume_value: Optional[str] = None


class ReconciliationResult(BaseModel):
    added_skills: List[str] = Field(default_factory=list)
    discrepancies: List[Discrepancy] = Field(default_factory=list)
    discrepancy_record_written: bool = False
    discrepancy_record_cleared: bool = False


def find_discrepancies(
    profile_email: Optional[str],
    profile_skills: List[str],
    extracted: ExtractedResume,
) -> List[Discrepancy]:
    """
    Compare a profile snapshot with extracted resume data.

    profile_skills is the pre-merge skill list; comparison is case-insensitive.
    """
    discrepancies: List[Discrepancy] = []

    resume_email = extracted.contact.email
    if resume_email and profile_email != resume_email:
        discrepancies.append(Discrepancy(
            field="email",
            profile_value=profile_email,
            resume_value=resume_email,
        ))

    resume_skills = {normalize_skill_name(skill) for skill in extracted.skills}
    for skill in profile_skills:
        if normalize_skill_name(skill) not in resume_skills:
            discrepancies.append(Discrepancy(
                field="skills",
                profile_value=normalize_skill_name(skill),
                resume_value=SKILL_NOT_IN_RESUME,
            ))

    return discrepancies


async def upsert_discrepancies(
    db: AsyncSession,
    student_id: int,
    discrepancies: List[Discrepancy],
) -> ResumeDiscrepancy:
    """Replace the student's discrepancy list wholesale, creating the record if needed."""
    payload = [d.model_dump() for d in discrepancies]
    now = datetime.now(timezone.utc)

    result = await db.execute(
        select(ResumeDiscrepancy).where(ResumeDiscrepancy.student_id == student_id)
    )
    record = result.scalar_one_or_none()

    if record is None:
        record = ResumeDiscrepancy(student_id=student_id, discrepancies=payload, created_at=now)
        db.add(record)
    else:
        record.discrepancies = payload
        record.updated_at = now

    await db.flush()
    return record


async def clear_discrepancies(db: AsyncSession, student_id: int) -> bool:
    result = await db.execute(
        select(ResumeDiscrepancy).where(ResumeDiscrepancy.student_id == student_id)
    )
    record = result.scalar_one_or_none()
    if record is None:
        return False
    await db.delete(record)
    await db.flush()
    return True


async def reconcile(
    db: AsyncSession,
    student_id: int,
    extracted: ExtractedResume,
    clear_stale: bool = False,
) -> ReconciliationResult:
    """
    Merge extracted skills into the profile and record discrepancies. Does not commit.

    With clear_stale, an ingestion that finds nothing to report removes the
    previous discrepancy record; otherwise that record is left untouched.
    """
    student_result = await db.execute(select(Student).where(Student.id == student_id))
    student = student_result.scalar_one_or_none()
    if student is None:
        raise ReconciliationFailure(f"Student {student_id} not found", student_id=student_id)

    skills_result = await db.execute(
        select(StudentSkill.skill_name)
        .where(StudentSkill.student_id == student_id)
        .order_by(StudentSkill.id)
    )
    profile_skills = list(skills_result.scalars().all())
    known = {normalize_skill_name(name) for name in profile_skills}

    result = ReconciliationResult()

    # Additive merge
    for skill in extracted.skills:
        key = normalize_skill_name(skill)
        if key in known:
            continue
        db.add(StudentSkill(
            student_id=student_id,
            skill_name=skill,
            proficiency_level=RESUME_SKILL_LEVEL,
        ))
        known.add(key)
        result.added_skills.append(skill)
    await db.flush()

    result.discrepancies = find_discrepancies(student.email, profile_skills, extracted)

    if result.discrepancies:
        await upsert_discrepancies(db, student_id, result.discrepancies)
        result.discrepancy_record_written = True
        logger.info(f"Recorded {len(result.discrepancies)} resume discrepancies for student {student_id}")
    elif clear_stale:
        result.discrepancy_record_cleared = await clear_discrepancies(db, student_id)

    return result
