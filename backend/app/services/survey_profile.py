"""
Profile updates driven by survey answers.

Question ids are matched by keyword: goal/objective questions fill the goal
fields, interest questions fill interests, activity questions fill
extracurricular, and skill questions add skills at beginner level.
"""
import logging
from typing import Any, Dict, List

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import ProficiencyLevel, Student, StudentSkill
from .resume_parser import normalize_skill_name

logger = logging.getLogger(__name__)

SURVEY_SKILL_LEVEL = ProficiencyLevel.BEGINNER


class SurveyProfileUpdate(BaseModel):
    fields: Dict[str, str] = Field(default_factory=dict)
    skills: List[str] = Field(default_factory=list)


def map_answers_to_profile(responses: Dict[str, Any]) -> SurveyProfileUpdate:
    """Work out which profile fields and skills a set of answers touches."""
    update = SurveyProfileUpdate()

    for question_id, answer in responses.items():
        key = question_id.lower()

        if "goal" in key or "objective" in key:
            if "short" in key or "current" in key:
                update.fields["short_term_goals"] = str(answer)
            elif "long" in key or "career" in key:
                update.fields["long_term_goals"] = str(answer)
        elif "interest" in key:
            update.fields["interests"] = str(answer)
        elif "activity" in key or "extracurricular" in key:
            update.fields["extracurricular"] = str(answer)
        elif "skill" in key:
            answers = answer if isinstance(answer, list) else [answer]
            for skill in answers:
                name = str(skill).strip()
                if name:
                    update.skills.append(name)

    return update


async def apply_survey_answers(
    db: AsyncSession,
    student: Student,
    responses: Dict[str, Any],
) -> SurveyProfileUpdate:
    """
    Copy mapped answers onto the student. Does not commit.

    Skills the student already has keep their current level.
    """
    update = map_answers_to_profile(responses)

    for field, value in update.fields.items():
        setattr(student, field, value)

    skills_result = await db.execute(
        select(StudentSkill.skill_name).where(StudentSkill.student_id == student.id)
    )
    known = {normalize_skill_name(name) for name in skills_result.scalars().all()}

    for skill in update.skills:
        key = normalize_skill_name(skill)
        if key in known:
            continue
        db.add(StudentSkill(
            student_id=student.id,
            skill_name=skill,
            proficiency_level=SURVEY_SKILL_LEVEL,
        ))
        known.add(key)

    await db.flush()
    if update.fields or update.skills:
        logger.info(
            f"Survey answers updated student {student.id}: "
            f"fields={sorted(update.fields)}, skills={len(update.skills)}"
        )
    return update
