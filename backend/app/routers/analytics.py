"""
Analytics Router - class-wide skill, goal and survey statistics for the dashboard
"""
import math
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import Date, select, func, case

from ..database import get_db
from ..exceptions import NotFound
from ..models import (
    ProficiencyLevel, ResumeDiscrepancy, Student, StudentSkill,
    Survey, SurveyResponse, UploadedFile
)

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])

TOP_SKILLS_LIMIT = 15
SKILL_DISTRIBUTION_LIMIT = 20
TOP_TEXT_LIMIT = 10
TREND_DAYS = 30


def _level_count(level: ProficiencyLevel):
    return func.sum(case((StudentSkill.proficiency_level == level, 1), else_=0))


def _not_blank(column):
    return func.coalesce(column, "") != ""


def round_half_up(value) -> int:
    return math.floor(float(value or 0) + 0.5)


def trend_cutoff():
    """First calendar day (UTC) inside the trend window."""
    return (datetime.now(timezone.utc) - timedelta(days=TREND_DAYS)).date()


@router.get("/overview")
async def get_overview(db: AsyncSession = Depends(get_db)):
    """Headline numbers for the dashboard"""
    total_students = (await db.execute(select(func.count(Student.id)))).scalar() or 0
    total_skills = (await db.execute(
        select(func.count(func.distinct(func.lower(StudentSkill.skill_name))))
    )).scalar() or 0

    per_student = (
        select(func.count(StudentSkill.id).label("skill_count"))
        .group_by(StudentSkill.student_id)
        .subquery()
    )
    avg_skills = (await db.execute(select(func.avg(per_student.c.skill_count)))).scalar()

    # ===== SKILL DISTRIBUTION =====
    skill_key = func.lower(StudentSkill.skill_name)
    level_rows = await db.execute(
        select(skill_key, StudentSkill.proficiency_level, func.count(StudentSkill.id))
        .group_by(skill_key, StudentSkill.proficiency_level)
    )
    distribution = {}
    for skill_name, level, count in level_rows.all():
        entry = distribution.setdefault(skill_name, {"skill_name": skill_name, "student_count": 0, "levels": []})
        entry["student_count"] += count
        entry["levels"].append(level.value)
    skill_distribution = sorted(
        distribution.values(), key=lambda entry: (-entry["student_count"], entry["skill_name"])
    )[:SKILL_DISTRIBUTION_LIMIT]
    for entry in skill_distribution:
        entry["levels"] = [level.value for level in ProficiencyLevel if level.value in entry["levels"]]

    goal_stats = (await db.execute(
        select(
            func.sum(case((_not_blank(Student.short_term_goals), 1), else_=0)),
            func.sum(case((_not_blank(Student.long_term_goals), 1), else_=0)),
        )
    )).one()

    # ===== INTERESTS =====
    interest_count = func.count(Student.id)
    interest_rows = await db.execute(
        select(Student.interests, interest_count)
        .where(_not_blank(Student.interests))
        .group_by(Student.interests)
        .order_by(interest_count.desc(), Student.interests)
        .limit(TOP_TEXT_LIMIT)
    )

    # ===== SURVEYS =====
    response_count = func.count(SurveyResponse.id)
    survey_rows = await db.execute(
        select(Survey.id, Survey.title, Survey.is_active, response_count)
        .outerjoin(SurveyResponse, SurveyResponse.survey_id == Survey.id)
        .group_by(Survey.id, Survey.title, Survey.is_active)
        .order_by(response_count.desc(), Survey.id)
    )

    open_discrepancies = (await db.execute(select(func.count(ResumeDiscrepancy.id)))).scalar() or 0

    return {
        "overview": {
            "total_students": total_students,
            "total_skills": total_skills,
            "avg_skills_per_student": round_half_up(avg_skills),
        },
        "skill_distribution": skill_distribution,
        "goal_stats": {
            "students_with_short_goals": int(goal_stats[0] or 0),
            "students_with_long_goals": int(goal_stats[1] or 0),
        },
        "interest_stats": [
            {"interests": interests, "count": count} for interests, count in interest_rows.all()
        ],
        "survey_stats": [
            {"id": survey_id, "title": title, "is_active": is_active, "responses": responses}
            for survey_id, title, is_active, responses in survey_rows.all()
        ],
        "open_discrepancy_records": open_discrepancies,
    }


@router.get("/skills")
async def get_skill_analytics(db: AsyncSession = Depends(get_db)):
    """Skill counts by proficiency level, the most common skills and recent additions"""
    level_rows = await db.execute(
        select(StudentSkill.proficiency_level, func.count(StudentSkill.id))
        .group_by(StudentSkill.proficiency_level)
    )
    skills_by_level = {level.value: 0 for level in ProficiencyLevel}
    for level, count in level_rows.all():
        skills_by_level[level.value] = count

    skill_key = func.lower(StudentSkill.skill_name)
    student_count = func.count(func.distinct(StudentSkill.student_id))
    top_rows = await db.execute(
        select(
            skill_key.label("skill_name"),
            student_count.label("student_count"),
            _level_count(ProficiencyLevel.BEGINNER).label("beginner_count"),
            _level_count(ProficiencyLevel.INTERMEDIATE).label("intermediate_count"),
            _level_count(ProficiencyLevel.ADVANCED).label("advanced_count"),
        )
        .group_by(skill_key)
        .order_by(student_count.desc(), skill_key)
        .limit(TOP_SKILLS_LIMIT)
    )

    top_skills = [
        {
            "skill_name": row.skill_name,
            "student_count": row.student_count,
            "beginner_count": int(row.beginner_count or 0),
            "intermediate_count": int(row.intermediate_count or 0),
            "advanced_count": int(row.advanced_count or 0),
        }
        for row in top_rows.all()
    ]

    # ===== TRENDS (LAST 30 DAYS) =====
    added_on = func.date(StudentSkill.created_at, type_=Date)
    trend_rows = await db.execute(
        select(added_on.label("date"), func.count(StudentSkill.id).label("skills_added"))
        .where(added_on >= trend_cutoff())
        .group_by(added_on)
        .order_by(added_on)
    )
    skill_trends = [
        {"date": str(row.date), "skills_added": row.skills_added} for row in trend_rows.all()
    ]

    return {"skills_by_level": skills_by_level, "top_skills": top_skills, "skill_trends": skill_trends}


@router.get("/students/{student_id}")
async def get_student_analytics(student_id: int, db: AsyncSession = Depends(get_db)):
    """One student's skills, resume history, survey activity and goals"""
    result = await db.execute(select(Student).where(Student.id == student_id))
    student = result.scalar_one_or_none()
    if not student:
        raise NotFound("Student", student_id)

    total_skills = (await db.execute(
        select(func.count(func.distinct(func.lower(StudentSkill.skill_name))))
        .where(StudentSkill.student_id == student_id)
    )).scalar() or 0
    resume_versions = (await db.execute(
        select(func.count(UploadedFile.id)).where(UploadedFile.student_id == student_id)
    )).scalar() or 0
    surveys_completed = (await db.execute(
        select(func.count(func.distinct(SurveyResponse.survey_id)))
        .where(SurveyResponse.student_id == student_id)
    )).scalar() or 0

    skill_rows = await db.execute(
        select(StudentSkill)
        .where(StudentSkill.student_id == student_id)
        .order_by(StudentSkill.created_at.desc(), StudentSkill.id.desc())
    )
    survey_rows = await db.execute(
        select(Survey.title, SurveyResponse.completed_at)
        .join(Survey, SurveyResponse.survey_id == Survey.id)
        .where(SurveyResponse.student_id == student_id)
        .order_by(SurveyResponse.completed_at.desc(), SurveyResponse.id.desc())
    )

    return {
        "student": {
            "id": student.id,
            "name": student.name,
            "email": student.email,
            "year_grade": student.year_grade,
            "major_focus": student.major_focus,
            "interests": student.interests,
            "total_skills": total_skills,
            "resume_versions": resume_versions,
            "surveys_completed": surveys_completed,
        },
        "skills_breakdown": [
            {
                "skill_name": skill.skill_name,
                "proficiency_level": skill.proficiency_level.value,
                "created_at": skill.created_at,
            }
            for skill in skill_rows.scalars().all()
        ],
        "survey_responses": [
            {"title": title, "completed_at": completed_at} for title, completed_at in survey_rows.all()
        ],
        "goal_progress": {
            "short_term_goals": student.short_term_goals,
            "long_term_goals": student.long_term_goals,
            "updated_at": student.updated_at,
        },
    }


@router.get("/goals")
async def get_goal_analytics(db: AsyncSession = Depends(get_db)):
    """Most common goals and recent goal-bearing profile updates"""

    async def top_goals(column):
        goal_count = func.count(Student.id)
        rows = await db.execute(
            select(column, goal_count)
            .where(_not_blank(column))
            .group_by(column)
            .order_by(goal_count.desc(), column)
            .limit(TOP_TEXT_LIMIT)
        )
        return [{"goal": goal, "count": count} for goal, count in rows.all()]

    updated_on = func.date(Student.updated_at, type_=Date)
    update_rows = await db.execute(
        select(updated_on.label("date"), func.count(Student.id).label("updates"))
        .where(
            Student.updated_at.is_not(None),
            updated_on >= trend_cutoff(),
            (Student.short_term_goals.is_not(None)) | (Student.long_term_goals.is_not(None)),
        )
        .group_by(updated_on)
        .order_by(updated_on)
    )

    return {
        "short_term_goals": await top_goals(Student.short_term_goals),
        "long_term_goals": await top_goals(Student.long_term_goals),
        "goal_updates": [
            {"date": str(row.date), "updates": row.updates} for row in update_rows.all()
        ],
    }
