"""
Students Router - student profile CRUD, search and filtering
"""
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, and_, or_
from sqlalchemy.orm import selectinload

from ..database import get_db
from ..exceptions import NotFound
from ..models import ProficiencyLevel, Student, StudentSkill
from ..schemas.student import (
    SkillInput, StudentCreate, StudentUpdate, StudentResponse, StudentSummary,
    StudentFilterRequest, FilterOption, FilterOptionsResponse
)
from ..services.resume_parser import normalize_skill_name

router = APIRouter(prefix="/api/students", tags=["Students"])

SKILL_COUNT_GROUPS = ("High (5+ skills)", "Medium (3-4 skills)", "Low (1-2 skills)")


# ============================================================================
# Helper Functions
# ============================================================================

def dedupe_skill_inputs(skills: List[SkillInput]) -> List[SkillInput]:
    """Keep the first occurrence of each skill name, compared case-insensitively."""
    seen = set()
    unique = []
    for skill in skills:
        key = normalize_skill_name(skill.name)
        if key in seen:
            continue
        seen.add(key)
        unique.append(skill)
    return unique


async def get_student_with_skills(db: AsyncSession, student_id: int) -> Optional[Student]:
    result = await db.execute(
        select(Student)
        .options(selectinload(Student.skills))
        .where(Student.id == student_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def summarize(student: Student) -> StudentSummary:
    return StudentSummary(
        id=student.id,
        name=student.name,
        email=student.email,
        year_grade=student.year_grade,
        major_focus=student.major_focus,
        interests=student.interests,
        skill_names=", ".join(skill.skill_name for skill in student.skills),
        skill_levels=", ".join(skill.proficiency_level.value for skill in student.skills),
        skill_count=len(student.skills),
    )


def skill_count_column():
    return (
        select(func.count(StudentSkill.id))
        .where(StudentSkill.student_id == Student.id)
        .correlate(Student)
        .scalar_subquery()
    )


def group_by_field(summaries: List[StudentSummary], field: str) -> Dict[str, List[StudentSummary]]:
    grouped: Dict[str, List[StudentSummary]] = {}
    for summary in summaries:
        key = getattr(summary, field) or "Other"
        grouped.setdefault(key, []).append(summary)
    return grouped


def group_by_skill_count(summaries: List[StudentSummary]) -> Dict[str, List[StudentSummary]]:
    high, medium, low = SKILL_COUNT_GROUPS
    grouped = {label: [] for label in SKILL_COUNT_GROUPS}
    for summary in summaries:
        if summary.skill_count >= 5:
            grouped[high].append(summary)
        elif summary.skill_count >= 3:
            grouped[medium].append(summary)
        else:
            grouped[low].append(summary)
    return grouped


# ============================================================================
# Student Endpoints
# ============================================================================

@router.get("", response_model=List[StudentSummary])
async def list_students(db: AsyncSession = Depends(get_db)):
    """List students with a comma-joined skill summary"""
    result = await db.execute(
        select(Student).options(selectinload(Student.skills)).order_by(Student.id)
    )
    return [summarize(student) for student in result.scalars().all()]


@router.post("", response_model=StudentResponse, status_code=201)
async def create_student(payload: StudentCreate, db: AsyncSession = Depends(get_db)):
    """Create a student; manually entered skills default to beginner"""
    student = Student(**payload.model_dump(exclude={"skills"}))
    student.skills = [
        StudentSkill(skill_name=skill.name.strip(), proficiency_level=skill.level)
        for skill in dedupe_skill_inputs(payload.skills)
    ]
    db.add(student)
    await db.commit()

    return await get_student_with_skills(db, student.id)


# ============================================================================
# Search & Filter Endpoints
# ============================================================================

@router.get("/search", response_model=List[StudentSummary])
async def search_students(
    query: Optional[str] = None,
    skills: Optional[str] = None,
    interests: Optional[str] = None,
    goals: Optional[str] = None,
    year_grade: Optional[str] = None,
    major_focus: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Search students by free text and field filters, ordered by name.

    `query` matches name, email, goals, interests, extracurricular and skill
    names; `skills` is a comma-separated list of which any one must match.
    Text matching is case-insensitive.
    """
    stmt = select(Student).options(selectinload(Student.skills))

    if query:
        stmt = stmt.where(or_(
            Student.name.icontains(query, autoescape=True),
            Student.email.icontains(query, autoescape=True),
            Student.short_term_goals.icontains(query, autoescape=True),
            Student.long_term_goals.icontains(query, autoescape=True),
            Student.interests.icontains(query, autoescape=True),
            Student.extracurricular.icontains(query, autoescape=True),
            Student.skills.any(StudentSkill.skill_name.icontains(query, autoescape=True)),
        ))

    if skills:
        wanted = [normalize_skill_name(skill) for skill in skills.split(",") if skill.strip()]
        if wanted:
            stmt = stmt.where(Student.skills.any(func.lower(StudentSkill.skill_name).in_(wanted)))

    if interests:
        stmt = stmt.where(Student.interests.icontains(interests, autoescape=True))

    if goals:
        stmt = stmt.where(or_(
            Student.short_term_goals.icontains(goals, autoescape=True),
            Student.long_term_goals.icontains(goals, autoescape=True),
        ))

    if year_grade:
        stmt = stmt.where(Student.year_grade == year_grade)

    if major_focus:
        stmt = stmt.where(Student.major_focus.icontains(major_focus, autoescape=True))

    result = await db.execute(stmt.order_by(Student.name, Student.id))
    return [summarize(student) for student in result.scalars().all()]


@router.post("/filter")
async def filter_students(payload: StudentFilterRequest, db: AsyncSession = Depends(get_db)):
    """
    Filter students on several criteria at once.

    Returns a list, or a dict of lists when `groupBy` is major, year or skills.
    When both `skills` and `skill_levels` are given, one skill must match both.
    """
    filters = payload.filters
    skill_count = skill_count_column()
    stmt = select(Student).options(selectinload(Student.skills))

    skill_conditions = []
    if filters.skills:
        wanted = [normalize_skill_name(skill) for skill in filters.skills]
        skill_conditions.append(func.lower(StudentSkill.skill_name).in_(wanted))
    if filters.skill_levels:
        skill_conditions.append(StudentSkill.proficiency_level.in_(filters.skill_levels))
    if skill_conditions:
        stmt = stmt.where(Student.skills.any(and_(*skill_conditions)))

    if filters.year_grades:
        stmt = stmt.where(Student.year_grade.in_(filters.year_grades))

    if filters.majors:
        stmt = stmt.where(or_(*[
            Student.major_focus.icontains(major, autoescape=True) for major in filters.majors
        ]))

    if filters.min_skills:
        stmt = stmt.where(skill_count >= filters.min_skills)

    # ===== SORT =====
    if payload.sort_by == "skills_count":
        stmt = stmt.order_by(skill_count.desc(), Student.name)
    elif payload.sort_by == "recent":
        stmt = stmt.order_by(func.coalesce(Student.updated_at, Student.created_at).desc(), Student.id.desc())
    else:
        stmt = stmt.order_by(Student.name, Student.id)

    result = await db.execute(stmt)
    summaries = [summarize(student) for student in result.scalars().all()]

    # ===== GROUP =====
    if payload.group_by == "major":
        return group_by_field(summaries, "major_focus")
    if payload.group_by == "year":
        return group_by_field(summaries, "year_grade")
    if payload.group_by == "skills":
        return group_by_skill_count(summaries)
    return summaries


@router.get("/filter-options", response_model=FilterOptionsResponse)
async def get_filter_options(db: AsyncSession = Depends(get_db)):
    """Distinct values the filter UI can offer"""
    skill_names = (await db.execute(
        select(StudentSkill.skill_name).distinct().order_by(StudentSkill.skill_name)
    )).scalars().all()

    present_levels = set((await db.execute(
        select(StudentSkill.proficiency_level).distinct()
    )).scalars().all())

    year_grades = (await db.execute(
        select(Student.year_grade).where(Student.year_grade.is_not(None))
        .distinct().order_by(Student.year_grade)
    )).scalars().all()

    majors = (await db.execute(
        select(Student.major_focus).where(Student.major_focus.is_not(None))
        .distinct().order_by(Student.major_focus)
    )).scalars().all()

    return FilterOptionsResponse(
        skills=[FilterOption(value=name, label=name) for name in skill_names],
        skill_levels=[
            FilterOption(value=level.value, label=level.value)
            for level in ProficiencyLevel if level in present_levels
        ],
        year_grades=[FilterOption(value=year, label=year) for year in year_grades],
        majors=[FilterOption(value=major, label=major) for major in majors],
    )


# ============================================================================
# Single Student Endpoints
# ============================================================================

@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(student_id: int, db: AsyncSession = Depends(get_db)):
    student = await get_student_with_skills(db, student_id)
    if not student:
        raise NotFound("Student", student_id)
    return student


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db)
):
    """Update basic fields; a provided skill list replaces the existing one"""
    result = await db.execute(select(Student).where(Student.id == student_id))
    student = result.scalar_one_or_none()
    if not student:
        raise NotFound("Student", student_id)

    for field, value in payload.model_dump(exclude_unset=True, exclude={"skills"}).items():
        setattr(student, field, value)

    if payload.skills is not None:
        await db.execute(delete(StudentSkill).where(StudentSkill.student_id == student_id))
        for skill in dedupe_skill_inputs(payload.skills):
            db.add(StudentSkill(
                student_id=student_id,
                skill_name=skill.name.strip(),
                proficiency_level=skill.level
            ))

    await db.commit()
    return await get_student_with_skills(db, student_id)


@router.delete("/{student_id}")
async def delete_student(student_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a student along with skills, resume versions, survey answers and discrepancies"""
    result = await db.execute(select(Student).where(Student.id == student_id))
    student = result.scalar_one_or_none()
    if not student:
        raise NotFound("Student", student_id)

    await db.delete(student)
    await db.commit()
    return {"message": "Student deleted successfully"}
