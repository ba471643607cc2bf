"""
Surveys Router - survey authoring, response collection and templates
"""
import logging
from datetime import datetime, timezone
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from ..database import get_db
from ..exceptions import NotFound
from ..models import Student, Survey, SurveyResponse, SurveyTemplate
from ..schemas.survey import (
    SurveyCreate, SurveyUpdate, SurveyResponseModel, SurveySummary,
    SurveyAnswersCreate, SurveyAnswersResponse,
    SurveyTemplateCreate, SurveyTemplateResponse
)
from ..services.survey_profile import apply_survey_answers
from ..services.version_store import student_locks

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Surveys"])


async def get_survey_or_404(db: AsyncSession, survey_id: int) -> Survey:
    result = await db.execute(select(Survey).where(Survey.id == survey_id))
    survey = result.scalar_one_or_none()
    if not survey:
        raise NotFound("Survey", survey_id)
    return survey


# ============================================================================
# Survey Endpoints
# ============================================================================

@router.get("/surveys", response_model=List[SurveySummary])
async def list_surveys(db: AsyncSession = Depends(get_db)):
    """Surveys with response counts, newest first"""
    result = await db.execute(
        select(
            Survey,
            func.count(SurveyResponse.id).label("total_responses"),
            func.count(func.distinct(SurveyResponse.student_id)).label("unique_responses"),
        )
        .outerjoin(SurveyResponse, SurveyResponse.survey_id == Survey.id)
        .group_by(Survey.id)
        .order_by(Survey.id.desc())
    )

    return [
        SurveySummary(
            **SurveyResponseModel.model_validate(survey).model_dump(),
            total_responses=total,
            unique_responses=unique,
        )
        for survey, total, unique in result.all()
    ]


@router.post("/surveys", status_code=201)
async def create_survey(payload: SurveyCreate, db: AsyncSession = Depends(get_db)):
    if not payload.title.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Survey title is required"
        )

    survey = Survey(
        title=payload.title.strip(),
        description=payload.description,
        questions=[question.model_dump() for question in payload.questions],
    )
    db.add(survey)
    await db.commit()

    logger.info(f"Created survey {survey.id} with {len(payload.questions)} questions")
    return {"id": survey.id, "message": "Survey created successfully"}


@router.get("/surveys/{survey_id}", response_model=SurveyResponseModel)
async def get_survey(survey_id: int, db: AsyncSession = Depends(get_db)):
    return await get_survey_or_404(db, survey_id)


@router.put("/surveys/{survey_id}", response_model=SurveyResponseModel)
async def update_survey(
    survey_id: int,
    payload: SurveyUpdate,
    db: AsyncSession = Depends(get_db)
):
    survey = await get_survey_or_404(db, survey_id)

    updates = payload.model_dump(exclude_unset=True, exclude={"questions"})
    for field, value in updates.items():
        setattr(survey, field, value)
    if payload.questions is not None:
        survey.questions = [question.model_dump() for question in payload.questions]

    await db.commit()
    return survey


# ============================================================================
# Survey Responses
# ============================================================================

@router.post("/surveys/{survey_id}/responses")
async def submit_survey_response(
    survey_id: int,
    payload: SurveyAnswersCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Save a student's answers and copy mapped answers onto their profile.

    A second submission for the same survey replaces the earlier answers.
    """
    # No database work before the student lock is held
    async with student_locks.hold(payload.student_id):
        await get_survey_or_404(db, survey_id)

        student_result = await db.execute(select(Student).where(Student.id == payload.student_id))
        student = student_result.scalar_one_or_none()
        if not student:
            raise NotFound("Student", payload.student_id)

        existing = await db.execute(
            select(SurveyResponse).where(
                SurveyResponse.survey_id == survey_id,
                SurveyResponse.student_id == payload.student_id
            )
        )
        response = existing.scalar_one_or_none()
        if response is None:
            response = SurveyResponse(
                survey_id=survey_id,
                student_id=payload.student_id,
                responses=payload.responses,
            )
            db.add(response)
        else:
            response.responses = payload.responses
            response.completed_at = datetime.now(timezone.utc)

        update = await apply_survey_answers(db, student, payload.responses)
        await db.commit()

    return {
        "message": "Survey response saved successfully",
        "updated_fields": sorted(update.fields),
        "skills": update.skills,
    }


@router.get("/surveys/{survey_id}/responses", response_model=List[SurveyAnswersResponse])
async def list_survey_responses(survey_id: int, db: AsyncSession = Depends(get_db)):
    """All responses to a survey with the responding student, latest first"""
    await get_survey_or_404(db, survey_id)

    result = await db.execute(
        select(SurveyResponse, Student.name, Student.email)
        .join(Student, SurveyResponse.student_id == Student.id)
        .where(SurveyResponse.survey_id == survey_id)
        .order_by(SurveyResponse.completed_at.desc(), SurveyResponse.id.desc())
    )

    return [
        SurveyAnswersResponse(
            id=response.id,
            survey_id=response.survey_id,
            student_id=response.student_id,
            student_name=name,
            student_email=email,
            responses=response.responses,
            completed_at=response.completed_at,
        )
        for response, name, email in result.all()
    ]


# ============================================================================
# Survey Templates
# ============================================================================

@router.get("/survey-templates", response_model=List[SurveyTemplateResponse])
async def list_survey_templates(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(SurveyTemplate).order_by(SurveyTemplate.template_type, SurveyTemplate.name)
    )
    return result.scalars().all()


@router.post("/survey-templates", status_code=201)
async def create_survey_template(payload: SurveyTemplateCreate, db: AsyncSession = Depends(get_db)):
    template = SurveyTemplate(
        name=payload.name.strip(),
        template_type=payload.template_type,
        questions=[question.model_dump() for question in payload.questions],
    )
    db.add(template)
    await db.commit()
    return {"id": template.id, "message": "Survey template created successfully"}
