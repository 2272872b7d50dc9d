"""Intake form router: all /api/v1/intake-forms endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from anuva.auth.dependencies import get_current_user_id
from anuva.config import Settings, get_settings
from anuva.database import get_session
from anuva.db.models import IntakeForm
from anuva.dependencies import get_redis_dep
from anuva.gamification.achievement_evaluator import AchievementEvaluator
from anuva.gamification.dependencies import get_achievement_evaluator, get_gamification_repository
from anuva.gamification.repository import GamificationRepository
from anuva.gamification.router import progress_response
from anuva.gamification.schemas import AchievementTransitionResponse
from anuva.intake.repository import IntakeFormRepository, SqlIntakeFormRepository
from anuva.intake.schemas import (
    IntakeFormCompletionResponse,
    IntakeFormCreateRequest,
    IntakeFormResponse,
    IntakeFormUpdateRequest,
)
from anuva.intake.service import (
    FormAlreadyCompletedError,
    FormNotFoundError,
    complete_intake_form,
    publish_unlocks,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/intake-forms", tags=["Intake Forms"])


async def get_intake_repository(db: AsyncSession = Depends(get_session)) -> IntakeFormRepository:
    """Repository bound to the request's session."""
    return SqlIntakeFormRepository(db)


def _form_response(form: IntakeForm) -> IntakeFormResponse:
    return IntakeFormResponse(
        id=form.id,
        form_type=form.form_type,
        title=form.title,
        status=form.status,
        form_data=form.form_data or {},
        due_date=form.due_date,
        completed_at=form.completed_at,
        created_at=form.created_at,
    )


@router.get("", response_model=list[IntakeFormResponse])
async def list_forms(
    user_id: str = Depends(get_current_user_id),
    forms: IntakeFormRepository = Depends(get_intake_repository),
):
    """List the current user's intake forms, soonest due first."""
    return [_form_response(f) for f in await forms.list_for_user(user_id)]


@router.post("", response_model=IntakeFormResponse, status_code=201)
async def create_form(
    body: IntakeFormCreateRequest,
    user_id: str = Depends(get_current_user_id),
    forms: IntakeFormRepository = Depends(get_intake_repository),
    db: AsyncSession = Depends(get_session),
):
    """Assign a new intake form to the current user."""
    form = await forms.create(
        IntakeForm(
            user_id=user_id,
            form_type=body.form_type,
            title=body.title,
            status="pending",
            form_data=body.form_data,
            due_date=body.due_date,
        )
    )
    await db.commit()
    return _form_response(form)


@router.patch("/{form_id}", response_model=IntakeFormResponse)
async def update_form(
    form_id: int,
    body: IntakeFormUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    forms: IntakeFormRepository = Depends(get_intake_repository),
    db: AsyncSession = Depends(get_session),
):
    """Save answers or change status of a form that is not yet completed."""
    form = await forms.get_for_user(user_id, form_id)
    if form is None:
        raise HTTPException(status_code=404, detail="Intake form not found")
    if form.status == "completed":
        raise HTTPException(status_code=409, detail="Intake form is already completed")

    form = await forms.update(form, body.model_dump(exclude_unset=True))
    await db.commit()
    return _form_response(form)


@router.patch("/{form_id}/complete", response_model=IntakeFormCompletionResponse)
async def complete_form(
    form_id: int,
    user_id: str = Depends(get_current_user_id),
    forms: IntakeFormRepository = Depends(get_intake_repository),
    gamification: GamificationRepository = Depends(get_gamification_repository),
    evaluator: AchievementEvaluator = Depends(get_achievement_evaluator),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
    settings: Settings = Depends(get_settings),
):
    """Complete a form, award points, update streak and sync achievements."""
    try:
        result = await complete_intake_form(
            forms, gamification, evaluator, user_id, form_id,
            points=settings.points_per_form,
            max_attempts=settings.progress_update_max_attempts,
        )
    except FormNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except FormAlreadyCompletedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    await db.commit()
    logger.info(
        "intake_form_completed",
        user_id=user_id,
        form_id=form_id,
        level=result.progress.level,
        streak=result.progress.current_streak,
        unlocked=result.unlocked,
    )
    await publish_unlocks(redis, user_id, result.unlocked)

    return IntakeFormCompletionResponse(
        form=_form_response(result.form),
        progress=progress_response(result.progress),
        achievements=[
            AchievementTransitionResponse(badge_id=t.badge_id, kind=t.kind.value, progress=t.progress)
            for t in result.transitions
        ],
    )
