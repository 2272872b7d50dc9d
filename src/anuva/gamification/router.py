"""Gamification API endpoints: progress snapshot and achievements."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from anuva.auth.dependencies import get_current_user_id
from anuva.database import get_session
from anuva.gamification.achievement_evaluator import AchievementEvaluator
from anuva.gamification.dependencies import get_achievement_evaluator, get_gamification_repository
from anuva.gamification.levels import level_info
from anuva.gamification.repository import (
    AchievementRecord,
    GamificationRepository,
    ProgressConflictError,
    ProgressSnapshot,
)
from anuva.gamification.schemas import (
    AchievementResponse,
    AchievementsResponse,
    CatalogEntryResponse,
    CatalogResponse,
    LevelInfo,
    UserProgressResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


def progress_response(snapshot: ProgressSnapshot) -> UserProgressResponse:
    """Build a UserProgressResponse from a snapshot."""
    return UserProgressResponse(
        user_id=snapshot.user_id,
        total_forms_completed=snapshot.total_forms_completed,
        current_streak=snapshot.current_streak,
        longest_streak=snapshot.longest_streak,
        total_points=snapshot.total_points,
        level=snapshot.level,
        experience_points=snapshot.experience_points,
        last_activity_date=snapshot.last_activity_date,
        level_info=LevelInfo(**level_info(snapshot.experience_points)),
    )


def achievement_response(record: AchievementRecord) -> AchievementResponse:
    """Build an AchievementResponse from a stored record."""
    return AchievementResponse(
        badge_id=record.badge_id,
        badge_type=record.badge_type,
        title=record.title,
        description=record.description,
        icon_name=record.icon_name,
        color=record.color,
        progress=record.progress,
        target=record.target,
        is_unlocked=record.is_unlocked,
        earned_at=record.earned_at,
    )


@router.get("/user-progress", response_model=UserProgressResponse)
async def get_user_progress(
    user_id: str = Depends(get_current_user_id),
    repo: GamificationRepository = Depends(get_gamification_repository),
    db: AsyncSession = Depends(get_session),
):
    """Get the current user's progress, creating a zeroed snapshot on first read."""
    snapshot = await repo.get_progress(user_id)
    if snapshot is None:
        try:
            snapshot = await repo.save_progress(ProgressSnapshot(user_id=user_id), None)
            await db.commit()
        except ProgressConflictError:
            # Created by a concurrent request
            snapshot = await repo.get_progress(user_id)
            if snapshot is None:
                raise
    return progress_response(snapshot)


@router.get("/achievements", response_model=AchievementsResponse)
async def list_achievements(
    user_id: str = Depends(get_current_user_id),
    repo: GamificationRepository = Depends(get_gamification_repository),
):
    """Get the current user's achievement rows, most recently earned first."""
    records = await repo.list_achievements(user_id)
    return AchievementsResponse(
        achievements=[achievement_response(r) for r in records],
        total=len(records),
        unlocked=sum(1 for r in records if r.is_unlocked),
    )


@router.get("/achievements/catalog", response_model=CatalogResponse)
async def get_catalog(evaluator: AchievementEvaluator = Depends(get_achievement_evaluator)):
    """Static achievement catalog."""
    return CatalogResponse(
        entries=[
            CatalogEntryResponse(
                badge_id=d.badge_id,
                title=d.title,
                description=d.description,
                icon_name=d.icon_name,
                color=d.color,
                target=d.target,
                metric=d.condition.metric.value,
            )
            for d in evaluator.catalog
        ]
    )


@router.patch("/achievements/{badge_id}/unlock", response_model=AchievementResponse)
async def unlock_achievement(
    badge_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: GamificationRepository = Depends(get_gamification_repository),
    db: AsyncSession = Depends(get_session),
):
    """Manually unlock an achievement. Unlocking twice keeps the first earned_at."""
    existing = await repo.get_achievement(user_id, badge_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Achievement not found")
    if existing.is_unlocked:
        return achievement_response(existing)

    unlocked = await repo.unlock_achievement(user_id, badge_id, datetime.now(timezone.utc))
    await db.commit()
    if unlocked is None:
        unlocked = await repo.get_achievement(user_id, badge_id)
        if unlocked is None:
            raise HTTPException(status_code=404, detail="Achievement not found")
    return achievement_response(unlocked)
