"""Gamification FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from anuva.database import get_session
from anuva.gamification.achievement_evaluator import AchievementEvaluator
from anuva.gamification.catalog import DEFAULT_CATALOG
from anuva.gamification.repository import GamificationRepository, SqlGamificationRepository


async def get_gamification_repository(
    db: AsyncSession = Depends(get_session),
) -> GamificationRepository:
    """Repository bound to the request's session."""
    return SqlGamificationRepository(db)


@lru_cache
def get_achievement_evaluator() -> AchievementEvaluator:
    """Process-wide evaluator over the default catalog."""
    return AchievementEvaluator(DEFAULT_CATALOG)
