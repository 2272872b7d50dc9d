"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


# --- Progress ---


class LevelInfo(BaseModel):
    level: int
    xp_into_level: int
    xp_for_level: int
    next_level: int
    xp_to_next_level: int


class UserProgressResponse(BaseModel):
    user_id: str
    total_forms_completed: int
    current_streak: int
    longest_streak: int
    total_points: int
    level: int
    experience_points: int
    last_activity_date: datetime | None = None
    level_info: LevelInfo


# --- Achievements ---


class AchievementResponse(BaseModel):
    badge_id: str
    badge_type: str
    title: str
    description: str | None = None
    icon_name: str | None = None
    color: str | None = None
    progress: int
    target: int
    is_unlocked: bool
    earned_at: datetime | None = None


class AchievementsResponse(BaseModel):
    achievements: list[AchievementResponse]
    total: int
    unlocked: int


class CatalogEntryResponse(BaseModel):
    badge_id: str
    title: str
    description: str
    icon_name: str
    color: str
    target: int
    metric: str


class CatalogResponse(BaseModel):
    entries: list[CatalogEntryResponse]


class AchievementTransitionResponse(BaseModel):
    badge_id: str
    kind: str
    progress: int | None = None
