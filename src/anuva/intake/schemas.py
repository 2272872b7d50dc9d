"""Pydantic request/response models for intake forms."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from anuva.gamification.schemas import AchievementTransitionResponse, UserProgressResponse

FormStatus = Literal["pending", "in_progress", "completed"]


class IntakeFormCreateRequest(BaseModel):
    form_type: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=256)
    form_data: dict[str, Any] = Field(default_factory=dict)
    due_date: datetime | None = None


class IntakeFormUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=256)
    status: Literal["pending", "in_progress"] | None = None
    form_data: dict[str, Any] | None = None
    due_date: datetime | None = None


class IntakeFormResponse(BaseModel):
    id: int
    form_type: str
    title: str
    status: str
    form_data: dict[str, Any] = {}
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None


class IntakeFormCompletionResponse(BaseModel):
    form: IntakeFormResponse
    progress: UserProgressResponse
    achievements: list[AchievementTransitionResponse]
