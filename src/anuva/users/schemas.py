"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    id: str
    email: str | None
    first_name: str | None
    last_name: str | None
    date_of_birth: str | None
    phone_number: str | None
    profile_image_url: str | None
    role: str
    created_at: datetime
    updated_at: datetime


class ProfileUpdateRequest(BaseModel):
    first_name: str | None = Field(None, max_length=128)
    last_name: str | None = Field(None, max_length=128)
    date_of_birth: str | None = Field(None, max_length=32)
    phone_number: str | None = Field(None, max_length=32)
    profile_image_url: str | None = None


class SettingsResponse(BaseModel):
    notifications_enabled: bool = True
    email_notifications: bool = True
    reminder_frequency: str = "daily"
    theme: str = "light"
    language: str = "en"


class SettingsUpdateRequest(BaseModel):
    notifications_enabled: bool | None = None
    email_notifications: bool | None = None
    reminder_frequency: Literal["daily", "weekly", "never"] | None = None
    theme: Literal["light", "dark", "system"] | None = None
    language: str | None = Field(None, min_length=2, max_length=8)
