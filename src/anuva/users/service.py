"""User profile and settings business logic."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from anuva.db.models import User, UserSettings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

DEFAULT_SETTINGS: dict[str, Any] = {
    "notifications_enabled": True,
    "email_notifications": True,
    "reminder_frequency": "daily",
    "theme": "light",
    "language": "en",
}


async def update_profile(db: AsyncSession, user: User, changes: dict[str, Any]) -> User:
    """Apply the provided profile fields. None values are ignored."""
    changed = {k: v for k, v in changes.items() if v is not None}
    if not changed:
        return user
    for field, value in changed.items():
        setattr(user, field, value)
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("profile_updated", user_id=user.id, fields=sorted(changed))
    return user


async def get_user_settings(db: AsyncSession, user_id: str) -> dict[str, Any]:
    """Stored settings merged over the defaults. Nothing is written on read."""
    result = await db.execute(select(UserSettings).where(UserSettings.user_id == user_id))
    row = result.scalar_one_or_none()
    if row is None:
        return dict(DEFAULT_SETTINGS)
    return {key: getattr(row, key) for key in DEFAULT_SETTINGS}


async def upsert_user_settings(db: AsyncSession, user_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """
    Insert or update the user's settings row.

    Only the provided keys change on update; a fresh row takes the defaults
    for everything else.
    """
    changed = {k: v for k, v in changes.items() if v is not None}
    now = datetime.now(timezone.utc)
    values = {**DEFAULT_SETTINGS, **changed, "user_id": user_id, "updated_at": now}

    stmt = pg_insert(UserSettings).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={**changed, "updated_at": now},
    )
    await db.execute(stmt)
    return await get_user_settings(db, user_id)
