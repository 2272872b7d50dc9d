"""Gamification persistence: progress snapshots and per-user achievement rows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from anuva.db.models import Achievement, UserProgress

_progress = UserProgress.__table__
_achievements = Achievement.__table__


class ProgressConflictError(Exception):
    """The progress row changed between read and write (version mismatch)."""


@dataclass(frozen=True)
class ProgressSnapshot:
    """Cumulative stats for one user. version 0 means never persisted."""

    user_id: str
    total_forms_completed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_points: int = 0
    level: int = 1
    experience_points: int = 0
    last_activity_date: datetime | None = None
    version: int = 0


@dataclass(frozen=True)
class AchievementRecord:
    """A user's copy of a catalog entry."""

    user_id: str
    badge_id: str
    title: str
    target: int
    badge_type: str = "milestone"
    description: str | None = None
    icon_name: str | None = None
    color: str | None = None
    progress: int = 0
    is_unlocked: bool = False
    earned_at: datetime | None = None


class GamificationRepository(Protocol):
    """Storage operations the progress tracker and achievement evaluator rely on."""

    def savepoint(self) -> AbstractAsyncContextManager[Any]:
        """Scope in which a failure rolls back only the work done inside it."""
        ...

    async def get_progress(self, user_id: str) -> ProgressSnapshot | None: ...

    async def save_progress(
        self, snapshot: ProgressSnapshot, expected_version: int | None
    ) -> ProgressSnapshot:
        """Replace the snapshot if the stored version still equals expected_version.

        expected_version=None means "no row yet". Raises ProgressConflictError
        when the precondition does not hold.
        """
        ...

    async def list_achievements(self, user_id: str) -> list[AchievementRecord]: ...

    async def get_achievement(self, user_id: str, badge_id: str) -> AchievementRecord | None: ...

    async def create_achievement(self, record: AchievementRecord) -> AchievementRecord: ...

    async def update_achievement_progress(
        self, user_id: str, badge_id: str, progress: int
    ) -> AchievementRecord | None:
        """Set progress on a locked row. Returns None when no locked row matched."""
        ...

    async def unlock_achievement(
        self, user_id: str, badge_id: str, earned_at: datetime
    ) -> AchievementRecord | None:
        """Flip a locked row to unlocked. Returns None when no locked row matched."""
        ...


def _snapshot(row: Any) -> ProgressSnapshot:
    return ProgressSnapshot(
        user_id=row["user_id"],
        total_forms_completed=row["total_forms_completed"],
        current_streak=row["current_streak"],
        longest_streak=row["longest_streak"],
        total_points=row["total_points"],
        level=row["level"],
        experience_points=row["experience_points"],
        last_activity_date=row["last_activity_date"],
        version=row["version"],
    )


def _record(row: Any) -> AchievementRecord:
    return AchievementRecord(
        user_id=row["user_id"],
        badge_id=row["badge_id"],
        badge_type=row["badge_type"],
        title=row["title"],
        description=row["description"],
        icon_name=row["icon_name"],
        color=row["color"],
        progress=row["progress"],
        target=row["target"],
        is_unlocked=row["is_unlocked"],
        earned_at=row["earned_at"],
    )


class SqlGamificationRepository:
    """PostgreSQL implementation on a request-scoped AsyncSession.

    `savepoint()` opens a SAVEPOINT. Reads and writes issued inside it that
    fail roll back to it and leave the outer transaction usable. Nothing
    here commits; the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def savepoint(self) -> AbstractAsyncContextManager[Any]:
        return self.db.begin_nested()

    async def get_progress(self, user_id: str) -> ProgressSnapshot | None:
        result = await self.db.execute(select(_progress).where(_progress.c.user_id == user_id))
        row = result.mappings().one_or_none()
        return _snapshot(row) if row else None

    async def save_progress(
        self, snapshot: ProgressSnapshot, expected_version: int | None
    ) -> ProgressSnapshot:
        now = datetime.now(timezone.utc)
        values = {
            "total_forms_completed": snapshot.total_forms_completed,
            "current_streak": snapshot.current_streak,
            "longest_streak": snapshot.longest_streak,
            "total_points": snapshot.total_points,
            "level": snapshot.level,
            "experience_points": snapshot.experience_points,
            "last_activity_date": snapshot.last_activity_date,
            "updated_at": now,
        }

        if expected_version is None:
            stmt = (
                pg_insert(_progress)
                .values(user_id=snapshot.user_id, version=1, created_at=now, **values)
                .on_conflict_do_nothing(index_elements=["user_id"])
                .returning(*_progress.c)
            )
        else:
            stmt = (
                update(_progress)
                .where(
                    _progress.c.user_id == snapshot.user_id,
                    _progress.c.version == expected_version,
                )
                .values(version=expected_version + 1, **values)
                .returning(*_progress.c)
            )

        result = await self.db.execute(stmt)
        row = result.mappings().one_or_none()
        if row is None:
            msg = f"user_progress for {snapshot.user_id} changed concurrently (expected version {expected_version})"
            raise ProgressConflictError(msg)
        return _snapshot(row)

    async def list_achievements(self, user_id: str) -> list[AchievementRecord]:
        result = await self.db.execute(
            select(_achievements)
            .where(_achievements.c.user_id == user_id)
            .order_by(_achievements.c.earned_at.desc().nulls_last(), _achievements.c.id)
        )
        return [_record(row) for row in result.mappings()]

    async def get_achievement(self, user_id: str, badge_id: str) -> AchievementRecord | None:
        result = await self.db.execute(
            select(_achievements).where(
                _achievements.c.user_id == user_id,
                _achievements.c.badge_id == badge_id,
            )
        )
        row = result.mappings().one_or_none()
        return _record(row) if row else None

    async def create_achievement(self, record: AchievementRecord) -> AchievementRecord:
        stmt = (
            pg_insert(_achievements)
            .values(
                user_id=record.user_id,
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
                created_at=datetime.now(timezone.utc),
            )
            .returning(*_achievements.c)
        )
        result = await self.db.execute(stmt)
        return _record(result.mappings().one())

    async def update_achievement_progress(
        self, user_id: str, badge_id: str, progress: int
    ) -> AchievementRecord | None:
        stmt = (
            update(_achievements)
            .where(
                _achievements.c.user_id == user_id,
                _achievements.c.badge_id == badge_id,
                _achievements.c.is_unlocked.is_(False),
            )
            .values(progress=progress)
            .returning(*_achievements.c)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().one_or_none()
        return _record(row) if row else None

    async def unlock_achievement(
        self, user_id: str, badge_id: str, earned_at: datetime
    ) -> AchievementRecord | None:
        stmt = (
            update(_achievements)
            .where(
                _achievements.c.user_id == user_id,
                _achievements.c.badge_id == badge_id,
                _achievements.c.is_unlocked.is_(False),
            )
            .values(is_unlocked=True, earned_at=earned_at)
            .returning(*_achievements.c)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().one_or_none()
        return _record(row) if row else None
