"""Shared test fixtures.

The API tests run without Postgres or Redis: repositories are replaced by
in-memory fakes that honour the same compare-and-swap and locked-row
rules as the SQL implementations, and the session is a no-op stub.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from anuva.auth.jwt import create_access_token
from anuva.config import get_settings
from anuva.database import get_session
from anuva.db.models import IntakeForm
from anuva.dependencies import get_redis_dep
from anuva.gamification.dependencies import get_gamification_repository
from anuva.gamification.repository import (
    AchievementRecord,
    ProgressConflictError,
    ProgressSnapshot,
)
from anuva.intake.router import get_intake_repository
from anuva.main import create_app

TEST_USER_ID = "user_2abcPatient"


class FakeGamificationRepository:
    """In-memory GamificationRepository.

    `conflicts` makes the next N save_progress calls fail as if another
    writer got there first. Badge ids in `broken_badges` raise on read.
    `savepoint` restores achievement rows when the block raises.
    """

    def __init__(self) -> None:
        self.progress: dict[str, ProgressSnapshot] = {}
        self.achievements: dict[tuple[str, str], AchievementRecord] = {}
        self.conflicts = 0
        self.broken_badges: set[str] = set()
        self.save_calls = 0
        self.savepoints = 0

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        self.savepoints += 1
        saved = dict(self.achievements)
        try:
            yield
        except Exception:
            self.achievements = saved
            raise

    async def get_progress(self, user_id: str) -> ProgressSnapshot | None:
        return self.progress.get(user_id)

    async def save_progress(
        self, snapshot: ProgressSnapshot, expected_version: int | None
    ) -> ProgressSnapshot:
        self.save_calls += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            raise ProgressConflictError("simulated concurrent write")

        current = self.progress.get(snapshot.user_id)
        if expected_version is None:
            if current is not None:
                raise ProgressConflictError("row already exists")
            stored = dataclasses.replace(snapshot, version=1)
        else:
            if current is None or current.version != expected_version:
                raise ProgressConflictError("version mismatch")
            stored = dataclasses.replace(snapshot, version=expected_version + 1)
        self.progress[snapshot.user_id] = stored
        return stored

    async def list_achievements(self, user_id: str) -> list[AchievementRecord]:
        return [r for (uid, _), r in self.achievements.items() if uid == user_id]

    async def get_achievement(self, user_id: str, badge_id: str) -> AchievementRecord | None:
        if badge_id in self.broken_badges:
            raise RuntimeError(f"storage failure reading {badge_id}")
        return self.achievements.get((user_id, badge_id))

    async def create_achievement(self, record: AchievementRecord) -> AchievementRecord:
        key = (record.user_id, record.badge_id)
        if key in self.achievements:
            raise ValueError(f"duplicate achievement {key}")
        self.achievements[key] = record
        return record

    async def update_achievement_progress(
        self, user_id: str, badge_id: str, progress: int
    ) -> AchievementRecord | None:
        current = self.achievements.get((user_id, badge_id))
        if current is None or current.is_unlocked:
            return None
        updated = dataclasses.replace(current, progress=progress)
        self.achievements[(user_id, badge_id)] = updated
        return updated

    async def unlock_achievement(
        self, user_id: str, badge_id: str, earned_at: datetime
    ) -> AchievementRecord | None:
        current = self.achievements.get((user_id, badge_id))
        if current is None or current.is_unlocked:
            return None
        updated = dataclasses.replace(current, is_unlocked=True, earned_at=earned_at)
        self.achievements[(user_id, badge_id)] = updated
        return updated


class FakeIntakeFormRepository:
    """In-memory IntakeFormRepository holding transient ORM instances."""

    def __init__(self) -> None:
        self.forms: dict[int, IntakeForm] = {}
        self._next_id = 1

    def add(self, user_id: str, title: str = "PCSS Check-in", status: str = "pending") -> IntakeForm:
        form = IntakeForm(
            id=self._next_id,
            user_id=user_id,
            form_type="pcss",
            title=title,
            status=status,
            form_data={},
            created_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
        )
        self.forms[form.id] = form
        self._next_id += 1
        return form

    async def list_for_user(self, user_id: str) -> list[IntakeForm]:
        return [f for f in self.forms.values() if f.user_id == user_id]

    async def get_for_user(self, user_id: str, form_id: int) -> IntakeForm | None:
        form = self.forms.get(form_id)
        return form if form is not None and form.user_id == user_id else None

    async def create(self, form: IntakeForm) -> IntakeForm:
        form.id = self._next_id
        form.created_at = datetime.now(timezone.utc)
        self.forms[form.id] = form
        self._next_id += 1
        return form

    async def update(self, form: IntakeForm, changes: dict[str, Any]) -> IntakeForm:
        for field, value in changes.items():
            setattr(form, field, value)
        return form

    async def mark_completed(self, form: IntakeForm, completed_at: datetime) -> IntakeForm | None:
        # Checks the stored row, not the caller's possibly stale instance
        stored = self.forms.get(form.id)
        if stored is None or stored.user_id != form.user_id or stored.status == "completed":
            return None
        stored.status = "completed"
        stored.completed_at = completed_at
        return stored


class FakeSession:
    """Stands in for AsyncSession where routers only commit or flush."""

    def __init__(self) -> None:
        self.commits = 0
        self.executed: list[Any] = []

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass

    async def flush(self) -> None:
        pass

    async def execute(self, statement: Any) -> None:
        self.executed.append(statement)


class FakeRedis:
    """Records pub/sub publishes."""

    def __init__(self) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, json.loads(message)))
        return 1


@pytest.fixture
def make_gamification_repo():
    """Factory for additional independent repositories."""
    return FakeGamificationRepository


@pytest.fixture
def gamification_repo() -> FakeGamificationRepository:
    return FakeGamificationRepository()


@pytest.fixture
def intake_repo() -> FakeIntakeFormRepository:
    return FakeIntakeFormRepository()


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def app(gamification_repo, intake_repo, fake_session, fake_redis):
    """Application with storage dependencies swapped for the fakes."""
    get_settings.cache_clear()
    application = create_app()

    async def _session() -> AsyncGenerator[FakeSession, None]:
        yield fake_session

    async def _redis() -> AsyncGenerator[FakeRedis, None]:
        yield fake_redis

    application.dependency_overrides[get_session] = _session
    application.dependency_overrides[get_redis_dep] = _redis
    application.dependency_overrides[get_gamification_repository] = lambda: gamification_repo
    application.dependency_overrides[get_intake_repository] = lambda: intake_repo
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated client. The lifespan is not run, so Postgres and Redis are never opened."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient) -> AsyncClient:
    """Client carrying a valid access token for TEST_USER_ID."""
    client.headers["Authorization"] = f"Bearer {create_access_token(TEST_USER_ID)}"
    return client


@pytest.fixture
def user_id() -> str:
    """Subject of the authed_client token."""
    return TEST_USER_ID
