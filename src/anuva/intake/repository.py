"""Intake form persistence."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from anuva.db.models import IntakeForm


class IntakeFormRepository(Protocol):
    async def list_for_user(self, user_id: str) -> list[IntakeForm]: ...

    async def get_for_user(self, user_id: str, form_id: int) -> IntakeForm | None: ...

    async def create(self, form: IntakeForm) -> IntakeForm: ...

    async def update(self, form: IntakeForm, changes: dict[str, Any]) -> IntakeForm: ...

    async def mark_completed(self, form: IntakeForm, completed_at: datetime) -> IntakeForm | None:
        """Complete the form unless it already is. Returns None when another request completed it first."""
        ...


class SqlIntakeFormRepository:
    """ORM-backed intake form storage on a request-scoped session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_for_user(self, user_id: str) -> list[IntakeForm]:
        result = await self.db.execute(
            select(IntakeForm)
            .where(IntakeForm.user_id == user_id)
            .order_by(IntakeForm.due_date.asc().nulls_last(), IntakeForm.id)
        )
        return list(result.scalars().all())

    async def get_for_user(self, user_id: str, form_id: int) -> IntakeForm | None:
        result = await self.db.execute(
            select(IntakeForm).where(IntakeForm.id == form_id, IntakeForm.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def create(self, form: IntakeForm) -> IntakeForm:
        if form.created_at is None:
            form.created_at = datetime.now(timezone.utc)
        self.db.add(form)
        await self.db.flush()
        return form

    async def update(self, form: IntakeForm, changes: dict[str, Any]) -> IntakeForm:
        for field, value in changes.items():
            setattr(form, field, value)
        await self.db.flush()
        return form

    async def mark_completed(self, form: IntakeForm, completed_at: datetime) -> IntakeForm | None:
        # Conditional UPDATE: a concurrent completion blocks on the row lock,
        # then re-checks status and matches nothing.
        stmt = (
            update(IntakeForm)
            .where(
                IntakeForm.id == form.id,
                IntakeForm.user_id == form.user_id,
                IntakeForm.status != "completed",
            )
            .values(status="completed", completed_at=completed_at)
            .returning(IntakeForm)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
