"""Clinical record business logic: metrics, labs, appointments, emergency contacts."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import delete, select

from anuva.clinical.risk import PCSS_METRIC_TYPE
from anuva.db.models import Appointment, EmergencyContact, HealthMetric, LabResult

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# --- Health metrics ---


async def list_health_metrics(db: AsyncSession, user_id: str) -> list[HealthMetric]:
    result = await db.execute(
        select(HealthMetric)
        .where(HealthMetric.user_id == user_id)
        .order_by(HealthMetric.recorded_at.desc())
    )
    return list(result.scalars().all())


async def create_health_metric(
    db: AsyncSession,
    user_id: str,
    metric_type: str,
    value: float,
    unit: str | None = None,
    notes: str | None = None,
    recorded_at: datetime | None = None,
) -> HealthMetric:
    metric = HealthMetric(
        user_id=user_id,
        metric_type=metric_type,
        value=value,
        unit=unit,
        notes=notes,
        recorded_at=recorded_at or datetime.now(timezone.utc),
    )
    db.add(metric)
    await db.flush()
    return metric


async def get_latest_health_metric(
    db: AsyncSession, user_id: str, metric_type: str
) -> HealthMetric | None:
    """Most recent metric of one type, or None."""
    result = await db.execute(
        select(HealthMetric)
        .where(HealthMetric.user_id == user_id, HealthMetric.metric_type == metric_type)
        .order_by(HealthMetric.recorded_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_latest_pcss(db: AsyncSession, user_id: str) -> HealthMetric | None:
    return await get_latest_health_metric(db, user_id, PCSS_METRIC_TYPE)


# --- Lab results ---


async def list_lab_results(db: AsyncSession, user_id: str) -> list[LabResult]:
    result = await db.execute(
        select(LabResult)
        .where(LabResult.user_id == user_id)
        .order_by(LabResult.test_date.desc())
    )
    return list(result.scalars().all())


async def create_lab_result(
    db: AsyncSession,
    user_id: str,
    test_name: str,
    result_value: str,
    test_date: date,
    unit: str | None = None,
    reference_range: str | None = None,
    status: str = "normal",
) -> LabResult:
    lab = LabResult(
        user_id=user_id,
        test_name=test_name,
        result_value=result_value,
        unit=unit,
        reference_range=reference_range,
        status=status,
        test_date=test_date,
    )
    db.add(lab)
    await db.flush()
    return lab


# --- Appointments ---


async def list_appointments(db: AsyncSession, user_id: str) -> list[Appointment]:
    result = await db.execute(
        select(Appointment)
        .where(Appointment.user_id == user_id)
        .order_by(Appointment.scheduled_at.desc())
    )
    return list(result.scalars().all())


async def list_upcoming_appointments(
    db: AsyncSession, user_id: str, now: datetime | None = None
) -> list[Appointment]:
    """Scheduled appointments in the future, soonest first."""
    if now is None:
        now = datetime.now(timezone.utc)
    result = await db.execute(
        select(Appointment)
        .where(
            Appointment.user_id == user_id,
            Appointment.status == "scheduled",
            Appointment.scheduled_at > now,
        )
        .order_by(Appointment.scheduled_at.asc())
    )
    return list(result.scalars().all())


async def create_appointment(
    db: AsyncSession,
    user_id: str,
    provider_name: str,
    appointment_type: str,
    scheduled_at: datetime,
    location: str | None = None,
    notes: str | None = None,
) -> Appointment:
    appointment = Appointment(
        user_id=user_id,
        provider_name=provider_name,
        appointment_type=appointment_type,
        status="scheduled",
        scheduled_at=scheduled_at,
        location=location,
        notes=notes,
    )
    db.add(appointment)
    await db.flush()
    return appointment


# --- Emergency contacts ---


async def list_emergency_contacts(db: AsyncSession, user_id: str) -> list[EmergencyContact]:
    """Primary contact first."""
    result = await db.execute(
        select(EmergencyContact)
        .where(EmergencyContact.user_id == user_id)
        .order_by(EmergencyContact.is_primary.desc(), EmergencyContact.id)
    )
    return list(result.scalars().all())


async def get_emergency_contact(
    db: AsyncSession, user_id: str, contact_id: int
) -> EmergencyContact | None:
    result = await db.execute(
        select(EmergencyContact).where(
            EmergencyContact.id == contact_id,
            EmergencyContact.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def create_emergency_contact(
    db: AsyncSession,
    user_id: str,
    name: str,
    relation: str,
    phone_number: str,
    email: str | None = None,
    is_primary: bool = False,
) -> EmergencyContact:
    contact = EmergencyContact(
        user_id=user_id,
        name=name,
        relation=relation,
        phone_number=phone_number,
        email=email,
        is_primary=is_primary,
    )
    db.add(contact)
    await db.flush()
    return contact


async def update_emergency_contact(
    db: AsyncSession, contact: EmergencyContact, changes: dict[str, Any]
) -> EmergencyContact:
    """Apply a partial update. The API's `relationship` maps to the `relation` attribute."""
    if "relationship" in changes:
        changes["relation"] = changes.pop("relationship")
    for field, value in changes.items():
        setattr(contact, field, value)
    await db.flush()
    return contact


async def delete_emergency_contact(db: AsyncSession, user_id: str, contact_id: int) -> bool:
    """Delete a contact. Returns True if a row was removed."""
    result = await db.execute(
        delete(EmergencyContact).where(
            EmergencyContact.id == contact_id,
            EmergencyContact.user_id == user_id,
        )
    )
    deleted = result.rowcount > 0
    if deleted:
        logger.info("emergency_contact_deleted", user_id=user_id, contact_id=contact_id)
    return deleted
