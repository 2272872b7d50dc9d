"""Clinical records API: health metrics, lab results, appointments, emergency contacts."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from anuva.auth.dependencies import get_current_user_id
from anuva.clinical import service
from anuva.clinical.risk import classify_pcss, recovery_percentage
from anuva.clinical.schemas import (
    AppointmentCreateRequest,
    AppointmentResponse,
    EmergencyContactCreateRequest,
    EmergencyContactResponse,
    EmergencyContactUpdateRequest,
    HealthMetricCreateRequest,
    HealthMetricResponse,
    LabResultCreateRequest,
    LabResultResponse,
    RiskResponse,
)
from anuva.database import get_session
from anuva.db.models import Appointment, EmergencyContact, HealthMetric, LabResult

router = APIRouter(prefix="/api/v1", tags=["Clinical"])


def _metric(m: HealthMetric) -> HealthMetricResponse:
    return HealthMetricResponse(
        id=m.id, metric_type=m.metric_type, value=m.value,
        unit=m.unit, notes=m.notes, recorded_at=m.recorded_at,
    )


def _lab(r: LabResult) -> LabResultResponse:
    return LabResultResponse(
        id=r.id, test_name=r.test_name, result_value=r.result_value, unit=r.unit,
        reference_range=r.reference_range, status=r.status, test_date=r.test_date,
    )


def _appointment(a: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=a.id, provider_name=a.provider_name, appointment_type=a.appointment_type,
        status=a.status, scheduled_at=a.scheduled_at, location=a.location, notes=a.notes,
    )


def _contact(c: EmergencyContact) -> EmergencyContactResponse:
    return EmergencyContactResponse(
        id=c.id, name=c.name, relationship=c.relation,
        phone_number=c.phone_number, email=c.email, is_primary=c.is_primary,
    )


# ── Health metrics ──


@router.get("/health-metrics", response_model=list[HealthMetricResponse])
async def list_health_metrics(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """All metrics for the current user, newest first."""
    return [_metric(m) for m in await service.list_health_metrics(db, user_id)]


@router.post("/health-metrics", response_model=HealthMetricResponse, status_code=201)
async def create_health_metric(
    body: HealthMetricCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    metric = await service.create_health_metric(
        db, user_id, body.metric_type, body.value,
        unit=body.unit, notes=body.notes, recorded_at=body.recorded_at,
    )
    await db.commit()
    return _metric(metric)


@router.get("/health-metrics/latest", response_model=HealthMetricResponse)
async def get_latest_health_metric(
    metric_type: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    metric = await service.get_latest_health_metric(db, user_id, metric_type)
    if metric is None:
        raise HTTPException(status_code=404, detail=f"No {metric_type} metric recorded")
    return _metric(metric)


@router.get("/health-metrics/risk", response_model=RiskResponse)
async def get_risk_level(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Risk level from the most recent PCSS total. No check-ins yet is stable."""
    latest = await service.get_latest_pcss(db, user_id)
    if latest is None:
        return RiskResponse(risk_level=classify_pcss(None))
    return RiskResponse(
        risk_level=classify_pcss(latest.value),
        pcss_total=latest.value,
        recovery_percentage=recovery_percentage(latest.value),
        recorded_at=latest.recorded_at,
    )


# ── Lab results ──


@router.get("/lab-results", response_model=list[LabResultResponse])
async def list_lab_results(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    return [_lab(r) for r in await service.list_lab_results(db, user_id)]


@router.post("/lab-results", response_model=LabResultResponse, status_code=201)
async def create_lab_result(
    body: LabResultCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    lab = await service.create_lab_result(
        db, user_id, body.test_name, body.result_value, body.test_date,
        unit=body.unit, reference_range=body.reference_range, status=body.status,
    )
    await db.commit()
    return _lab(lab)


# ── Appointments ──


@router.get("/appointments", response_model=list[AppointmentResponse])
async def list_appointments(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    return [_appointment(a) for a in await service.list_appointments(db, user_id)]


@router.get("/appointments/upcoming", response_model=list[AppointmentResponse])
async def list_upcoming_appointments(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    return [_appointment(a) for a in await service.list_upcoming_appointments(db, user_id)]


@router.post("/appointments", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    body: AppointmentCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    appointment = await service.create_appointment(
        db, user_id, body.provider_name, body.appointment_type, body.scheduled_at,
        location=body.location, notes=body.notes,
    )
    await db.commit()
    return _appointment(appointment)


# ── Emergency contacts ──


@router.get("/emergency-contacts", response_model=list[EmergencyContactResponse])
async def list_emergency_contacts(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    return [_contact(c) for c in await service.list_emergency_contacts(db, user_id)]


@router.post("/emergency-contacts", response_model=EmergencyContactResponse, status_code=201)
async def create_emergency_contact(
    body: EmergencyContactCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    contact = await service.create_emergency_contact(
        db, user_id, body.name, body.relationship, body.phone_number,
        email=body.email, is_primary=body.is_primary,
    )
    await db.commit()
    return _contact(contact)


@router.patch("/emergency-contacts/{contact_id}", response_model=EmergencyContactResponse)
async def update_emergency_contact(
    contact_id: int,
    body: EmergencyContactUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    contact = await service.get_emergency_contact(db, user_id, contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Emergency contact not found")
    contact = await service.update_emergency_contact(db, contact, body.model_dump(exclude_unset=True))
    await db.commit()
    return _contact(contact)


@router.delete("/emergency-contacts/{contact_id}", status_code=204)
async def delete_emergency_contact(
    contact_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    if not await service.delete_emergency_contact(db, user_id, contact_id):
        raise HTTPException(status_code=404, detail="Emergency contact not found")
    await db.commit()
