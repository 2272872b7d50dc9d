"""Pydantic request/response models for clinical records."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from anuva.clinical.risk import PCSS_MAX_SCORE, PCSS_METRIC_TYPE

# --- Health metrics ---


class HealthMetricCreateRequest(BaseModel):
    metric_type: str = Field(min_length=1, max_length=64)
    value: float
    unit: str | None = Field(default=None, max_length=32)
    notes: str | None = None
    recorded_at: datetime | None = None

    @model_validator(mode="after")
    def check_pcss_range(self) -> HealthMetricCreateRequest:
        if self.metric_type == PCSS_METRIC_TYPE and not 0 <= self.value <= PCSS_MAX_SCORE:
            msg = f"PCSS total must be between 0 and {PCSS_MAX_SCORE}"
            raise ValueError(msg)
        return self


class HealthMetricResponse(BaseModel):
    id: int
    metric_type: str
    value: float
    unit: str | None = None
    notes: str | None = None
    recorded_at: datetime


class RiskResponse(BaseModel):
    risk_level: Literal["critical", "recovering", "stable"]
    pcss_total: float | None = None
    recovery_percentage: int | None = None
    recorded_at: datetime | None = None


# --- Lab results ---


class LabResultCreateRequest(BaseModel):
    test_name: str = Field(min_length=1, max_length=128)
    result_value: str = Field(min_length=1, max_length=64)
    unit: str | None = Field(default=None, max_length=32)
    reference_range: str | None = Field(default=None, max_length=64)
    status: Literal["normal", "abnormal", "critical"] = "normal"
    test_date: date


class LabResultResponse(BaseModel):
    id: int
    test_name: str
    result_value: str
    unit: str | None = None
    reference_range: str | None = None
    status: str
    test_date: date


# --- Appointments ---


class AppointmentCreateRequest(BaseModel):
    provider_name: str = Field(min_length=1, max_length=128)
    appointment_type: str = Field(min_length=1, max_length=64)
    scheduled_at: datetime
    location: str | None = Field(default=None, max_length=256)
    notes: str | None = None


class AppointmentResponse(BaseModel):
    id: int
    provider_name: str
    appointment_type: str
    status: str
    scheduled_at: datetime
    location: str | None = None
    notes: str | None = None


# --- Emergency contacts ---


class EmergencyContactCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    relationship: str = Field(min_length=1, max_length=64)
    phone_number: str = Field(min_length=7, max_length=32)
    email: str | None = Field(default=None, max_length=320)
    is_primary: bool = False


class EmergencyContactUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    relationship: str | None = Field(default=None, min_length=1, max_length=64)
    phone_number: str | None = Field(default=None, min_length=7, max_length=32)
    email: str | None = Field(default=None, max_length=320)
    is_primary: bool | None = None


class EmergencyContactResponse(BaseModel):
    id: int
    name: str
    relationship: str
    phone_number: str
    email: str | None = None
    is_primary: bool
