"""Appointment model: a scheduled visit between a lead and an agent."""

import uuid
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, field_validator
from pydantic import Field as PydanticField
from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid

_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$"


class AppointmentStatus(StrEnum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class Appointment(TimestampMixin, SQLModel, table=True):
    __tablename__ = "appointments"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    lead_id: uuid.UUID = Field(foreign_key="leads.id", nullable=False, index=True)
    agent_id: uuid.UUID | None = Field(
        default=None, foreign_key="agents.id", nullable=True, index=True,
    )

    appointment_date: date = Field(nullable=False, index=True)
    appointment_time: str = Field(max_length=8, nullable=False)  # HH:MM
    location: str = Field(default="Sin definir", max_length=500)
    property_type: str | None = Field(default=None, max_length=100)
    property_ids: str = Field(default="[]", sa_column=Column(Text, nullable=False, server_default="[]"))
    status: AppointmentStatus = Field(default=AppointmentStatus.SCHEDULED, index=True)
    notes: str | None = Field(default=None, sa_column=Column(Text))

    follow_up_date: date | None = Field(default=None)
    follow_up_notes: str | None = Field(default=None, sa_column=Column(Text))


# ── Pydantic schemas ─────────────────────────────────────────

def _unwrap_id(value: Any) -> Any:
    """Accept either a bare id or an object carrying one under ``id``."""
    if isinstance(value, dict):
        return value.get("id")
    return value


def _unwrap_ids(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    ids = (_unwrap_id(item) for item in value)
    return [str(item) for item in ids if item is not None]


class AppointmentCreate(BaseModel):
    lead_id: uuid.UUID
    agent_id: uuid.UUID | None = None
    appointment_date: date
    appointment_time: str = PydanticField(pattern=_TIME_PATTERN)
    location: str | None = None
    property_type: str | None = None
    property_ids: list[str] = PydanticField(default_factory=list)
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: str | None = None
    follow_up_date: date | None = None
    follow_up_notes: str | None = None

    @field_validator("lead_id", "agent_id", mode="before")
    @classmethod
    def _unwrap_refs(cls, value: Any) -> Any:
        return _unwrap_id(value)

    @field_validator("property_ids", mode="before")
    @classmethod
    def _unwrap_property_ids(cls, value: Any) -> Any:
        return _unwrap_ids(value)


class AppointmentUpdate(BaseModel):
    agent_id: uuid.UUID | None = None
    appointment_date: date | None = None
    appointment_time: str | None = PydanticField(default=None, pattern=_TIME_PATTERN)
    location: str | None = None
    property_type: str | None = None
    property_ids: list[str] | None = None
    status: AppointmentStatus | None = None
    notes: str | None = None
    follow_up_date: date | None = None
    follow_up_notes: str | None = None

    @field_validator("agent_id", mode="before")
    @classmethod
    def _unwrap_agent(cls, value: Any) -> Any:
        return _unwrap_id(value)

    @field_validator("property_ids", mode="before")
    @classmethod
    def _unwrap_property_ids(cls, value: Any) -> Any:
        return _unwrap_ids(value)


class AppointmentRead(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    lead_id: uuid.UUID
    agent_id: uuid.UUID | None
    appointment_date: date
    appointment_time: str
    location: str
    property_type: str | None
    property_ids: list[str]
    status: AppointmentStatus
    notes: str | None
    follow_up_date: date | None
    follow_up_notes: str | None
    created_at: datetime
    updated_at: datetime
