"""Agent model: a salesperson leads and appointments are assigned to."""

import re
import uuid
from datetime import datetime

from pydantic import BaseModel, field_validator
from pydantic import Field as PydanticField
from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class Agent(TimestampMixin, SQLModel, table=True):
    __tablename__ = "agents"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    name: str = Field(default="", max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    profile_image: str | None = Field(default=None, max_length=2048)
    bio: str | None = Field(default=None, sa_column=Column(Text))
    is_active: bool = Field(default=True)

    # {"monday": {"enabled": bool, "slots": ["09:00", ...]}, ..., "exceptions": {...}}
    availability: str = Field(default="{}", sa_column=Column(Text, nullable=False, server_default="{}"))
    metadata_json: str = Field(default="{}", sa_column=Column(Text, nullable=False, server_default="{}"))


# ── Pydantic schemas ─────────────────────────────────────────

def _check_slot_times(slots: list[str]) -> list[str]:
    for slot in slots:
        if not re.match(_TIME_PATTERN, slot):
            raise ValueError(f"Invalid time slot: {slot}")
    return slots


class DaySchedule(BaseModel):
    enabled: bool = True
    slots: list[str] = PydanticField(default_factory=list)

    @field_validator("slots")
    @classmethod
    def _check_slots(cls, value: list[str]) -> list[str]:
        return _check_slot_times(value)


class DateException(BaseModel):
    available: bool = True
    slots: list[str] | None = None

    @field_validator("slots")
    @classmethod
    def _check_slots(cls, value: list[str] | None) -> list[str] | None:
        if value is not None:
            _check_slot_times(value)
        return value


class AvailabilitySchedule(BaseModel):
    monday: DaySchedule | None = None
    tuesday: DaySchedule | None = None
    wednesday: DaySchedule | None = None
    thursday: DaySchedule | None = None
    friday: DaySchedule | None = None
    saturday: DaySchedule | None = None
    sunday: DaySchedule | None = None
    # Keyed by YYYY-MM-DD
    exceptions: dict[str, DateException] = PydanticField(default_factory=dict)

    @field_validator("exceptions")
    @classmethod
    def _check_dates(cls, value: dict[str, DateException]) -> dict[str, DateException]:
        for key in value:
            try:
                datetime.strptime(key, "%Y-%m-%d")
            except ValueError as exc:
                raise ValueError(f"Invalid exception date: {key}") from exc
        return value


class AgentCreate(BaseModel):
    name: str = PydanticField(min_length=1, max_length=255)
    email: str | None = PydanticField(default=None, max_length=320)
    phone: str | None = PydanticField(default=None, max_length=50)
    profile_image: str | None = None
    bio: str | None = None
    is_active: bool = True
    availability: AvailabilitySchedule | None = None
    metadata: dict = PydanticField(default_factory=dict)


class AgentUpdate(BaseModel):
    name: str | None = PydanticField(default=None, min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    profile_image: str | None = None
    bio: str | None = None
    is_active: bool | None = None
    metadata: dict | None = None


class AgentRead(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    email: str | None
    phone: str | None
    profile_image: str | None
    bio: str | None
    is_active: bool
    availability: dict
    metadata: dict
    created_at: datetime
    updated_at: datetime


class TimeSlot(BaseModel):
    date: str
    time: str
    available: bool
