"""Lead model: a sales prospect tracked through the funnel."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel
from pydantic import Field as PydanticField
from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid


class LeadStatus(StrEnum):
    ACTIVE = "active"
    CLOSED = "closed"


class InterestLevel(StrEnum):
    HIGH = "alto"
    MEDIUM = "medio"
    LOW = "bajo"


class Lead(TimestampMixin, SQLModel, table=True):
    __tablename__ = "leads"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    agent_id: uuid.UUID | None = Field(
        default=None, foreign_key="agents.id", nullable=True, index=True,
    )

    full_name: str = Field(default="", max_length=255)
    description: str = Field(default="", max_length=2000)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    cover: str | None = Field(default=None, max_length=2048)

    # Lifecycle flag vs. funnel position. Stage is kept as free text because
    # older rows may still carry localized stage names.
    status: str = Field(default=LeadStatus.ACTIVE, max_length=20, index=True)
    stage: str = Field(default="new", max_length=50, index=True)

    source: str | None = Field(default=None, max_length=100)
    interest_level: str = Field(default=InterestLevel.MEDIUM, max_length=20)

    # Property preferences
    budget_min: float | None = Field(default=None)
    budget_max: float | None = Field(default=None)
    property_type: str | None = Field(default=None, max_length=100)
    preferred_zones: str = Field(default="[]", sa_column=Column(Text, nullable=False, server_default="[]"))
    bedrooms_needed: int | None = Field(default=None)
    bathrooms_needed: float | None = Field(default=None)
    features_needed: str = Field(default="[]", sa_column=Column(Text, nullable=False, server_default="[]"))

    notes: str | None = Field(default=None, sa_column=Column(Text))

    # Free-form JSON bag; may carry legacy ids (see LeadAlias)
    metadata_json: str = Field(default="{}", sa_column=Column(Text, nullable=False, server_default="{}"))

    last_contact_date: datetime | None = Field(default=None)
    next_contact_date: datetime | None = Field(default=None)
    contact_count: int = Field(default=0)


class LeadAlias(TimestampMixin, SQLModel, table=True):
    """Legacy / external identifier pointing at a lead."""

    __tablename__ = "lead_aliases"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    lead_id: uuid.UUID = Field(foreign_key="leads.id", nullable=False, index=True)
    alias_key: str = Field(max_length=50, nullable=False)
    external_id: str = Field(max_length=255, nullable=False, index=True)


class LeadActivity(TimestampMixin, SQLModel, table=True):
    __tablename__ = "lead_activities"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    lead_id: uuid.UUID = Field(foreign_key="leads.id", nullable=False, index=True)
    activity_type: str = Field(max_length=50, nullable=False)
    description: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    metadata_json: str = Field(default="{}", sa_column=Column(Text, nullable=False, server_default="{}"))
    created_by: uuid.UUID | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────
# Plain BaseModel: SQLModel reserves the ``metadata`` attribute.

class LeadCreate(BaseModel):
    full_name: str = PydanticField(min_length=1, max_length=255)
    description: str = PydanticField(default="", max_length=2000)
    email: str | None = PydanticField(default=None, max_length=320)
    phone: str | None = PydanticField(default=None, max_length=50)
    cover: str | None = None
    stage: str = "new"
    agent_id: uuid.UUID | None = None
    source: str | None = None
    interest_level: InterestLevel = InterestLevel.MEDIUM
    budget_min: float | None = PydanticField(default=None, ge=0)
    budget_max: float | None = PydanticField(default=None, ge=0)
    property_type: str | None = None
    preferred_zones: list[str] = PydanticField(default_factory=list)
    bedrooms_needed: int | None = PydanticField(default=None, ge=0)
    bathrooms_needed: float | None = PydanticField(default=None, ge=0)
    features_needed: list[str] = PydanticField(default_factory=list)
    notes: str | None = None
    metadata: dict = PydanticField(default_factory=dict)
    next_contact_date: datetime | None = None
    contact_count: int = PydanticField(default=0, ge=0)


class LeadUpdate(BaseModel):
    full_name: str | None = PydanticField(default=None, min_length=1, max_length=255)
    description: str | None = PydanticField(default=None, max_length=2000)
    email: str | None = None
    phone: str | None = None
    cover: str | None = None
    status: LeadStatus | None = None
    agent_id: uuid.UUID | None = None
    source: str | None = None
    interest_level: InterestLevel | None = None
    budget_min: float | None = PydanticField(default=None, ge=0)
    budget_max: float | None = PydanticField(default=None, ge=0)
    property_type: str | None = None
    preferred_zones: list[str] | None = None
    bedrooms_needed: int | None = PydanticField(default=None, ge=0)
    bathrooms_needed: float | None = PydanticField(default=None, ge=0)
    features_needed: list[str] | None = None
    notes: str | None = None
    metadata: dict | None = None
    last_contact_date: datetime | None = None
    next_contact_date: datetime | None = None
    contact_count: int | None = PydanticField(default=None, ge=0)


class LeadRead(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    agent_id: uuid.UUID | None
    full_name: str
    description: str
    email: str | None
    phone: str | None
    cover: str | None
    status: str
    stage: str
    source: str | None
    interest_level: str
    budget_min: float | None
    budget_max: float | None
    property_type: str | None
    preferred_zones: list[str]
    bedrooms_needed: int | None
    bathrooms_needed: float | None
    features_needed: list[str]
    notes: str | None
    metadata: dict
    last_contact_date: datetime | None
    next_contact_date: datetime | None
    contact_count: int
    created_at: datetime
    updated_at: datetime


class LeadActivityRead(BaseModel):
    id: uuid.UUID
    lead_id: uuid.UUID
    activity_type: str
    description: str
    metadata: dict
    created_by: uuid.UUID | None
    created_at: datetime
