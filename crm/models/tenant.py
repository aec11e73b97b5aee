"""Tenant model: the top-level isolation boundary."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid


class Tenant(TimestampMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    name: str = Field(max_length=255, nullable=False)
    slug: str = Field(max_length=100, unique=True, nullable=False, index=True)
    is_active: bool = Field(default=True)

    # Subscription plan; NULL means no modules are available
    plan_id: uuid.UUID | None = Field(default=None, foreign_key="plans.id", nullable=True)


# ── Pydantic schemas ─────────────────────────────────────────

class TenantUpdate(SQLModel):
    name: str | None = Field(default=None, max_length=255)
    is_active: bool | None = None
    plan_id: uuid.UUID | None = None


class TenantRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    is_active: bool
    plan_id: uuid.UUID | None
    created_at: datetime
