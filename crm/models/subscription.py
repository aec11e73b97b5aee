"""Subscription models: modules, their dependencies, plans and assignments."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import Field as PydanticField
from sqlalchemy import Text, UniqueConstraint
from sqlmodel import Column, Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid

_CODE_PATTERN = r"^[a-z0-9_\-]+$"


class Module(TimestampMixin, SQLModel, table=True):
    __tablename__ = "modules"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    code: str = Field(max_length=100, unique=True, nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    description: str | None = Field(default=None, sa_column=Column(Text))
    icon: str | None = Field(default=None, max_length=100)
    is_core: bool = Field(default=False)
    is_active: bool = Field(default=True)
    display_order: int = Field(default=0)

    # e.g. {"importance": "high", "complexity": "medium", "vertical_specific": true}
    metadata_json: str = Field(default="{}", sa_column=Column(Text, nullable=False, server_default="{}"))


class ModuleDependency(SQLModel, table=True):
    __tablename__ = "module_dependencies"
    __table_args__ = (UniqueConstraint("module_id", "depends_on_id"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    module_id: uuid.UUID = Field(foreign_key="modules.id", nullable=False, index=True)
    depends_on_id: uuid.UUID = Field(foreign_key="modules.id", nullable=False, index=True)


class Plan(TimestampMixin, SQLModel, table=True):
    __tablename__ = "plans"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    code: str = Field(max_length=100, unique=True, nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    description: str | None = Field(default=None, sa_column=Column(Text))
    price_monthly: float = Field(default=0)
    price_yearly: float = Field(default=0)
    currency: str = Field(default="MXN", max_length=3)
    is_active: bool = Field(default=True)
    is_public: bool = Field(default=True)
    display_order: int = Field(default=0)

    # Marketing bullet points, JSON list of strings
    features: str = Field(default="[]", sa_column=Column(Text, nullable=False, server_default="[]"))


class PlanModule(TimestampMixin, SQLModel, table=True):
    __tablename__ = "plan_modules"
    __table_args__ = (UniqueConstraint("plan_id", "module_id"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    plan_id: uuid.UUID = Field(foreign_key="plans.id", nullable=False, index=True)
    module_id: uuid.UUID = Field(foreign_key="modules.id", nullable=False, index=True)
    is_active: bool = Field(default=True)

    # Validated against services.limits.LIMIT_CATALOG before persistence
    limits: str = Field(default="{}", sa_column=Column(Text, nullable=False, server_default="{}"))


# ── Pydantic schemas ─────────────────────────────────────────

class ModuleCreate(BaseModel):
    code: str = PydanticField(min_length=1, max_length=100, pattern=_CODE_PATTERN)
    name: str = PydanticField(min_length=1, max_length=255)
    description: str | None = None
    icon: str | None = None
    is_core: bool = False
    is_active: bool = True
    display_order: int = 0
    metadata: dict[str, Any] = PydanticField(default_factory=dict)
    dependencies: list[str] = PydanticField(default_factory=list)


class ModuleUpdate(BaseModel):
    name: str | None = PydanticField(default=None, min_length=1, max_length=255)
    description: str | None = None
    icon: str | None = None
    is_core: bool | None = None
    is_active: bool | None = None
    display_order: int | None = None
    metadata: dict[str, Any] | None = None
    dependencies: list[str] | None = None


class ModuleRead(BaseModel):
    id: uuid.UUID
    code: str
    name: str
    description: str | None
    icon: str | None
    is_core: bool
    is_active: bool
    display_order: int
    metadata: dict[str, Any]
    dependencies: list[str]
    feature_level: str
    vertical_specific: bool
    created_at: datetime
    updated_at: datetime


class PlanCreate(BaseModel):
    code: str = PydanticField(min_length=1, max_length=100, pattern=_CODE_PATTERN)
    name: str = PydanticField(min_length=1, max_length=255)
    description: str | None = None
    price_monthly: float = PydanticField(default=0, ge=0)
    price_yearly: float = PydanticField(default=0, ge=0)
    currency: str = PydanticField(default="MXN", max_length=3)
    is_active: bool = True
    is_public: bool = True
    display_order: int = 0
    features: list[str] = PydanticField(default_factory=list)


class PlanUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price_monthly: float | None = Field(default=None, ge=0)
    price_yearly: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, max_length=3)
    is_active: bool | None = None
    is_public: bool | None = None
    display_order: int | None = None
    features: list[str] | None = None


class PlanRead(SQLModel):
    id: uuid.UUID
    code: str
    name: str
    description: str | None
    price_monthly: float
    price_yearly: float
    currency: str
    is_active: bool
    is_public: bool
    display_order: int
    features: list[str]
    created_at: datetime
    updated_at: datetime


class PlanModuleView(BaseModel):
    """One row of the plan assignment screen."""

    module_id: uuid.UUID
    code: str
    name: str
    is_core: bool
    assigned: bool
    assignment_id: uuid.UUID | None
    dependencies: list[str]
    required_by: list[str]
    missing_dependencies: list[str]
    is_blocked: bool
    cant_unassign: bool
    feature_level: str
    limits: dict[str, Any]


class ModuleAssignment(BaseModel):
    module_id: uuid.UUID
    is_active: bool = True
