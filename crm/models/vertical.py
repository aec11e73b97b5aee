"""Vertical models: business-domain groupings of modules."""

import uuid
from datetime import datetime

from sqlalchemy import Text, UniqueConstraint
from sqlmodel import Column, Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid


class Vertical(TimestampMixin, SQLModel, table=True):
    __tablename__ = "verticals"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    code: str = Field(max_length=100, unique=True, nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)
    description: str | None = Field(default=None, sa_column=Column(Text))
    icon: str | None = Field(default=None, max_length=100)
    is_active: bool = Field(default=True)
    display_order: int = Field(default=0)


class VerticalCategory(TimestampMixin, SQLModel, table=True):
    __tablename__ = "vertical_categories"
    __table_args__ = (UniqueConstraint("vertical_id", "code"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    vertical_id: uuid.UUID = Field(foreign_key="verticals.id", nullable=False, index=True)
    code: str = Field(max_length=100, nullable=False)
    name: str = Field(max_length=255, nullable=False)
    description: str | None = Field(default=None, sa_column=Column(Text))
    is_active: bool = Field(default=True)
    display_order: int = Field(default=0)


class VerticalModule(SQLModel, table=True):
    __tablename__ = "vertical_modules"
    __table_args__ = (UniqueConstraint("vertical_id", "module_id"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    vertical_id: uuid.UUID = Field(foreign_key="verticals.id", nullable=False, index=True)
    module_id: uuid.UUID = Field(foreign_key="modules.id", nullable=False, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class VerticalCreate(SQLModel):
    code: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    icon: str | None = None
    is_active: bool = True
    display_order: int = 0


class VerticalUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    icon: str | None = None
    is_active: bool | None = None
    display_order: int | None = None


class VerticalRead(SQLModel):
    id: uuid.UUID
    code: str
    name: str
    description: str | None
    icon: str | None
    is_active: bool
    display_order: int
    created_at: datetime
    updated_at: datetime


class CategoryCreate(SQLModel):
    code: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    is_active: bool = True
    display_order: int = 0


class CategoryUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    is_active: bool | None = None
    display_order: int | None = None


class CategoryRead(SQLModel):
    id: uuid.UUID
    vertical_id: uuid.UUID
    code: str
    name: str
    description: str | None
    is_active: bool
    display_order: int
