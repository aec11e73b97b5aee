"""Property model: a listing offered for sale or rent."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import Text
from sqlmodel import Column, Field, SQLModel

from crm.models.base import TimestampMixin, new_uuid


class OperationType(StrEnum):
    SALE = "sale"
    RENT = "rent"


class PropertyStatus(StrEnum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"
    RENTED = "rented"


class Property(TimestampMixin, SQLModel, table=True):
    __tablename__ = "properties"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    agent_id: uuid.UUID | None = Field(
        default=None, foreign_key="agents.id", nullable=True, index=True,
    )

    title: str = Field(max_length=255, nullable=False)
    code: str | None = Field(default=None, max_length=100, index=True)
    description: str | None = Field(default=None, sa_column=Column(Text))
    property_type: str = Field(max_length=100, nullable=False, index=True)
    operation_type: OperationType = Field(default=OperationType.SALE)
    price: float = Field(default=0)
    currency: str = Field(default="MXN", max_length=3)
    status: PropertyStatus = Field(default=PropertyStatus.AVAILABLE, index=True)

    # Location (flattened)
    address: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=255, index=True)
    state: str | None = Field(default=None, max_length=255)
    zip_code: str | None = Field(default=None, max_length=20)
    country: str = Field(default="México", max_length=100)
    latitude: float | None = Field(default=None)
    longitude: float | None = Field(default=None)
    show_approximate_location: bool = Field(default=False)

    # Features (flattened)
    bedrooms: int | None = Field(default=None)
    bathrooms: float | None = Field(default=None)
    area: float | None = Field(default=None)
    parking_spots: int | None = Field(default=None)
    year_built: int | None = Field(default=None)
    has_pool: bool = Field(default=False)
    has_garden: bool = Field(default=False)
    has_garage: bool = Field(default=False)
    has_security: bool = Field(default=False)

    # [{"id", "type", "url", "is_primary", "title", "thumbnail", "display_order"}]
    media: str = Field(default="[]", sa_column=Column(Text, nullable=False, server_default="[]"))

    is_active: bool = Field(default=True)


# ── Pydantic schemas ─────────────────────────────────────────

class Coordinates(SQLModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class PropertyLocation(SQLModel):
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    coordinates: Coordinates | None = None
    show_approximate_location: bool | None = None


class PropertyFeatures(SQLModel):
    bedrooms: int | None = Field(default=None, ge=0)
    bathrooms: float | None = Field(default=None, ge=0)
    area: float | None = Field(default=None, ge=0)
    parking_spots: int | None = Field(default=None, ge=0)
    year_built: int | None = None
    has_pool: bool | None = None
    has_garden: bool | None = None
    has_garage: bool | None = None
    has_security: bool | None = None


class MediaItem(SQLModel):
    id: str | None = None
    type: str = "image"
    url: str
    is_primary: bool = False
    title: str | None = None
    thumbnail: str | None = None
    display_order: int | None = None


class PropertyCreate(SQLModel):
    title: str = Field(min_length=1, max_length=255)
    code: str | None = Field(default=None, max_length=100)
    description: str | None = None
    property_type: str = Field(min_length=1, max_length=100)
    operation_type: OperationType = OperationType.SALE
    price: float = Field(default=0, ge=0)
    currency: str = Field(default="MXN", max_length=3)
    status: PropertyStatus = PropertyStatus.AVAILABLE
    agent_id: uuid.UUID | None = None
    location: PropertyLocation | None = None
    features: PropertyFeatures | None = None
    media: list[MediaItem] = Field(default_factory=list)
    is_active: bool = True


class PropertyUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    code: str | None = None
    description: str | None = None
    property_type: str | None = None
    operation_type: OperationType | None = None
    price: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, max_length=3)
    status: PropertyStatus | None = None
    agent_id: uuid.UUID | None = None
    location: PropertyLocation | None = None
    features: PropertyFeatures | None = None
    media: list[MediaItem] | None = None
    is_active: bool | None = None


class PropertyRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    agent_id: uuid.UUID | None
    title: str
    code: str | None
    description: str | None
    property_type: str
    operation_type: OperationType
    price: float
    currency: str
    status: PropertyStatus
    address: str | None
    city: str | None
    state: str | None
    zip_code: str | None
    country: str
    latitude: float | None
    longitude: float | None
    show_approximate_location: bool
    bedrooms: int | None
    bathrooms: float | None
    area: float | None
    parking_spots: int | None
    year_built: int | None
    has_pool: bool
    has_garden: bool
    has_garage: bool
    has_security: bool
    media: list[MediaItem]
    is_active: bool
    created_at: datetime
    updated_at: datetime
