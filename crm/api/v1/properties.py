"""Property listing CRUD, scoped to tenant_id.

Create and update accept nested ``location`` and ``features`` blocks which
are flattened onto the row.
"""

import uuid

from fastapi import APIRouter, HTTPException, Query, status
from sqlmodel import select

from crm.api.deps import Auth, Session
from crm.api.v1.agents import require_agent
from crm.models.base import dump_json, load_json, utcnow
from crm.models.property import (
    MediaItem,
    OperationType,
    Property,
    PropertyCreate,
    PropertyFeatures,
    PropertyLocation,
    PropertyRead,
    PropertyStatus,
    PropertyUpdate,
)
from crm.services.property_match import properties_for_appointment

router = APIRouter(prefix="/properties", tags=["properties"])


def _to_read(prop: Property) -> PropertyRead:
    data = prop.model_dump(exclude={"media"})
    return PropertyRead(**data, media=load_json(prop.media, []))


def flatten_location(location: PropertyLocation | None) -> dict:
    if location is None:
        return {}
    data = location.model_dump(exclude_unset=True, exclude={"coordinates"})
    if location.coordinates is not None:
        data["latitude"] = location.coordinates.lat
        data["longitude"] = location.coordinates.lng
    return {k: v for k, v in data.items() if v is not None}


def flatten_features(features: PropertyFeatures | None) -> dict:
    if features is None:
        return {}
    return features.model_dump(exclude_unset=True, exclude_none=True)


def serialize_media(media: list[MediaItem]) -> str:
    """Keep known media keys; order defaults to list position."""
    items = []
    for position, item in enumerate(media):
        entry = item.model_dump()
        if entry["display_order"] is None:
            entry["display_order"] = position
        items.append(entry)
    return dump_json(items)


@router.post("", response_model=PropertyRead, status_code=status.HTTP_201_CREATED)
async def create_property(
    body: PropertyCreate,
    auth: Auth,
    session: Session,
) -> PropertyRead:
    if body.agent_id is not None:
        await require_agent(body.agent_id, auth.tenant_id, session)

    prop = Property(
        tenant_id=auth.tenant_id,
        agent_id=body.agent_id,
        title=body.title,
        code=body.code,
        description=body.description,
        property_type=body.property_type,
        operation_type=body.operation_type,
        price=body.price,
        currency=body.currency,
        status=body.status,
        media=serialize_media(body.media),
        is_active=body.is_active,
        **flatten_location(body.location),
        **flatten_features(body.features),
    )
    session.add(prop)
    await session.commit()
    await session.refresh(prop)
    return _to_read(prop)


@router.get("", response_model=list[PropertyRead])
async def list_properties(
    auth: Auth,
    session: Session,
    property_type: str | None = Query(default=None),
    operation_type: OperationType | None = Query(default=None),
    prop_status: PropertyStatus | None = Query(default=None, alias="status"),
    city: str | None = Query(default=None),
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    min_bedrooms: int | None = Query(default=None, ge=0),
    agent_id: uuid.UUID | None = Query(default=None),
) -> list[PropertyRead]:
    stmt = select(Property).where(Property.tenant_id == auth.tenant_id)
    if property_type is not None:
        stmt = stmt.where(Property.property_type == property_type)
    if operation_type is not None:
        stmt = stmt.where(Property.operation_type == operation_type)
    if prop_status is not None:
        stmt = stmt.where(Property.status == prop_status)
    if city is not None:
        stmt = stmt.where(Property.city == city)
    if min_price is not None:
        stmt = stmt.where(Property.price >= min_price)
    if max_price is not None:
        stmt = stmt.where(Property.price <= max_price)
    if min_bedrooms is not None:
        stmt = stmt.where(Property.bedrooms >= min_bedrooms)
    if agent_id is not None:
        stmt = stmt.where(Property.agent_id == agent_id)

    result = await session.execute(
        stmt.order_by(Property.created_at.desc())  # type: ignore[union-attr]
    )
    return [_to_read(p) for p in result.scalars().all()]


@router.get("/for-appointment", response_model=list[PropertyRead])
async def list_properties_for_appointment(
    auth: Auth,
    session: Session,
    lead_id: uuid.UUID = Query(...),
    agent_id: uuid.UUID | None = Query(default=None),
) -> list[PropertyRead]:
    """Up to ten available listings matching the lead's preferences."""
    matches = await properties_for_appointment(session, auth.tenant_id, lead_id, agent_id)
    return [_to_read(p) for p in matches]


@router.get("/{property_id}", response_model=PropertyRead)
async def get_property(
    property_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> PropertyRead:
    return _to_read(await _get_or_404(property_id, auth.tenant_id, session))


@router.patch("/{property_id}", response_model=PropertyRead)
async def update_property(
    property_id: uuid.UUID,
    body: PropertyUpdate,
    auth: Auth,
    session: Session,
) -> PropertyRead:
    prop = await _get_or_404(property_id, auth.tenant_id, session)

    update_data = body.model_dump(exclude_unset=True, exclude={"location", "features", "media"})
    if update_data.get("agent_id") is not None:
        await require_agent(update_data["agent_id"], auth.tenant_id, session)

    update_data.update(flatten_location(body.location))
    update_data.update(flatten_features(body.features))
    if body.media is not None:
        update_data["media"] = serialize_media(body.media)

    for field, value in update_data.items():
        setattr(prop, field, value)

    prop.updated_at = utcnow()
    session.add(prop)
    await session.commit()
    await session.refresh(prop)
    return _to_read(prop)


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_property(
    property_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> None:
    prop = await _get_or_404(property_id, auth.tenant_id, session)
    await session.delete(prop)
    await session.commit()


# ── Internal helpers ──────────────────────────────────────────

async def _get_or_404(
    property_id: uuid.UUID,
    tenant_id: uuid.UUID,
    session,
) -> Property:
    stmt = select(Property).where(Property.id == property_id, Property.tenant_id == tenant_id)
    result = await session.execute(stmt)
    prop = result.scalar_one_or_none()
    if prop is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")
    return prop
