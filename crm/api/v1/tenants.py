"""Tenant administration (super admin) and current-tenant lookup."""

import uuid

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field
from sqlmodel import select

from crm.api.deps import Auth, Session, SuperAdmin
from crm.models.base import utcnow
from crm.models.subscription import Plan
from crm.models.tenant import Tenant, TenantRead, TenantUpdate

router = APIRouter(prefix="/tenants", tags=["tenants"])


class TenantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(max_length=100, pattern=r"^[a-z0-9\-]+$")
    plan_id: uuid.UUID | None = None


def _to_read(tenant: Tenant) -> TenantRead:
    return TenantRead(
        id=tenant.id,
        name=tenant.name,
        slug=tenant.slug,
        is_active=tenant.is_active,
        plan_id=tenant.plan_id,
        created_at=tenant.created_at,
    )


@router.get("/me", response_model=TenantRead)
async def get_current_tenant(auth: Auth, session: Session) -> TenantRead:
    """Return the tenant the current session resolves to."""
    return _to_read(await _get_or_404(auth.tenant_id, session))


@router.post("", response_model=TenantRead, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    body: TenantCreate,
    admin: SuperAdmin,
    session: Session,
) -> TenantRead:
    existing = await session.execute(select(Tenant).where(Tenant.slug == body.slug))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Slug '{body.slug}' is already taken",
        )
    if body.plan_id is not None:
        await _require_plan(body.plan_id, session)

    tenant = Tenant(name=body.name, slug=body.slug, plan_id=body.plan_id)
    session.add(tenant)
    await session.commit()
    await session.refresh(tenant)
    return _to_read(tenant)


@router.get("", response_model=list[TenantRead])
async def list_tenants(admin: SuperAdmin, session: Session) -> list[TenantRead]:
    result = await session.execute(select(Tenant).order_by(Tenant.name))
    return [_to_read(t) for t in result.scalars().all()]


@router.patch("/{tenant_id}", response_model=TenantRead)
async def update_tenant(
    tenant_id: uuid.UUID,
    body: TenantUpdate,
    admin: SuperAdmin,
    session: Session,
) -> TenantRead:
    tenant = await _get_or_404(tenant_id, session)
    update_data = body.model_dump(exclude_unset=True)
    if update_data.get("plan_id") is not None:
        await _require_plan(update_data["plan_id"], session)

    for field, value in update_data.items():
        setattr(tenant, field, value)

    tenant.updated_at = utcnow()
    session.add(tenant)
    await session.commit()
    await session.refresh(tenant)
    return _to_read(tenant)


# ── Internal helpers ──────────────────────────────────────────

async def _get_or_404(tenant_id: uuid.UUID, session) -> Tenant:
    tenant = await session.get(Tenant, tenant_id)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    return tenant


async def _require_plan(plan_id: uuid.UUID, session) -> None:
    if await session.get(Plan, plan_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
