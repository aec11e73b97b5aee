"""Business verticals, their sub-categories and module associations."""

import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import delete
from sqlmodel import select

from crm.api.deps import Auth, Session, SuperAdmin
from crm.api.v1.modules import get_module_or_404, module_to_read
from crm.models.base import utcnow
from crm.models.subscription import Module, ModuleRead
from crm.models.vertical import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    Vertical,
    VerticalCategory,
    VerticalCreate,
    VerticalModule,
    VerticalRead,
    VerticalUpdate,
)
from crm.services.plan_modules import load_dependency_codes, load_modules

router = APIRouter(prefix="/verticals", tags=["verticals"])


def _to_read(vertical: Vertical) -> VerticalRead:
    return VerticalRead.model_validate(vertical, from_attributes=True)


def _category_to_read(category: VerticalCategory) -> CategoryRead:
    return CategoryRead.model_validate(category, from_attributes=True)


# ── Verticals ─────────────────────────────────────────────────

@router.post("", response_model=VerticalRead, status_code=status.HTTP_201_CREATED)
async def create_vertical(
    body: VerticalCreate,
    admin: SuperAdmin,
    session: Session,
) -> VerticalRead:
    existing = await session.execute(select(Vertical).where(Vertical.code == body.code))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Vertical code '{body.code}' is already taken",
        )
    vertical = Vertical(**body.model_dump())
    session.add(vertical)
    await session.commit()
    await session.refresh(vertical)
    return _to_read(vertical)


@router.get("", response_model=list[VerticalRead])
async def list_verticals(admin: SuperAdmin, session: Session) -> list[VerticalRead]:
    result = await session.execute(
        select(Vertical).order_by(Vertical.display_order, Vertical.name)
    )
    return [_to_read(v) for v in result.scalars().all()]


@router.patch("/{vertical_id}", response_model=VerticalRead)
async def update_vertical(
    vertical_id: uuid.UUID,
    body: VerticalUpdate,
    admin: SuperAdmin,
    session: Session,
) -> VerticalRead:
    vertical = await _get_or_404(vertical_id, session)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(vertical, field, value)
    vertical.updated_at = utcnow()
    session.add(vertical)
    await session.commit()
    await session.refresh(vertical)
    return _to_read(vertical)


@router.delete("/{vertical_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vertical(
    vertical_id: uuid.UUID,
    admin: SuperAdmin,
    session: Session,
) -> None:
    vertical = await _get_or_404(vertical_id, session)
    await session.execute(delete(VerticalCategory).where(VerticalCategory.vertical_id == vertical.id))
    await session.execute(delete(VerticalModule).where(VerticalModule.vertical_id == vertical.id))
    await session.delete(vertical)
    await session.commit()


# ── Categories ────────────────────────────────────────────────

@router.get("/{vertical_id}/categories", response_model=list[CategoryRead])
async def list_categories(
    vertical_id: uuid.UUID,
    admin: SuperAdmin,
    session: Session,
) -> list[CategoryRead]:
    await _get_or_404(vertical_id, session)
    result = await session.execute(
        select(VerticalCategory)
        .where(VerticalCategory.vertical_id == vertical_id)
        .order_by(VerticalCategory.display_order, VerticalCategory.name)
    )
    return [_category_to_read(c) for c in result.scalars().all()]


@router.post(
    "/{vertical_id}/categories",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    vertical_id: uuid.UUID,
    body: CategoryCreate,
    admin: SuperAdmin,
    session: Session,
) -> CategoryRead:
    await _get_or_404(vertical_id, session)
    existing = await session.execute(
        select(VerticalCategory).where(
            VerticalCategory.vertical_id == vertical_id,
            VerticalCategory.code == body.code,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Category code '{body.code}' already exists in this vertical",
        )
    category = VerticalCategory(vertical_id=vertical_id, **body.model_dump())
    session.add(category)
    await session.commit()
    await session.refresh(category)
    return _category_to_read(category)


@router.patch("/{vertical_id}/categories/{category_id}", response_model=CategoryRead)
async def update_category(
    vertical_id: uuid.UUID,
    category_id: uuid.UUID,
    body: CategoryUpdate,
    admin: SuperAdmin,
    session: Session,
) -> CategoryRead:
    category = await _get_category_or_404(vertical_id, category_id, session)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(category, field, value)
    category.updated_at = utcnow()
    session.add(category)
    await session.commit()
    await session.refresh(category)
    return _category_to_read(category)


@router.delete(
    "/{vertical_id}/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_category(
    vertical_id: uuid.UUID,
    category_id: uuid.UUID,
    admin: SuperAdmin,
    session: Session,
) -> None:
    category = await _get_category_or_404(vertical_id, category_id, session)
    await session.delete(category)
    await session.commit()


# ── Modules ───────────────────────────────────────────────────

@router.get("/{code}/modules", response_model=list[ModuleRead])
async def list_vertical_modules(code: str, auth: Auth, session: Session) -> list[ModuleRead]:
    """Modules associated with a vertical, looked up by vertical code."""
    result = await session.execute(select(Vertical).where(Vertical.code == code))
    vertical = result.scalar_one_or_none()
    if vertical is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vertical not found")

    linked = await session.execute(
        select(Module)
        .join(VerticalModule, VerticalModule.module_id == Module.id)
        .where(VerticalModule.vertical_id == vertical.id)
        .order_by(Module.display_order, Module.name)
    )
    modules = list(linked.scalars().all())
    deps = await load_dependency_codes(session, await load_modules(session))
    return [module_to_read(m, deps.get(m.code, [])) for m in modules]


@router.post(
    "/{vertical_id}/modules/{module_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def assign_module(
    vertical_id: uuid.UUID,
    module_id: uuid.UUID,
    admin: SuperAdmin,
    session: Session,
) -> None:
    await _get_or_404(vertical_id, session)
    await get_module_or_404(module_id, session)
    existing = await session.execute(
        select(VerticalModule).where(
            VerticalModule.vertical_id == vertical_id,
            VerticalModule.module_id == module_id,
        )
    )
    if existing.scalar_one_or_none() is None:
        session.add(VerticalModule(vertical_id=vertical_id, module_id=module_id))
        await session.commit()


@router.delete(
    "/{vertical_id}/modules/{module_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def unassign_module(
    vertical_id: uuid.UUID,
    module_id: uuid.UUID,
    admin: SuperAdmin,
    session: Session,
) -> None:
    await _get_or_404(vertical_id, session)
    result = await session.execute(
        select(VerticalModule).where(
            VerticalModule.vertical_id == vertical_id,
            VerticalModule.module_id == module_id,
        )
    )
    link = result.scalar_one_or_none()
    if link is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Module is not associated with this vertical",
        )
    await session.delete(link)
    await session.commit()


# ── Internal helpers ──────────────────────────────────────────

async def _get_or_404(vertical_id: uuid.UUID, session) -> Vertical:
    vertical = await session.get(Vertical, vertical_id)
    if vertical is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vertical not found")
    return vertical


async def _get_category_or_404(
    vertical_id: uuid.UUID,
    category_id: uuid.UUID,
    session,
) -> VerticalCategory:
    result = await session.execute(
        select(VerticalCategory).where(
            VerticalCategory.id == category_id,
            VerticalCategory.vertical_id == vertical_id,
        )
    )
    category = result.scalar_one_or_none()
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category
