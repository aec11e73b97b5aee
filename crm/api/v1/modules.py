"""Module catalog administration (super admin only)."""

import uuid

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import delete, or_
from sqlmodel import select

from crm.api.deps import Session, SuperAdmin
from crm.models.base import dump_json, load_json, utcnow
from crm.models.subscription import (
    Module,
    ModuleCreate,
    ModuleDependency,
    ModuleRead,
    ModuleUpdate,
    PlanModule,
)
from crm.models.vertical import VerticalModule
from crm.services.module_graph import feature_level
from crm.services.plan_modules import load_dependency_codes, load_modules, set_dependencies

router = APIRouter(prefix="/modules", tags=["modules"])


def module_to_read(module: Module, dependencies: list[str]) -> ModuleRead:
    metadata = load_json(module.metadata_json, {})
    return ModuleRead(
        id=module.id,
        code=module.code,
        name=module.name,
        description=module.description,
        icon=module.icon,
        is_core=module.is_core,
        is_active=module.is_active,
        display_order=module.display_order,
        metadata=metadata,
        dependencies=dependencies,
        feature_level=feature_level(metadata),
        vertical_specific=metadata.get("vertical_specific") is True,
        created_at=module.created_at,
        updated_at=module.updated_at,
    )


@router.post("", response_model=ModuleRead, status_code=status.HTTP_201_CREATED)
async def create_module(
    body: ModuleCreate,
    admin: SuperAdmin,
    session: Session,
) -> ModuleRead:
    existing = await session.execute(select(Module).where(Module.code == body.code))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Module code '{body.code}' is already taken",
        )

    module = Module(
        code=body.code,
        name=body.name,
        description=body.description,
        icon=body.icon,
        is_core=body.is_core,
        is_active=body.is_active,
        display_order=body.display_order,
        metadata_json=dump_json(body.metadata),
    )
    session.add(module)
    await session.flush()

    try:
        dependencies = await set_dependencies(session, module, body.dependencies)
    except ValueError as exc:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc),
        ) from exc

    await session.commit()
    await session.refresh(module)
    return module_to_read(module, dependencies)


@router.get("", response_model=list[ModuleRead])
async def list_modules(admin: SuperAdmin, session: Session) -> list[ModuleRead]:
    modules = await load_modules(session)
    deps = await load_dependency_codes(session, modules)
    return [module_to_read(m, deps[m.code]) for m in modules]


@router.get("/{module_id}", response_model=ModuleRead)
async def get_module(
    module_id: uuid.UUID,
    admin: SuperAdmin,
    session: Session,
) -> ModuleRead:
    module = await get_module_or_404(module_id, session)
    deps = await load_dependency_codes(session, await load_modules(session))
    return module_to_read(module, deps.get(module.code, []))


@router.patch("/{module_id}", response_model=ModuleRead)
async def update_module(
    module_id: uuid.UUID,
    body: ModuleUpdate,
    admin: SuperAdmin,
    session: Session,
) -> ModuleRead:
    module = await get_module_or_404(module_id, session)
    update_data = body.model_dump(exclude_unset=True)

    dependencies = update_data.pop("dependencies", None)
    if "metadata" in update_data:
        module.metadata_json = dump_json(update_data.pop("metadata") or {})
    for field, value in update_data.items():
        setattr(module, field, value)

    module.updated_at = utcnow()
    session.add(module)

    if dependencies is not None:
        try:
            await set_dependencies(session, module, dependencies)
        except ValueError as exc:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc),
            ) from exc

    await session.commit()
    await session.refresh(module)
    deps = await load_dependency_codes(session, await load_modules(session))
    return module_to_read(module, deps.get(module.code, []))


@router.delete("/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_module(
    module_id: uuid.UUID,
    admin: SuperAdmin,
    session: Session,
) -> None:
    module = await get_module_or_404(module_id, session)
    if module.is_core:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Core modules cannot be deleted",
        )

    dependents = await session.execute(
        select(Module.code)
        .join(ModuleDependency, ModuleDependency.module_id == Module.id)
        .where(ModuleDependency.depends_on_id == module.id)
    )
    codes = sorted(dependents.scalars().all())
    if codes:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Module is required by: {', '.join(codes)}",
        )

    await session.execute(
        delete(ModuleDependency).where(
            or_(ModuleDependency.module_id == module.id, ModuleDependency.depends_on_id == module.id)
        )
    )
    await session.execute(delete(PlanModule).where(PlanModule.module_id == module.id))
    await session.execute(delete(VerticalModule).where(VerticalModule.module_id == module.id))
    await session.delete(module)
    await session.commit()


# ── Helpers ───────────────────────────────────────────────────

async def get_module_or_404(module_id: uuid.UUID, session) -> Module:
    module = await session.get(Module, module_id)
    if module is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Module not found")
    return module
