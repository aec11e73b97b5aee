"""Subscription plans and their module assignments.

Plan administration is restricted to super admins; the public pricing list
is readable by any authenticated session.
"""

import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import delete
from sqlmodel import select

from crm.api.deps import Auth, Session, SuperAdmin
from crm.models.base import dump_json, load_json, utcnow
from crm.models.subscription import (
    Module,
    ModuleAssignment,
    Plan,
    PlanCreate,
    PlanModule,
    PlanModuleView,
    PlanRead,
    PlanUpdate,
)
from crm.models.tenant import Tenant
from crm.services.limits import (
    LimitsValidationError,
    catalog_as_dict,
    default_limits,
    validate_limits,
)
from crm.services.module_graph import (
    DependenciesRequired,
    ModuleGraph,
    RequiredByActiveModules,
    feature_level,
)
from crm.services.plan_modules import build_plan_graph

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plans", tags=["plans"])


class ToggleRequest(BaseModel):
    activate_dependencies: bool = False


class ToggleResponse(BaseModel):
    code: str
    assigned: bool
    activated: list[str]
    deactivated: list[str]
    modules: list[PlanModuleView]


def _to_read(plan: Plan) -> PlanRead:
    return PlanRead(
        id=plan.id,
        code=plan.code,
        name=plan.name,
        description=plan.description,
        price_monthly=plan.price_monthly,
        price_yearly=plan.price_yearly,
        currency=plan.currency,
        is_active=plan.is_active,
        is_public=plan.is_public,
        display_order=plan.display_order,
        features=load_json(plan.features, []),
        created_at=plan.created_at,
        updated_at=plan.updated_at,
    )


def _module_views(
    modules: list[Module],
    assignments: dict[uuid.UUID, PlanModule],
    graph: ModuleGraph,
) -> list[PlanModuleView]:
    views = []
    for module in modules:
        assignment = assignments.get(module.id)
        views.append(
            PlanModuleView(
                module_id=module.id,
                code=module.code,
                name=module.name,
                is_core=module.is_core,
                assigned=module.code in graph.assigned,
                assignment_id=assignment.id if assignment else None,
                dependencies=graph.dependencies[module.code],
                required_by=graph.requiring_modules(module.code),
                missing_dependencies=graph.missing_dependencies(module.code),
                is_blocked=graph.is_blocked(module.code),
                cant_unassign=graph.cant_unassign(module.code),
                feature_level=feature_level(load_json(module.metadata_json, {})),
                limits=load_json(assignment.limits, {}) if assignment else {},
            )
        )
    return views


# ── Public ────────────────────────────────────────────────────

@router.get("/pricing", response_model=list[PlanRead])
async def list_public_plans(auth: Auth, session: Session) -> list[PlanRead]:
    result = await session.execute(
        select(Plan)
        .where(Plan.is_public == True, Plan.is_active == True)  # noqa: E712
        .order_by(Plan.display_order, Plan.price_monthly)
    )
    return [_to_read(p) for p in result.scalars().all()]


@router.get("/limits/catalog", response_model=list[dict[str, Any]])
async def get_limits_catalog(auth: Auth) -> list[dict[str, Any]]:
    """Keys accepted in a plan module's limits bag, with their constraints."""
    return catalog_as_dict()


# ── Plan CRUD ─────────────────────────────────────────────────

@router.post("", response_model=PlanRead, status_code=status.HTTP_201_CREATED)
async def create_plan(
    body: PlanCreate,
    admin: SuperAdmin,
    session: Session,
) -> PlanRead:
    existing = await session.execute(select(Plan).where(Plan.code == body.code))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Plan code '{body.code}' is already taken",
        )

    plan = Plan(
        **body.model_dump(exclude={"features"}),
        features=dump_json(body.features),
    )
    session.add(plan)
    await session.commit()
    await session.refresh(plan)
    return _to_read(plan)


@router.get("", response_model=list[PlanRead])
async def list_plans(admin: SuperAdmin, session: Session) -> list[PlanRead]:
    result = await session.execute(select(Plan).order_by(Plan.display_order, Plan.name))
    return [_to_read(p) for p in result.scalars().all()]


@router.get("/{plan_id}", response_model=PlanRead)
async def get_plan(plan_id: uuid.UUID, admin: SuperAdmin, session: Session) -> PlanRead:
    return _to_read(await _get_or_404(plan_id, session))


@router.patch("/{plan_id}", response_model=PlanRead)
async def update_plan(
    plan_id: uuid.UUID,
    body: PlanUpdate,
    admin: SuperAdmin,
    session: Session,
) -> PlanRead:
    plan = await _get_or_404(plan_id, session)
    update_data = body.model_dump(exclude_unset=True)
    if "features" in update_data:
        update_data["features"] = dump_json(update_data["features"] or [])

    for field, value in update_data.items():
        setattr(plan, field, value)

    plan.updated_at = utcnow()
    session.add(plan)
    await session.commit()
    await session.refresh(plan)
    return _to_read(plan)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(plan_id: uuid.UUID, admin: SuperAdmin, session: Session) -> None:
    plan = await _get_or_404(plan_id, session)
    subscribed = await session.execute(select(Tenant.id).where(Tenant.plan_id == plan.id).limit(1))
    if subscribed.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Plan is in use by at least one tenant",
        )
    await session.execute(delete(PlanModule).where(PlanModule.plan_id == plan.id))
    await session.delete(plan)
    await session.commit()


# ── Module assignments ────────────────────────────────────────

@router.get("/{plan_id}/modules", response_model=list[PlanModuleView])
async def get_plan_modules(
    plan_id: uuid.UUID,
    admin: SuperAdmin,
    session: Session,
) -> list[PlanModuleView]:
    await _get_or_404(plan_id, session)
    modules, assignments, graph = await build_plan_graph(session, plan_id)
    return _module_views(modules, assignments, graph)


@router.post("/{plan_id}/modules/{module_id}/toggle", response_model=ToggleResponse)
async def toggle_plan_module(
    plan_id: uuid.UUID,
    module_id: uuid.UUID,
    body: ToggleRequest,
    admin: SuperAdmin,
    session: Session,
) -> ToggleResponse:
    """Assign or unassign one module, honouring dependencies.

    Activating a module with unassigned dependencies answers 409 listing
    them, unless ``activate_dependencies`` is set. Deactivating a module
    other assigned modules depend on always answers 409.
    """
    await _get_or_404(plan_id, session)
    modules, assignments, graph = await build_plan_graph(session, plan_id)
    by_code = {m.code: m for m in modules}
    module = next((m for m in modules if m.id == module_id), None)
    if module is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Module not found")

    try:
        outcome = graph.toggle(module.code, activate_dependencies=body.activate_dependencies)
    except DependenciesRequired as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(exc), "missing": exc.missing},
        ) from exc
    except RequiredByActiveModules as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(exc), "dependents": exc.dependents},
        ) from exc

    for code in outcome.activated:
        _assign(session, plan_id, by_code[code], assignments)
    for code in outcome.deactivated:
        assignment = assignments.pop(by_code[code].id, None)
        if assignment is not None:
            await session.delete(assignment)

    await session.commit()
    logger.info(
        "Plan %s: module %s %s (activated=%s)",
        plan_id, module.code, "assigned" if outcome.assigned else "unassigned", outcome.activated,
    )

    modules, assignments, graph = await build_plan_graph(session, plan_id)
    return ToggleResponse(
        code=outcome.code,
        assigned=outcome.assigned,
        activated=outcome.activated,
        deactivated=outcome.deactivated,
        modules=_module_views(modules, assignments, graph),
    )


@router.put("/{plan_id}/modules", response_model=list[PlanModuleView])
async def save_plan_modules(
    plan_id: uuid.UUID,
    body: list[ModuleAssignment],
    admin: SuperAdmin,
    session: Session,
) -> list[PlanModuleView]:
    """Replace the plan's module set in one batch.

    The list is the complete desired state; modules left out or sent with
    ``is_active=false`` are unassigned.
    """
    await _get_or_404(plan_id, session)
    modules, assignments, graph = await build_plan_graph(session, plan_id)
    by_id = {m.id: m for m in modules}

    unknown = [str(a.module_id) for a in body if a.module_id not in by_id]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown modules: {', '.join(unknown)}",
        )

    wanted = {a.module_id for a in body if a.is_active}
    proposed = ModuleGraph(graph.dependencies, {by_id[mid].code for mid in wanted})
    problems = proposed.validate()
    if problems:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Unsatisfied module dependencies", "missing": problems},
        )

    for module_id, assignment in list(assignments.items()):
        if module_id not in wanted:
            await session.delete(assignment)
            assignments.pop(module_id)
    for module_id in wanted:
        _assign(session, plan_id, by_id[module_id], assignments)

    await session.commit()
    modules, assignments, graph = await build_plan_graph(session, plan_id)
    return _module_views(modules, assignments, graph)


@router.put("/{plan_id}/modules/{module_id}/limits", response_model=PlanModuleView)
async def set_plan_module_limits(
    plan_id: uuid.UUID,
    module_id: uuid.UUID,
    body: dict[str, Any],
    admin: SuperAdmin,
    session: Session,
) -> PlanModuleView:
    await _get_or_404(plan_id, session)
    modules, assignments, graph = await build_plan_graph(session, plan_id)
    module = next((m for m in modules if m.id == module_id), None)
    assignment = assignments.get(module_id)
    if module is None or assignment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Module is not assigned to this plan",
        )

    try:
        validate_limits(body, module.code)
    except LimitsValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Invalid limits", "errors": exc.errors},
        ) from exc

    assignment.limits = dump_json(body)
    assignment.updated_at = utcnow()
    session.add(assignment)
    await session.commit()
    await session.refresh(assignment)

    return next(v for v in _module_views(modules, assignments, graph) if v.module_id == module_id)


# ── Internal helpers ──────────────────────────────────────────

def _assign(
    session,
    plan_id: uuid.UUID,
    module: Module,
    assignments: dict[uuid.UUID, PlanModule],
) -> None:
    assignment = assignments.get(module.id)
    if assignment is None:
        assignment = PlanModule(
            plan_id=plan_id,
            module_id=module.id,
            limits=dump_json(default_limits(module.code)),
        )
        assignments[module.id] = assignment
    elif assignment.is_active:
        return
    assignment.is_active = True
    assignment.updated_at = utcnow()
    session.add(assignment)


async def _get_or_404(plan_id: uuid.UUID, session) -> Plan:
    plan = await session.get(Plan, plan_id)
    if plan is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    return plan
