"""Load modules, dependency codes and plan assignments into a ModuleGraph."""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crm.models.subscription import Module, ModuleDependency, PlanModule
from crm.services.module_graph import ModuleGraph


async def load_modules(session: AsyncSession) -> list[Module]:
    result = await session.execute(
        select(Module).order_by(Module.display_order, Module.name)
    )
    return list(result.scalars().all())


async def load_dependency_codes(
    session: AsyncSession,
    modules: list[Module],
) -> dict[str, list[str]]:
    """Map every module code to the codes it depends on."""
    code_by_id = {m.id: m.code for m in modules}
    deps: dict[str, list[str]] = {m.code: [] for m in modules}
    result = await session.execute(select(ModuleDependency))
    for row in result.scalars().all():
        module_code = code_by_id.get(row.module_id)
        dep_code = code_by_id.get(row.depends_on_id)
        if module_code and dep_code:
            deps[module_code].append(dep_code)
    for codes in deps.values():
        codes.sort()
    return deps


async def load_assignments(
    session: AsyncSession,
    plan_id: uuid.UUID,
) -> dict[uuid.UUID, PlanModule]:
    result = await session.execute(select(PlanModule).where(PlanModule.plan_id == plan_id))
    return {pm.module_id: pm for pm in result.scalars().all()}


async def build_plan_graph(
    session: AsyncSession,
    plan_id: uuid.UUID,
) -> tuple[list[Module], dict[uuid.UUID, PlanModule], ModuleGraph]:
    modules = await load_modules(session)
    deps = await load_dependency_codes(session, modules)
    assignments = await load_assignments(session, plan_id)
    assigned_codes = {
        m.code for m in modules
        if m.id in assignments and assignments[m.id].is_active
    }
    return modules, assignments, ModuleGraph(deps, assigned_codes)


async def set_dependencies(
    session: AsyncSession,
    module: Module,
    codes: list[str],
) -> list[str]:
    """Replace the dependency rows of ``module``.

    Raises ValueError for unknown codes or when the new edges would close a
    dependency cycle back to ``module``.
    """
    wanted = sorted(set(codes))
    if module.code in wanted:
        raise ValueError(f"Module '{module.code}' cannot depend on itself")

    targets: list[Module] = []
    if wanted:
        result = await session.execute(select(Module).where(Module.code.in_(wanted)))  # type: ignore[union-attr]
        targets = list(result.scalars().all())
    unknown = sorted(set(wanted) - {m.code for m in targets})
    if unknown:
        raise ValueError(f"Unknown dependency codes: {', '.join(unknown)}")

    graph = await load_dependency_codes(session, await load_modules(session))
    cycle = _path_back_to(module.code, wanted, graph)
    if cycle:
        raise ValueError(
            f"Dependency cycle: {' -> '.join([module.code, *cycle])}"
        )

    existing = await session.execute(
        select(ModuleDependency).where(ModuleDependency.module_id == module.id)
    )
    for row in existing.scalars().all():
        await session.delete(row)
    await session.flush()
    for target in targets:
        session.add(ModuleDependency(module_id=module.id, depends_on_id=target.id))
    return wanted


def _path_back_to(
    code: str,
    start: list[str],
    deps: dict[str, list[str]],
) -> list[str] | None:
    """Return a dependency path from one of ``start`` to ``code``, if any."""
    seen: set[str] = set()
    stack = [(c, [c]) for c in start]
    while stack:
        current, path = stack.pop()
        if current == code:
            return path
        if current in seen:
            continue
        seen.add(current)
        for nxt in deps.get(current, []):
            stack.append((nxt, [*path, nxt]))
    return None
