"""Dependency checks for module assignment on a subscription plan.

A ``ModuleGraph`` is built per request from the module dependency codes and
the set of module codes assigned to one plan. It answers which modules are
blocked (a dependency is unassigned) or locked (an assigned module depends on
them) and applies toggles to the in-memory assignment set. Persisting the
resulting set is the caller's job.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field


class ModuleToggleError(Exception):
    """Base class for refused assignment changes."""


class UnknownModule(ModuleToggleError):
    def __init__(self, code: str) -> None:
        super().__init__(f"Unknown module: {code}")
        self.code = code


class DependenciesRequired(ModuleToggleError):
    """Activation needs modules that are not assigned yet."""

    def __init__(self, code: str, missing: list[str]) -> None:
        super().__init__(
            f"Module '{code}' requires unassigned modules: {', '.join(missing)}"
        )
        self.code = code
        self.missing = missing


class RequiredByActiveModules(ModuleToggleError):
    """Deactivation refused while assigned modules depend on it."""

    def __init__(self, code: str, dependents: list[str]) -> None:
        super().__init__(
            f"Module '{code}' is required by active modules: {', '.join(dependents)}"
        )
        self.code = code
        self.dependents = dependents


@dataclass
class ToggleResult:
    code: str
    assigned: bool
    activated: list[str] = field(default_factory=list)
    deactivated: list[str] = field(default_factory=list)


class ModuleGraph:
    def __init__(
        self,
        dependencies: Mapping[str, Iterable[str]],
        assigned: Iterable[str] = (),
    ) -> None:
        self.dependencies: dict[str, list[str]] = {
            code: list(deps) for code, deps in dependencies.items()
        }
        self.assigned: set[str] = set(assigned)

    def _require(self, code: str) -> None:
        if code not in self.dependencies:
            raise UnknownModule(code)

    def missing_dependencies(self, code: str) -> list[str]:
        self._require(code)
        return [dep for dep in self.dependencies[code] if dep not in self.assigned]

    def is_blocked(self, code: str) -> bool:
        return bool(self.missing_dependencies(code))

    def requiring_modules(self, code: str) -> list[str]:
        """Every module declaring ``code`` as a dependency, assigned or not."""
        self._require(code)
        return sorted(m for m, deps in self.dependencies.items() if code in deps)

    def active_dependents(self, code: str) -> list[str]:
        return [m for m in self.requiring_modules(code) if m in self.assigned]

    def cant_unassign(self, code: str) -> bool:
        return bool(self.active_dependents(code))

    def transitive_missing(self, code: str) -> list[str]:
        """Unassigned dependencies of ``code``, deepest first."""
        self._require(code)
        ordered: list[str] = []
        seen = {code}

        def visit(current: str) -> None:
            for dep in self.dependencies.get(current, []):
                if dep in seen:
                    continue
                seen.add(dep)
                visit(dep)
                if dep not in self.assigned:
                    ordered.append(dep)

        visit(code)
        return ordered

    def toggle(self, code: str, activate_dependencies: bool = False) -> ToggleResult:
        """Flip the assignment of ``code``.

        Turning a module on with missing dependencies raises
        ``DependenciesRequired`` unless ``activate_dependencies`` is set, in
        which case every missing dependency is assigned in the same batch.
        Turning a module off while assigned modules depend on it raises
        ``RequiredByActiveModules``.
        """
        self._require(code)

        if code in self.assigned:
            dependents = self.active_dependents(code)
            if dependents:
                raise RequiredByActiveModules(code, dependents)
            self.assigned.discard(code)
            return ToggleResult(code=code, assigned=False, deactivated=[code])

        missing = self.transitive_missing(code)
        if missing and not activate_dependencies:
            raise DependenciesRequired(code, missing)
        self.assigned.update(missing)
        self.assigned.add(code)
        return ToggleResult(code=code, assigned=True, activated=[*missing, code])

    def validate(self) -> dict[str, list[str]]:
        """Assigned modules with unassigned dependencies; empty when consistent."""
        problems: dict[str, list[str]] = {}
        for code in sorted(self.assigned):
            if code not in self.dependencies:
                continue
            missing = self.missing_dependencies(code)
            if missing:
                problems[code] = missing
        return problems


def feature_level(metadata: Mapping | None) -> str:
    """Display tier derived from module metadata."""
    if not metadata:
        return "basic"
    levels = {metadata.get("importance"), metadata.get("complexity")}
    if "high" in levels:
        return "premium"
    if "medium" in levels:
        return "advanced"
    return "basic"
