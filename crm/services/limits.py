"""Catalog and validation of the limits bag attached to a plan module."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class LimitsValidationError(ValueError):
    """One or more entries of a limits bag are invalid."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


@dataclass(frozen=True)
class LimitSpec:
    key: str
    kind: str  # "number", "boolean" or "enum"
    label: str
    category: str
    min: int | None = None
    options: tuple[str, ...] = ()
    applicable_modules: tuple[str, ...] = ()

    def applies_to(self, module_code: str | None) -> bool:
        if not self.applicable_modules or module_code is None:
            return True
        return module_code in self.applicable_modules


MODULE_LEVELS = ("basic", "advanced", "premium")

_SPECS = (
    LimitSpec("max_records", "number", "Máximo de registros", "general", min=0),
    LimitSpec("max_api_calls_daily", "number", "Llamadas API diarias", "api", min=0),
    LimitSpec("max_storage_mb", "number", "Almacenamiento (MB)", "general", min=0),
    LimitSpec(
        "max_active_appointments", "number", "Citas activas máximas", "specific",
        min=0, applicable_modules=("appointment",),
    ),
    LimitSpec("max_users_module", "number", "Usuarios por módulo", "users", min=1),
    LimitSpec("concurrent_sessions", "number", "Sesiones simultáneas", "users", min=1),
    LimitSpec("max_custom_fields", "number", "Campos personalizados", "general", min=0),
    LimitSpec("retention_days", "number", "Días de retención", "general", min=1),
    LimitSpec("advanced_features_enabled", "boolean", "Características avanzadas", "features"),
    LimitSpec("api_access", "boolean", "Acceso API", "api"),
    LimitSpec("export_enabled", "boolean", "Exportación habilitada", "features"),
    LimitSpec("bulk_operations", "boolean", "Operaciones masivas", "features"),
    LimitSpec("priority_support", "boolean", "Soporte prioritario", "support"),
    LimitSpec("module_level", "enum", "Nivel del módulo", "general", options=MODULE_LEVELS),
    LimitSpec("max_files_size_mb", "number", "Tamaño máximo de archivos (MB)", "storage", min=1),
    LimitSpec("max_templates", "number", "Plantillas máximas", "templates", min=0),
    LimitSpec("enable_ai_features", "boolean", "Características de IA", "features"),
    LimitSpec("max_reports", "number", "Reportes personalizados", "reports", min=0),
)

LIMIT_CATALOG: dict[str, LimitSpec] = {spec.key: spec for spec in _SPECS}

# Starting limits for a freshly assigned module
_DEFAULT_LIMITS: dict[str, dict[str, Any]] = {
    "appointment": {
        "max_active_appointments": 100,
        "max_records": 1000,
        "concurrent_sessions": 5,
        "retention_days": 90,
        "export_enabled": True,
        "module_level": "basic",
    },
    "crm": {
        "max_records": 2000,
        "max_custom_fields": 10,
        "bulk_operations": True,
        "export_enabled": True,
        "module_level": "basic",
    },
    "sales": {
        "max_records": 3000,
        "max_custom_fields": 15,
        "bulk_operations": True,
        "export_enabled": True,
        "module_level": "advanced",
        "max_reports": 5,
    },
}
_FALLBACK_LIMITS: dict[str, Any] = {
    "max_records": 1000,
    "concurrent_sessions": 3,
    "export_enabled": True,
    "module_level": "basic",
}


def default_limits(module_code: str) -> dict[str, Any]:
    return dict(_DEFAULT_LIMITS.get(module_code, _FALLBACK_LIMITS))


def _check_value(spec: LimitSpec, value: Any) -> str | None:
    if spec.kind == "boolean":
        if not isinstance(value, bool):
            return f"{spec.key}: expected a boolean"
        return None
    if spec.kind == "enum":
        if value not in spec.options:
            return f"{spec.key}: must be one of {', '.join(spec.options)}"
        return None
    # number; bool is an int subclass and is rejected explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return f"{spec.key}: expected a number"
    if spec.min is not None and value < spec.min:
        return f"{spec.key}: must be at least {spec.min}"
    return None


def validate_limits(limits: dict[str, Any], module_code: str | None = None) -> dict[str, Any]:
    """Check a limits bag against the catalog and return it unchanged.

    Raises:
        LimitsValidationError: listing every offending key.
    """
    errors: list[str] = []
    for key, value in limits.items():
        spec = LIMIT_CATALOG.get(key)
        if spec is None:
            errors.append(f"{key}: unknown limit")
            continue
        if not spec.applies_to(module_code):
            errors.append(f"{key}: not applicable to module {module_code}")
            continue
        error = _check_value(spec, value)
        if error:
            errors.append(error)
    if errors:
        raise LimitsValidationError(errors)
    return limits


def catalog_as_dict() -> list[dict[str, Any]]:
    return [
        {
            "key": spec.key,
            "kind": spec.kind,
            "label": spec.label,
            "category": spec.category,
            "min": spec.min,
            "options": list(spec.options),
            "applicable_modules": list(spec.applicable_modules),
        }
        for spec in _SPECS
    ]


@dataclass
class LimitCheck:
    allowed: bool
    reason: str | None = None
    current_count: int | None = None
    max_allowed: int | None = None


def evaluate_limit(
    limits: dict[str, Any],
    operation: str,
    resource_type: str,
    quantity: int = 1,
    current_count: int | None = None,
) -> LimitCheck:
    """Decide whether an operation fits the module's limits bag.

    ``current_count`` is only consulted for record creation against
    ``max_records``; pass None when it could not be read.
    """
    max_records = limits.get("max_records")
    if (
        operation == "create"
        and resource_type == "records"
        and max_records is not None
        and current_count is not None
        and current_count + quantity > max_records
    ):
        return LimitCheck(
            allowed=False,
            reason=f"Record limit reached ({current_count}/{max_records})",
            current_count=current_count,
            max_allowed=max_records,
        )
    if operation == "export" and limits.get("export_enabled") is False:
        return LimitCheck(allowed=False, reason="Export is not available on this plan")
    if resource_type == "ai_features" and limits.get("enable_ai_features") is False:
        return LimitCheck(allowed=False, reason="AI features are not available on this plan")
    return LimitCheck(allowed=True, current_count=current_count, max_allowed=max_records)
