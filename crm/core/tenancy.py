"""Tenant resolution from session claims."""

import uuid

SUPER_ADMIN_ROLE = "super_admin"


class TenantResolutionError(Exception):
    """Base class for failures deriving the active tenant."""


class Unauthenticated(TenantResolutionError):
    pass


class TenantConfigurationError(TenantResolutionError):
    pass


class MissingTenant(TenantResolutionError):
    pass


def resolve_tenant_id(
    claims: dict | None,
    default_tenant_id: uuid.UUID | None,
) -> uuid.UUID:
    """Return the tenant a session acts on.

    Super admins are not bound to a tenant; they operate on the configured
    default tenant. Every other role must carry a ``tid`` claim.
    """
    if claims is None:
        raise Unauthenticated("No authenticated session")

    if claims.get("role") == SUPER_ADMIN_ROLE:
        if default_tenant_id is None:
            raise TenantConfigurationError("DEFAULT_TENANT_ID is not configured")
        return default_tenant_id

    raw = claims.get("tid")
    if not raw:
        raise MissingTenant("Session has no tenant")
    try:
        return uuid.UUID(str(raw))
    except ValueError as exc:
        raise MissingTenant(f"Malformed tenant id: {raw}") from exc
