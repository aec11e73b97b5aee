"""FastAPI dependencies for authentication and tenant resolution."""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.config import get_settings
from crm.core.database import get_session
from crm.core.security import decode_jwt
from crm.core.tenancy import (
    SUPER_ADMIN_ROLE,
    MissingTenant,
    TenantConfigurationError,
    Unauthenticated,
    resolve_tenant_id,
)

bearer_scheme = HTTPBearer(auto_error=False)


class AuthContext:
    """Resolved identity carried through a request."""

    __slots__ = ("tenant_id", "user_id", "user_role")

    def __init__(
        self,
        tenant_id: uuid.UUID,
        user_id: uuid.UUID,
        user_role: str,
    ) -> None:
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.user_role = user_role

    @property
    def is_super_admin(self) -> bool:
        return self.user_role == SUPER_ADMIN_ROLE


def _decode_claims(credentials: HTTPAuthorizationCredentials | None) -> dict | None:
    if credentials is None:
        return None
    try:
        return decode_jwt(credentials.credentials)
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired JWT",
        ) from exc


async def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> AuthContext:
    """Resolve the bearer session to an AuthContext.

    The tenant is re-derived on every request; nothing is cached.
    """
    claims = _decode_claims(credentials)

    try:
        tenant_id = resolve_tenant_id(claims, get_settings().default_tenant_id)
    except Unauthenticated as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    except TenantConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    except MissingTenant as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(exc),
        ) from exc

    try:
        return AuthContext(
            tenant_id=tenant_id,
            user_id=uuid.UUID(claims["sub"]),
            user_role=claims.get("role", "agent"),
        )
    except (KeyError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Malformed JWT payload",
        ) from exc


async def get_super_admin(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
) -> AuthContext:
    """Raise 403 unless the caller is a super admin."""
    if not auth.is_super_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admins can manage subscriptions",
        )
    return auth


# Typed shorthand for use in route signatures
Auth = Annotated[AuthContext, Depends(get_auth_context)]
SuperAdmin = Annotated[AuthContext, Depends(get_super_admin)]
Session = Annotated[AsyncSession, Depends(get_session)]
