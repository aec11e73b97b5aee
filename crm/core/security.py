"""Session token helpers.

Tokens are issued by the identity provider in production; ``create_jwt`` is
kept for service-to-service calls and tests.
"""

from datetime import datetime, timedelta, timezone

from jose import jwt

from crm.core.config import get_settings

settings = get_settings()


def create_jwt(
    subject: str,
    tenant_id: str | None = None,
    role: str = "agent",
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    payload = {
        "sub": subject,
        "role": role,
        "exp": expire,
    }
    if tenant_id is not None:
        payload["tid"] = tenant_id
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jose.JWTError on failure."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
