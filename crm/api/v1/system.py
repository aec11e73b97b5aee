"""System health endpoints: database connectivity and per-tenant record stats."""

import platform
import sys
import time
from urllib.parse import urlparse, urlunparse

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import func, text
from sqlmodel import select

from crm.api.deps import Auth, Session
from crm.core.config import get_settings
from crm.models.agent import Agent
from crm.models.appointment import Appointment
from crm.models.lead import Lead
from crm.models.property import Property

router = APIRouter(prefix="/system", tags=["system"])

settings = get_settings()
_start_time = time.time()


class ServiceHealth(BaseModel):
    status: str  # "ok" or "error"
    detail: str | None = None
    version: str | None = None
    latency_ms: int | None = None


class HealthResponse(BaseModel):
    status: str
    database: ServiceHealth


class DetailedHealthResponse(BaseModel):
    status: str
    uptime_seconds: int
    python_version: str
    platform: str
    database: ServiceHealth
    db_stats: dict
    config: dict


@router.get("/health", response_model=HealthResponse)
async def system_health(session: Session) -> HealthResponse:
    """Check connectivity to the database."""
    db = await _check_database(session)
    return HealthResponse(status="ok" if db.status == "ok" else "degraded", database=db)


@router.get("/health/detailed", response_model=DetailedHealthResponse)
async def system_health_detailed(auth: Auth, session: Session) -> DetailedHealthResponse:
    """Database health plus record counts for the caller's tenant."""
    db = await _check_database(session)
    return DetailedHealthResponse(
        status="ok" if db.status == "ok" else "degraded",
        uptime_seconds=int(time.time() - _start_time),
        python_version=sys.version.split()[0],
        platform=platform.platform(),
        database=db,
        db_stats=await _get_db_stats(session, auth.tenant_id),
        config={
            "database_url": _mask_url(settings.database_url),
            "jwt_configured": bool(settings.jwt_secret_key),
            "jwt_expire_minutes": settings.jwt_expire_minutes,
            "default_tenant_configured": settings.default_tenant_id is not None,
            "lead_counts_ttl": settings.lead_counts_ttl,
            "cors_origins": settings.allowed_origins,
        },
    )


def _mask_url(url: str) -> str:
    """Mask the password in a database URL."""
    if "://" not in url:
        return url
    parsed = urlparse(url)
    if not parsed.password:
        return url
    masked = parsed._replace(
        netloc=f"{parsed.username}:***@{parsed.hostname}"
        + (f":{parsed.port}" if parsed.port else "")
    )
    return urlunparse(masked)


async def _check_database(session) -> ServiceHealth:
    try:
        t0 = time.monotonic()
        await session.execute(text("SELECT 1"))
        latency = int((time.monotonic() - t0) * 1000)
    except Exception as exc:
        return ServiceHealth(status="error", detail=str(exc)[:200])

    # version() exists on PostgreSQL only
    version_short = None
    try:
        result = await session.execute(text("SELECT version()"))
        version_str = result.scalar_one_or_none() or ""
        version_short = version_str.split(",")[0] if version_str else None
    except Exception:
        await session.rollback()
    return ServiceHealth(status="ok", version=version_short, latency_ms=latency)


async def _get_db_stats(session, tenant_id) -> dict:
    stats = {}
    for name, model in (
        ("leads", Lead),
        ("agents", Agent),
        ("appointments", Appointment),
        ("properties", Property),
    ):
        result = await session.execute(
            select(func.count()).select_from(model).where(model.tenant_id == tenant_id)
        )
        stats[name] = result.scalar_one()
    return stats
