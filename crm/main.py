"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import crm.models  # noqa: F401  registers every table on SQLModel.metadata
from crm.api.v1 import v1_router
from crm.core.config import get_settings
from crm.core.database import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: ensure tables exist (use Alembic in production)
    await init_db()
    if get_settings().default_tenant_id is None:
        logger.warning("DEFAULT_TENANT_ID is not set; super admin sessions cannot resolve a tenant")
    yield


app = FastAPI(
    title="Real Estate CRM",
    version="0.1.0",
    description="Multi-tenant CRM for leads, agents, appointments and property listings",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────
_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}
