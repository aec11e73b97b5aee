"""Async engine and per-request sessions for the CRM database."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from crm.core.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict[str, Any]:
    # SQLite (local runs, tests) uses a single-connection pool without sizing
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    **_engine_options(settings.database_url),
)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request; routers commit explicitly."""
    async with async_session_factory() as session:
        yield session


async def init_db() -> None:
    """Create missing tables on startup. Schema changes go through Alembic."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
