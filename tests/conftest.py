"""Shared test fixtures: async SQLite in-memory DB, test client and session tokens."""

import os
import uuid
from collections.abc import AsyncGenerator

# Settings are cached on first import; configure them before importing crm
DEFAULT_TENANT_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DEFAULT_TENANT_ID", str(DEFAULT_TENANT_ID))

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

# Import all models so metadata is populated
import crm.models  # noqa: E402, F401
from crm.core import cache  # noqa: E402
from crm.core.database import get_session  # noqa: E402
from crm.core.security import create_jwt  # noqa: E402
from crm.main import app  # noqa: E402


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", echo=False, poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def test_session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
async def client(session) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session override."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    cache.clear()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    cache.clear()


# ── Session helpers ──────────────────────────────────────────

def auth_headers(tenant_id: uuid.UUID | str, role: str = "agent") -> dict[str, str]:
    """Bearer header for a user of ``tenant_id``."""
    token = create_jwt(str(uuid.uuid4()), tenant_id=str(tenant_id), role=role)
    return {"Authorization": f"Bearer {token}"}


def super_admin_headers() -> dict[str, str]:
    token = create_jwt(str(uuid.uuid4()), role="super_admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_headers():
    return auth_headers


@pytest.fixture
def tenant_headers() -> dict[str, str]:
    """Headers for an agent of a fresh tenant."""
    return auth_headers(uuid.uuid4())


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return super_admin_headers()
