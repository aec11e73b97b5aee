"""Tests for tenant resolution from session claims."""

import uuid

import pytest
from httpx import AsyncClient

from crm.core.security import create_jwt
from crm.core.tenancy import (
    MissingTenant,
    TenantConfigurationError,
    Unauthenticated,
    resolve_tenant_id,
)

DEFAULT = uuid.UUID("00000000-0000-4000-8000-0000000000aa")


def test_agent_resolves_to_claimed_tenant():
    tid = uuid.uuid4()
    assert resolve_tenant_id({"role": "agent", "tid": str(tid)}, DEFAULT) == tid


def test_super_admin_uses_default_tenant():
    assert resolve_tenant_id({"role": "super_admin"}, DEFAULT) == DEFAULT


def test_super_admin_without_default_is_configuration_error():
    with pytest.raises(TenantConfigurationError):
        resolve_tenant_id({"role": "super_admin"}, None)


def test_missing_session_is_unauthenticated():
    with pytest.raises(Unauthenticated):
        resolve_tenant_id(None, DEFAULT)


def test_missing_or_malformed_tenant_claim():
    with pytest.raises(MissingTenant):
        resolve_tenant_id({"role": "agent"}, DEFAULT)
    with pytest.raises(MissingTenant):
        resolve_tenant_id({"role": "agent", "tid": "not-a-uuid"}, DEFAULT)


@pytest.mark.asyncio
async def test_request_without_token_is_401(client: AsyncClient):
    resp = await client.get("/v1/leads")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_request_with_bad_token_is_401(client: AsyncClient):
    resp = await client.get("/v1/leads", headers={"Authorization": "Bearer nonsense"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_without_tenant_is_403(client: AsyncClient):
    token = create_jwt(str(uuid.uuid4()), role="agent")
    resp = await client.get("/v1/leads", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_tenants_cannot_see_each_other(client: AsyncClient, make_headers):
    headers_a = make_headers(uuid.uuid4())
    headers_b = make_headers(uuid.uuid4())

    resp = await client.post("/v1/leads", json={"full_name": "Ana"}, headers=headers_a)
    assert resp.status_code == 201
    lead_id = resp.json()["id"]

    resp = await client.get(f"/v1/leads/{lead_id}", headers=headers_b)
    assert resp.status_code == 404
    resp = await client.get("/v1/leads", headers=headers_b)
    assert resp.json() == []
