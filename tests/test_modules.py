"""Tests for the module catalog endpoints (super admin)."""

import pytest
from httpx import AsyncClient


async def _module(client, headers, code, dependencies=(), **extra):
    resp = await client.post("/v1/modules", json={
        "code": code,
        "name": code.title(),
        "dependencies": list(dependencies),
        **extra,
    }, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_module_with_dependencies(client: AsyncClient, admin_headers):
    await _module(client, admin_headers, "crm", is_core=True)
    data = await _module(
        client, admin_headers, "sales", dependencies=["crm"],
        metadata={"importance": "high", "vertical_specific": True},
    )
    assert data["dependencies"] == ["crm"]
    assert data["feature_level"] == "premium"
    assert data["vertical_specific"] is True


@pytest.mark.asyncio
async def test_invalid_dependencies_rejected(client: AsyncClient, admin_headers):
    resp = await client.post("/v1/modules", json={
        "code": "sales", "name": "Sales", "dependencies": ["nope"],
    }, headers=admin_headers)
    assert resp.status_code == 422

    resp = await client.post("/v1/modules", json={
        "code": "loop", "name": "Loop", "dependencies": ["loop"],
    }, headers=admin_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_duplicate_code_conflicts(client: AsyncClient, admin_headers):
    await _module(client, admin_headers, "crm")
    resp = await client.post("/v1/modules", json={"code": "crm", "name": "Again"}, headers=admin_headers)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_agents_cannot_manage_modules(client: AsyncClient, tenant_headers):
    resp = await client.get("/v1/modules", headers=tenant_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_update_dependencies(client: AsyncClient, admin_headers):
    await _module(client, admin_headers, "crm")
    await _module(client, admin_headers, "appointment")
    sales = await _module(client, admin_headers, "sales", dependencies=["crm"])

    resp = await client.patch(f"/v1/modules/{sales['id']}", json={
        "dependencies": ["crm", "appointment"], "name": "Ventas",
    }, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["dependencies"] == ["appointment", "crm"]
    assert resp.json()["name"] == "Ventas"


@pytest.mark.asyncio
async def test_dependency_cycle_rejected(client: AsyncClient, admin_headers):
    first = await _module(client, admin_headers, "aa")
    await _module(client, admin_headers, "bb", dependencies=["aa"])
    await _module(client, admin_headers, "cc", dependencies=["bb"])

    # Direct cycle: aa -> bb -> aa
    resp = await client.patch(f"/v1/modules/{first['id']}", json={"dependencies": ["bb"]}, headers=admin_headers)
    assert resp.status_code == 422
    assert "aa -> bb -> aa" in resp.json()["detail"]

    # Transitive cycle: aa -> cc -> bb -> aa
    resp = await client.patch(f"/v1/modules/{first['id']}", json={"dependencies": ["cc"]}, headers=admin_headers)
    assert resp.status_code == 422

    resp = await client.get(f"/v1/modules/{first['id']}", headers=admin_headers)
    assert resp.json()["dependencies"] == []


@pytest.mark.asyncio
async def test_delete_rules(client: AsyncClient, admin_headers):
    core = await _module(client, admin_headers, "crm", is_core=True)
    base = await _module(client, admin_headers, "appointment")
    dependent = await _module(client, admin_headers, "sales", dependencies=["appointment"])

    assert (await client.delete(f"/v1/modules/{core['id']}", headers=admin_headers)).status_code == 409
    assert (await client.delete(f"/v1/modules/{base['id']}", headers=admin_headers)).status_code == 409
    assert (await client.delete(f"/v1/modules/{dependent['id']}", headers=admin_headers)).status_code == 204
    assert (await client.delete(f"/v1/modules/{base['id']}", headers=admin_headers)).status_code == 204

    resp = await client.get("/v1/modules", headers=admin_headers)
    assert [m["code"] for m in resp.json()] == ["crm"]
