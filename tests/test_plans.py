"""Tests for subscription plans and module assignment."""

import pytest
from httpx import AsyncClient


async def _bootstrap(client: AsyncClient, headers):
    """Helper: modules crm <- appointment <- sales and an empty plan."""
    ids = {}
    for code, deps in (("crm", []), ("appointment", ["crm"]), ("sales", ["appointment"])):
        resp = await client.post("/v1/modules", json={
            "code": code, "name": code.title(), "dependencies": deps,
        }, headers=headers)
        assert resp.status_code == 201
        ids[code] = resp.json()["id"]

    resp = await client.post("/v1/plans", json={
        "code": "pro", "name": "Pro", "price_monthly": 999, "features": ["Leads ilimitados"],
    }, headers=headers)
    assert resp.status_code == 201
    return resp.json()["id"], ids


def _by_code(views):
    return {v["code"]: v for v in views}


@pytest.mark.asyncio
async def test_plan_crud_and_pricing(client: AsyncClient, admin_headers, tenant_headers):
    plan_id, _ = await _bootstrap(client, admin_headers)
    await client.post("/v1/plans", json={"code": "hidden", "name": "Hidden", "is_public": False}, headers=admin_headers)

    resp = await client.patch(f"/v1/plans/{plan_id}", json={"price_yearly": 9990}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["price_yearly"] == 9990
    assert resp.json()["features"] == ["Leads ilimitados"]

    resp = await client.get("/v1/plans/pricing", headers=tenant_headers)
    assert [p["code"] for p in resp.json()] == ["pro"]

    resp = await client.get("/v1/plans", headers=tenant_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_module_view_flags(client: AsyncClient, admin_headers):
    plan_id, _ = await _bootstrap(client, admin_headers)

    resp = await client.get(f"/v1/plans/{plan_id}/modules", headers=admin_headers)
    views = _by_code(resp.json())
    assert views["crm"]["is_blocked"] is False
    assert views["appointment"]["is_blocked"] is True
    assert views["appointment"]["missing_dependencies"] == ["crm"]
    assert views["crm"]["required_by"] == ["appointment"]
    assert all(not v["assigned"] for v in views.values())


@pytest.mark.asyncio
async def test_toggle_refuses_missing_dependencies(client: AsyncClient, admin_headers):
    plan_id, ids = await _bootstrap(client, admin_headers)

    resp = await client.post(
        f"/v1/plans/{plan_id}/modules/{ids['sales']}/toggle", json={}, headers=admin_headers,
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["missing"] == ["crm", "appointment"]


@pytest.mark.asyncio
async def test_toggle_activates_dependencies_with_default_limits(client: AsyncClient, admin_headers):
    plan_id, ids = await _bootstrap(client, admin_headers)

    resp = await client.post(
        f"/v1/plans/{plan_id}/modules/{ids['sales']}/toggle",
        json={"activate_dependencies": True},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["assigned"] is True
    assert data["activated"] == ["crm", "appointment", "sales"]

    views = _by_code(data["modules"])
    assert all(v["assigned"] for v in views.values())
    assert views["crm"]["cant_unassign"] is True
    assert views["sales"]["cant_unassign"] is False
    assert views["appointment"]["limits"]["max_active_appointments"] == 100

    # crm is required by assigned modules
    resp = await client.post(
        f"/v1/plans/{plan_id}/modules/{ids['crm']}/toggle", json={}, headers=admin_headers,
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["dependents"] == ["appointment"]

    resp = await client.post(
        f"/v1/plans/{plan_id}/modules/{ids['sales']}/toggle", json={}, headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["deactivated"] == ["sales"]


@pytest.mark.asyncio
async def test_bulk_save(client: AsyncClient, admin_headers):
    plan_id, ids = await _bootstrap(client, admin_headers)

    resp = await client.put(f"/v1/plans/{plan_id}/modules", json=[
        {"module_id": ids["sales"]},
    ], headers=admin_headers)
    assert resp.status_code == 422
    assert resp.json()["detail"]["missing"] == {"sales": ["appointment"]}

    resp = await client.put(f"/v1/plans/{plan_id}/modules", json=[
        {"module_id": ids["crm"]},
        {"module_id": ids["appointment"]},
        {"module_id": ids["sales"], "is_active": False},
    ], headers=admin_headers)
    assert resp.status_code == 200
    views = _by_code(resp.json())
    assert views["crm"]["assigned"] and views["appointment"]["assigned"]
    assert not views["sales"]["assigned"]

    resp = await client.put(f"/v1/plans/{plan_id}/modules", json=[{"module_id": ids["crm"]}], headers=admin_headers)
    assert [code for code, v in _by_code(resp.json()).items() if v["assigned"]] == ["crm"]


@pytest.mark.asyncio
async def test_set_limits(client: AsyncClient, admin_headers):
    plan_id, ids = await _bootstrap(client, admin_headers)
    url = f"/v1/plans/{plan_id}/modules/{ids['crm']}/limits"

    resp = await client.put(url, json={"max_records": 10}, headers=admin_headers)
    assert resp.status_code == 404  # not assigned yet

    await client.put(f"/v1/plans/{plan_id}/modules", json=[{"module_id": ids["crm"]}], headers=admin_headers)

    resp = await client.put(url, json={"max_records": -5, "max_active_appointments": 3}, headers=admin_headers)
    assert resp.status_code == 422
    assert len(resp.json()["detail"]["errors"]) == 2

    resp = await client.put(url, json={"max_records": 10, "module_level": "premium"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["limits"] == {"max_records": 10, "module_level": "premium"}


@pytest.mark.asyncio
async def test_limits_catalog(client: AsyncClient, tenant_headers):
    resp = await client.get("/v1/plans/limits/catalog", headers=tenant_headers)
    assert resp.status_code == 200
    entries = {e["key"]: e for e in resp.json()}
    assert entries["max_active_appointments"]["applicable_modules"] == ["appointment"]


@pytest.mark.asyncio
async def test_delete_plan_in_use(client: AsyncClient, admin_headers):
    plan_id, _ = await _bootstrap(client, admin_headers)
    resp = await client.post("/v1/tenants", json={"name": "Acme", "slug": "acme", "plan_id": plan_id}, headers=admin_headers)
    assert resp.status_code == 201

    assert (await client.delete(f"/v1/plans/{plan_id}", headers=admin_headers)).status_code == 409
