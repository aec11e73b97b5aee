"""Tests for property listing endpoints."""

import uuid

import pytest
from httpx import AsyncClient


def _listing(title: str, price: float, **overrides) -> dict:
    body = {
        "title": title,
        "property_type": "casa",
        "price": price,
        "location": {
            "address": "Av. Reforma 100",
            "city": "CDMX",
            "coordinates": {"lat": 19.43, "lng": -99.13},
        },
        "features": {"bedrooms": 3, "bathrooms": 2.5, "has_garden": True},
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_create_flattens_location_and_features(client: AsyncClient, make_headers):
    headers = make_headers(uuid.uuid4())
    resp = await client.post("/v1/properties", json=_listing("Casa Reforma", 4_500_000, media=[
        {"url": "https://cdn.example/1.jpg", "is_primary": True},
        {"url": "https://cdn.example/2.mp4", "type": "video"},
    ]), headers=headers)
    assert resp.status_code == 201
    data = resp.json()
    assert data["city"] == "CDMX"
    assert data["latitude"] == 19.43
    assert data["longitude"] == -99.13
    assert data["country"] == "México"
    assert data["bedrooms"] == 3
    assert data["has_garden"] is True
    assert data["has_pool"] is False
    assert [m["display_order"] for m in data["media"]] == [0, 1]
    assert data["media"][1]["type"] == "video"


@pytest.mark.asyncio
async def test_partial_location_update_keeps_other_fields(client: AsyncClient, make_headers):
    headers = make_headers(uuid.uuid4())
    resp = await client.post("/v1/properties", json=_listing("Casa", 1_000_000), headers=headers)
    prop_id = resp.json()["id"]

    resp = await client.patch(f"/v1/properties/{prop_id}", json={
        "location": {"city": "Guadalajara"},
        "status": "reserved",
    }, headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["city"] == "Guadalajara"
    assert data["address"] == "Av. Reforma 100"
    assert data["status"] == "reserved"


@pytest.mark.asyncio
async def test_list_filters(client: AsyncClient, make_headers):
    headers = make_headers(uuid.uuid4())
    await client.post("/v1/properties", json=_listing("Barata", 900_000), headers=headers)
    await client.post("/v1/properties", json=_listing("Cara", 9_000_000, operation_type="rent"), headers=headers)

    resp = await client.get("/v1/properties", params={"max_price": 1_000_000}, headers=headers)
    assert [p["title"] for p in resp.json()] == ["Barata"]

    resp = await client.get("/v1/properties", params={"operation_type": "rent"}, headers=headers)
    assert [p["title"] for p in resp.json()] == ["Cara"]


@pytest.mark.asyncio
async def test_suggestions_for_appointment(client: AsyncClient, make_headers):
    headers = make_headers(uuid.uuid4())
    for title, price, extra in (
        ("En presupuesto", 2_000_000, {}),
        ("Muy cara", 8_000_000, {}),
        ("Departamento", 2_100_000, {"property_type": "departamento"}),
        ("Vendida", 1_900_000, {"status": "sold"}),
        ("Pocas recámaras", 1_800_000, {"features": {"bedrooms": 1}}),
    ):
        resp = await client.post("/v1/properties", json=_listing(title, price, **extra), headers=headers)
        assert resp.status_code == 201

    resp = await client.post("/v1/leads", json={
        "full_name": "Comprador",
        "property_type": "casa",
        "budget_min": 1_000_000,
        "budget_max": 3_000_000,
        "bedrooms_needed": 2,
    }, headers=headers)
    lead_id = resp.json()["id"]

    resp = await client.get("/v1/properties/for-appointment", params={"lead_id": lead_id}, headers=headers)
    assert resp.status_code == 200
    assert [p["title"] for p in resp.json()] == ["En presupuesto"]


@pytest.mark.asyncio
async def test_suggestions_for_unknown_lead_are_empty(client: AsyncClient, make_headers):
    headers = make_headers(uuid.uuid4())
    resp = await client.get(
        "/v1/properties/for-appointment", params={"lead_id": str(uuid.uuid4())}, headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_delete_property(client: AsyncClient, make_headers):
    headers = make_headers(uuid.uuid4())
    resp = await client.post("/v1/properties", json=_listing("Casa", 1_000_000), headers=headers)
    prop_id = resp.json()["id"]

    assert (await client.delete(f"/v1/properties/{prop_id}", headers=headers)).status_code == 204
    assert (await client.get(f"/v1/properties/{prop_id}", headers=headers)).status_code == 404
