"""Tests for appointment endpoints."""

import uuid

import pytest
from httpx import AsyncClient


async def _bootstrap(client: AsyncClient, make_headers):
    """Helper: a tenant with one agent and one lead assigned to it."""
    headers = make_headers(uuid.uuid4())
    resp = await client.post("/v1/agents", json={"name": "Diego"}, headers=headers)
    agent_id = resp.json()["id"]
    resp = await client.post("/v1/leads", json={"full_name": "Elena", "agent_id": agent_id}, headers=headers)
    return headers, agent_id, resp.json()["id"]


@pytest.mark.asyncio
async def test_create_appointment_defaults(client: AsyncClient, make_headers):
    headers, agent_id, lead_id = await _bootstrap(client, make_headers)

    resp = await client.post("/v1/appointments", json={
        "lead_id": {"id": lead_id, "name": "Elena"},
        "appointment_date": "2025-08-04",
        "appointment_time": "16:00",
        "property_ids": [{"id": "p-1"}, "p-2"],
    }, headers=headers)
    assert resp.status_code == 201
    data = resp.json()
    # Agent comes from the lead, location from the default
    assert data["agent_id"] == agent_id
    assert data["location"] == "Sin definir"
    assert data["property_ids"] == ["p-1", "p-2"]
    assert data["status"] == "scheduled"

    resp = await client.get(f"/v1/leads/{lead_id}/activities", headers=headers)
    assert "appointment_created" in [a["activity_type"] for a in resp.json()]


@pytest.mark.asyncio
async def test_create_for_unknown_lead(client: AsyncClient, make_headers):
    headers, _, _ = await _bootstrap(client, make_headers)
    resp = await client.post("/v1/appointments", json={
        "lead_id": str(uuid.uuid4()),
        "appointment_date": "2025-08-04",
        "appointment_time": "16:00",
    }, headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_invalid_time_rejected(client: AsyncClient, make_headers):
    headers, _, lead_id = await _bootstrap(client, make_headers)
    resp = await client.post("/v1/appointments", json={
        "lead_id": lead_id,
        "appointment_date": "2025-08-04",
        "appointment_time": "4pm",
    }, headers=headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_is_ordered_and_filtered(client: AsyncClient, make_headers):
    headers, _, lead_id = await _bootstrap(client, make_headers)
    for day, time in (("2025-08-05", "09:00"), ("2025-08-04", "17:00"), ("2025-08-04", "10:00")):
        await client.post("/v1/appointments", json={
            "lead_id": lead_id, "appointment_date": day, "appointment_time": time,
        }, headers=headers)

    resp = await client.get("/v1/appointments", headers=headers)
    assert [(a["appointment_date"], a["appointment_time"]) for a in resp.json()] == [
        ("2025-08-04", "10:00"),
        ("2025-08-04", "17:00"),
        ("2025-08-05", "09:00"),
    ]

    resp = await client.get("/v1/appointments", params={"from_date": "2025-08-05"}, headers=headers)
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_complete_with_follow_up(client: AsyncClient, make_headers):
    headers, _, lead_id = await _bootstrap(client, make_headers)
    resp = await client.post("/v1/appointments", json={
        "lead_id": lead_id, "appointment_date": "2025-08-04", "appointment_time": "10:00",
    }, headers=headers)
    appt_id = resp.json()["id"]

    resp = await client.patch(f"/v1/appointments/{appt_id}", json={
        "status": "completed",
        "follow_up_date": "2025-08-11",
        "follow_up_notes": "Enviar segunda opción en Coyoacán",
    }, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"

    resp = await client.get(f"/v1/leads/{lead_id}/activities", headers=headers)
    types = [a["activity_type"] for a in resp.json()]
    assert "appointment_completed" in types
    assert "appointment_follow_up" in types


@pytest.mark.asyncio
async def test_delete_appointment(client: AsyncClient, make_headers):
    headers, _, lead_id = await _bootstrap(client, make_headers)
    resp = await client.post("/v1/appointments", json={
        "lead_id": lead_id, "appointment_date": "2025-08-04", "appointment_time": "10:00",
    }, headers=headers)
    appt_id = resp.json()["id"]

    assert (await client.delete(f"/v1/appointments/{appt_id}", headers=headers)).status_code == 204
    assert (await client.get(f"/v1/appointments/{appt_id}", headers=headers)).status_code == 404
