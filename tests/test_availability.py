"""Tests for agent availability slots."""

import uuid
from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from crm.services.availability import (
    DEFAULT_SLOTS,
    build_week_slots,
    get_agent_availability,
)

MONDAY = date(2025, 6, 2)


def _times(slots, available=None):
    return [s["time"] for s in slots if available is None or s["available"] is available]


def test_defaults_without_schedule():
    week = build_week_slots({}, MONDAY, [])

    assert len(week) == 7
    assert list(week)[0] == "2025-06-02"
    assert _times(week["2025-06-02"]) == DEFAULT_SLOTS
    assert all(s["available"] for s in week["2025-06-08"])


def test_weekday_schedule_and_disabled_day():
    schedule = {
        "monday": {"enabled": True, "slots": ["10:00", "11:00"]},
        "sunday": {"enabled": False, "slots": []},
    }
    week = build_week_slots(schedule, MONDAY, [])

    assert _times(week["2025-06-02"]) == ["10:00", "11:00"]
    assert week["2025-06-08"] == []
    assert _times(week["2025-06-03"]) == DEFAULT_SLOTS


def test_date_exceptions_win():
    schedule = {
        "monday": {"enabled": True, "slots": ["10:00"]},
        "tuesday": {"enabled": False},
        "exceptions": {
            "2025-06-02": {"available": False},
            "2025-06-03": {"available": True, "slots": ["15:00"]},
        },
    }
    week = build_week_slots(schedule, MONDAY, [])

    assert week["2025-06-02"] == []
    assert _times(week["2025-06-03"]) == ["15:00"]


def test_booking_blocks_the_following_hour():
    booked = [(MONDAY, "10:30")]
    slots = build_week_slots(
        {"monday": {"enabled": True, "slots": ["10:00", "10:30", "11:00", "11:30"]}},
        MONDAY,
        booked,
    )["2025-06-02"]

    assert _times(slots, available=False) == ["10:30", "11:00"]
    assert _times(slots, available=True) == ["10:00", "11:30"]


def test_booking_with_seconds():
    slots = build_week_slots({}, MONDAY, [(MONDAY, "09:00:00")])["2025-06-02"]
    assert _times(slots, available=False) == ["09:00"]


@pytest.mark.asyncio
async def test_unknown_agent_is_404(client: AsyncClient, make_headers):
    headers = make_headers(uuid.uuid4())
    resp = await client.get(
        f"/v1/agents/{uuid.uuid4()}/availability",
        params={"start_date": "2025-06-02"},
        headers=headers,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_availability_endpoint_marks_booked_slots(client: AsyncClient, make_headers):
    headers = make_headers(uuid.uuid4())
    resp = await client.post("/v1/agents", json={
        "name": "Carlos",
        "availability": {"monday": {"enabled": True, "slots": ["09:00", "10:00"]}},
    }, headers=headers)
    agent_id = resp.json()["id"]
    resp = await client.post("/v1/leads", json={"full_name": "Lead", "agent_id": agent_id}, headers=headers)
    lead_id = resp.json()["id"]

    for status_value in ("scheduled", "cancelled"):
        resp = await client.post("/v1/appointments", json={
            "lead_id": lead_id,
            "appointment_date": "2025-06-02",
            "appointment_time": "09:00" if status_value == "scheduled" else "10:00",
            "status": status_value,
        }, headers=headers)
        assert resp.status_code == 201

    resp = await client.get(
        f"/v1/agents/{agent_id}/availability",
        params={"start_date": "2025-06-02"},
        headers=headers,
    )
    assert resp.status_code == 200
    monday = resp.json()["2025-06-02"]
    assert monday == [
        {"date": "2025-06-02", "time": "09:00", "available": False},
        # Cancelled appointments free their slot
        {"date": "2025-06-02", "time": "10:00", "available": True},
    ]


@pytest.mark.asyncio
async def test_database_failure_falls_back_to_defaults(session, monkeypatch):
    async def _boom(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(session, "execute", _boom)
    week = await get_agent_availability(session, uuid.uuid4(), uuid.uuid4(), MONDAY)

    assert _times(week["2025-06-02"]) == DEFAULT_SLOTS
