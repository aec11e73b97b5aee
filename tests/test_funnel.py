"""Tests for the sales funnel and per-stage counts."""

import uuid

import pytest
from httpx import AsyncClient

from crm.models.agent import Agent
from crm.models.lead import Lead, LeadStatus
from crm.services.funnel import bucket_for, derive_budget, get_sales_funnel


async def _seed(session, tenant_id):
    agent = Agent(
        tenant_id=tenant_id,
        name="",
        email="maria@inmobiliaria.mx",
        metadata_json='{"avatar": "https://cdn.example/maria.png"}',
    )
    session.add(agent)
    await session.flush()
    session.add_all([
        Lead(tenant_id=tenant_id, full_name="Nuevo", stage="nuevo", agent_id=agent.id,
             budget_min=1_000_000, budget_max=2_000_001, interest_level="alto"),
        Lead(tenant_id=tenant_id, full_name="", stage="prospectando"),
        Lead(tenant_id=tenant_id, full_name="Ganado", stage="confirmed"),
        Lead(tenant_id=tenant_id, full_name="Perdido", stage="opportunity",
             status=LeadStatus.CLOSED),
        Lead(tenant_id=tenant_id, full_name="Raro", stage="something-else"),
    ])
    await session.commit()
    return agent


def test_bucket_for_closed_status_overrides_stage():
    assert bucket_for("opportunity", "closed") == "closed"
    assert bucket_for("Oportunidad", "active") == "opportunity"
    assert bucket_for(None, "active") == "new"


def test_derive_budget():
    assert derive_budget(100, 201) == 150
    assert derive_budget(100, None) == 100
    assert derive_budget(None, 300) == 300
    assert derive_budget(None, None) is None


@pytest.mark.asyncio
async def test_funnel_buckets_and_shapes_leads(session):
    tid = uuid.uuid4()
    agent = await _seed(session, tid)

    funnel = await get_sales_funnel(session, tid)

    assert set(funnel) == {"new", "prospecting", "qualification", "opportunity"}
    names_new = sorted(lead.name for lead in funnel["new"])
    # Unknown stages fall back to the first column
    assert names_new == ["Nuevo", "Raro"]
    assert funnel["qualification"] == []
    # Closed status and terminal stages are off the board
    assert funnel["opportunity"] == []

    nuevo = next(lead for lead in funnel["new"] if lead.name == "Nuevo")
    assert nuevo.budget == 1_500_000
    assert nuevo.labels == ["Nuevo contacto", "Alta prioridad"]
    assert len(nuevo.members) == 1
    member = nuevo.members[0]
    assert member.id == str(agent.id)
    assert member.name == "maria@inmobiliaria.mx"
    assert member.img == "https://cdn.example/maria.png"
    assert nuevo.metadata["interest"] == "alto"
    assert nuevo.metadata["source"] == "web"

    unnamed = funnel["prospecting"][0]
    assert unnamed.name == "Lead sin nombre"
    assert unnamed.members == []
    assert unnamed.labels == ["Nuevo contacto", "Media prioridad"]


@pytest.mark.asyncio
async def test_funnel_skips_agents_outside_the_tenant(session):
    tid = uuid.uuid4()
    foreign = Agent(tenant_id=uuid.uuid4(), name="Otro Agente")
    session.add(foreign)
    await session.flush()
    session.add(Lead(tenant_id=tid, full_name="Asignado", stage="new", agent_id=foreign.id))
    await session.commit()

    funnel = await get_sales_funnel(session, tid)

    lead = funnel["new"][0]
    assert lead.name == "Asignado"
    assert lead.members == []


@pytest.mark.asyncio
async def test_funnel_degrades_to_empty_buckets(session, monkeypatch):
    tid = uuid.uuid4()
    await _seed(session, tid)

    async def _boom(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(session, "execute", _boom)
    funnel = await get_sales_funnel(session, tid)

    assert funnel == {"new": [], "prospecting": [], "qualification": [], "opportunity": []}


@pytest.mark.asyncio
async def test_funnel_endpoint(client: AsyncClient, make_headers):
    headers = make_headers(uuid.uuid4())
    await client.post("/v1/leads", json={"full_name": "Uno", "stage": "oportunidad"}, headers=headers)

    resp = await client.get("/v1/leads/funnel", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert [lead["name"] for lead in data["opportunity"]] == ["Uno"]
    assert data["opportunity"][0]["stage"] == "opportunity"


@pytest.mark.asyncio
async def test_counts_exclude_closed_and_invalidate_on_write(client: AsyncClient, make_headers):
    headers = make_headers(uuid.uuid4())
    resp = await client.post("/v1/leads", json={"full_name": "A"}, headers=headers)
    lead_id = resp.json()["id"]
    await client.post("/v1/leads", json={"full_name": "B", "stage": "qualification"}, headers=headers)

    resp = await client.get("/v1/leads/counts", headers=headers)
    assert resp.json() == {"new": 1, "prospecting": 0, "qualification": 1, "opportunity": 0}

    resp = await client.post(f"/v1/leads/{lead_id}/close", headers=headers)
    assert resp.status_code == 200

    resp = await client.get("/v1/leads/counts", headers=headers)
    assert resp.json()["new"] == 0
