"""Sales funnel aggregation for the kanban board.

Leads are fetched once, their agents in one batch query, and each lead is
reshaped into a ``FunnelLead`` and bucketed by normalized stage. Only the
four displayed columns are returned; on any failure the columns come back
empty so the board still renders.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crm.models.agent import Agent
from crm.models.base import load_json
from crm.models.lead import Lead, LeadStatus
from crm.services.leads import canonical_or_new
from crm.services.stages import DISPLAY_STAGES

logger = logging.getLogger(__name__)

INTEREST_LABELS = {
    "alto": "Alta prioridad",
    "medio": "Media prioridad",
    "bajo": "Baja prioridad",
}
DEFAULT_INTEREST = "medio"


@dataclass
class FunnelMember:
    id: str
    name: str
    email: str
    img: str


@dataclass
class FunnelLead:
    id: str
    name: str
    description: str
    email: str
    phone: str
    cover: str
    stage: str
    status: str
    members: list[FunnelMember] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    due_date: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    contact_count: int = 0
    created_at: datetime | None = None
    budget: float | None = None


def empty_funnel() -> dict[str, list[FunnelLead]]:
    return {stage: [] for stage in DISPLAY_STAGES}


async def get_sales_funnel(
    session: AsyncSession,
    tenant_id: uuid.UUID,
) -> dict[str, list[FunnelLead]]:
    try:
        return await _build_funnel(session, tenant_id)
    except Exception:
        logger.exception("Funnel aggregation failed for tenant %s", tenant_id)
        return empty_funnel()


async def _build_funnel(
    session: AsyncSession,
    tenant_id: uuid.UUID,
) -> dict[str, list[FunnelLead]]:
    result = await session.execute(
        select(Lead)
        .where(Lead.tenant_id == tenant_id)
        .order_by(Lead.created_at.desc())  # type: ignore[union-attr]
    )
    leads = result.scalars().all()

    agent_ids = {lead.agent_id for lead in leads if lead.agent_id is not None}
    members = await _load_members(session, tenant_id, agent_ids)

    funnel = empty_funnel()
    for lead in leads:
        stage = bucket_for(lead.stage, lead.status)
        if stage not in funnel:
            continue
        funnel[stage].append(to_funnel_lead(lead, stage, members))
    return funnel


async def _load_members(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    agent_ids: set[uuid.UUID],
) -> dict[uuid.UUID, FunnelMember]:
    if not agent_ids:
        return {}
    try:
        result = await session.execute(
            select(Agent).where(Agent.tenant_id == tenant_id, Agent.id.in_(agent_ids))  # type: ignore[union-attr]
        )
    except Exception:
        logger.exception("Agent lookup failed; building funnel without members")
        return {}
    return {agent.id: to_member(agent) for agent in result.scalars().all()}


def to_member(agent: Agent) -> FunnelMember:
    metadata = load_json(agent.metadata_json, {})
    avatar = agent.profile_image or (metadata.get("avatar") if isinstance(metadata, dict) else None)
    return FunnelMember(
        id=str(agent.id),
        name=agent.name or agent.email or "Agente",
        email=agent.email or "",
        img=avatar or "",
    )


def bucket_for(stage: str | None, status: str | None) -> str:
    """Column a lead belongs to; closed status overrides the stored stage."""
    if status == LeadStatus.CLOSED:
        return "closed"
    return canonical_or_new(stage)


def derive_budget(budget_min: float | None, budget_max: float | None) -> float | None:
    if budget_min is not None and budget_max is not None:
        return round((budget_min + budget_max) / 2)
    if budget_min is not None:
        return budget_min
    return budget_max


def to_funnel_lead(
    lead: Lead,
    stage: str,
    members: dict[uuid.UUID, FunnelMember],
) -> FunnelLead:
    budget = derive_budget(lead.budget_min, lead.budget_max)
    interest = lead.interest_level or DEFAULT_INTEREST
    interest_label = INTEREST_LABELS.get(interest, INTEREST_LABELS[DEFAULT_INTEREST])

    stored = load_json(lead.metadata_json, {})
    metadata = {
        **(stored if isinstance(stored, dict) else {}),
        "email": lead.email,
        "phone": lead.phone,
        "interest": interest,
        "source": lead.source or "web",
        "budget": budget,
        "property_type": lead.property_type,
        "preferred_zones": load_json(lead.preferred_zones, []),
        "bedrooms_needed": lead.bedrooms_needed,
        "bathrooms_needed": lead.bathrooms_needed,
        "lead_status": lead.status,
        "last_contact_date": lead.last_contact_date,
        "next_contact_date": lead.next_contact_date,
        "agent_notes": lead.notes or "",
        "agent_id": str(lead.agent_id) if lead.agent_id else None,
    }

    member = members.get(lead.agent_id) if lead.agent_id else None

    return FunnelLead(
        id=str(lead.id),
        name=lead.full_name or "Lead sin nombre",
        description=lead.description or "",
        email=lead.email or "",
        phone=lead.phone or "",
        cover=lead.cover or "",
        stage=stage,
        status=lead.status,
        members=[member] if member else [],
        labels=["Nuevo contacto", interest_label],
        due_date=lead.next_contact_date,
        metadata=metadata,
        contact_count=lead.contact_count or 0,
        created_at=lead.created_at,
        budget=budget,
    )
