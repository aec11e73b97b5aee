"""Agent CRUD and weekly availability, scoped to tenant_id."""

import uuid
from datetime import date

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func
from sqlmodel import select

from crm.api.deps import Auth, Session
from crm.models.agent import (
    Agent,
    AgentCreate,
    AgentRead,
    AgentUpdate,
    AvailabilitySchedule,
    TimeSlot,
)
from crm.models.appointment import Appointment
from crm.models.base import dump_json, load_json, utcnow
from crm.models.lead import Lead
from crm.services.availability import AgentNotFound, get_agent_availability

router = APIRouter(prefix="/agents", tags=["agents"])


def _to_read(agent: Agent) -> AgentRead:
    return AgentRead(
        id=agent.id,
        tenant_id=agent.tenant_id,
        name=agent.name,
        email=agent.email,
        phone=agent.phone,
        profile_image=agent.profile_image,
        bio=agent.bio,
        is_active=agent.is_active,
        availability=load_json(agent.availability, {}),
        metadata=load_json(agent.metadata_json, {}),
        created_at=agent.created_at,
        updated_at=agent.updated_at,
    )


def _dump_schedule(schedule: AvailabilitySchedule) -> str:
    return dump_json(schedule.model_dump(exclude_none=True))


@router.post("", response_model=AgentRead, status_code=status.HTTP_201_CREATED)
async def create_agent(
    body: AgentCreate,
    auth: Auth,
    session: Session,
) -> AgentRead:
    agent = Agent(
        tenant_id=auth.tenant_id,
        name=body.name,
        email=body.email,
        phone=body.phone,
        profile_image=body.profile_image,
        bio=body.bio,
        is_active=body.is_active,
        availability=_dump_schedule(body.availability) if body.availability else "{}",
        metadata_json=dump_json(body.metadata),
    )
    session.add(agent)
    await session.commit()
    await session.refresh(agent)
    return _to_read(agent)


@router.get("", response_model=list[AgentRead])
async def list_agents(
    auth: Auth,
    session: Session,
    active_only: bool = Query(default=False),
) -> list[AgentRead]:
    stmt = select(Agent).where(Agent.tenant_id == auth.tenant_id)
    if active_only:
        stmt = stmt.where(Agent.is_active == True)  # noqa: E712
    result = await session.execute(stmt.order_by(Agent.name))
    return [_to_read(a) for a in result.scalars().all()]


@router.get("/{agent_id}", response_model=AgentRead)
async def get_agent(
    agent_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> AgentRead:
    return _to_read(await _get_or_404(agent_id, auth.tenant_id, session))


@router.patch("/{agent_id}", response_model=AgentRead)
async def update_agent(
    agent_id: uuid.UUID,
    body: AgentUpdate,
    auth: Auth,
    session: Session,
) -> AgentRead:
    agent = await _get_or_404(agent_id, auth.tenant_id, session)
    update_data = body.model_dump(exclude_unset=True)

    if "metadata" in update_data:
        agent.metadata_json = dump_json(update_data.pop("metadata") or {})
    for field, value in update_data.items():
        setattr(agent, field, value)

    agent.updated_at = utcnow()
    session.add(agent)
    await session.commit()
    await session.refresh(agent)
    return _to_read(agent)


@router.delete("/{agent_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_agent(
    agent_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> None:
    agent = await _get_or_404(agent_id, auth.tenant_id, session)

    for model in (Lead, Appointment):
        result = await session.execute(
            select(func.count()).select_from(model).where(
                model.agent_id == agent.id,
                model.tenant_id == auth.tenant_id,
            )
        )
        if result.scalar_one():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Agent still has leads or appointments assigned",
            )

    await session.delete(agent)
    await session.commit()


@router.get("/{agent_id}/availability", response_model=dict[str, list[TimeSlot]])
async def get_availability(
    agent_id: uuid.UUID,
    auth: Auth,
    session: Session,
    start_date: date = Query(...),
) -> dict[str, list[dict]]:
    """Seven days of slots from ``start_date``, with booked ones marked."""
    try:
        return await get_agent_availability(session, auth.tenant_id, agent_id, start_date)
    except AgentNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agent not found") from exc


@router.put("/{agent_id}/availability", response_model=AgentRead)
async def set_availability(
    agent_id: uuid.UUID,
    body: AvailabilitySchedule,
    auth: Auth,
    session: Session,
) -> AgentRead:
    agent = await _get_or_404(agent_id, auth.tenant_id, session)
    agent.availability = _dump_schedule(body)
    agent.updated_at = utcnow()
    session.add(agent)
    await session.commit()
    await session.refresh(agent)
    return _to_read(agent)


# ── Helpers ───────────────────────────────────────────────────

async def require_agent(agent_id: uuid.UUID, tenant_id: uuid.UUID, session) -> None:
    """404 unless ``agent_id`` names an agent of the tenant."""
    result = await session.execute(
        select(Agent.id).where(Agent.id == agent_id, Agent.tenant_id == tenant_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agent not found")


async def _get_or_404(
    agent_id: uuid.UUID,
    tenant_id: uuid.UUID,
    session,
) -> Agent:
    stmt = select(Agent).where(Agent.id == agent_id, Agent.tenant_id == tenant_id)
    result = await session.execute(stmt)
    agent = result.scalar_one_or_none()
    if agent is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agent not found")
    return agent
