"""Lead CRUD, stage transitions and funnel views, scoped to tenant_id."""

import uuid

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, func
from sqlmodel import select

from crm.api.deps import Auth, Session
from crm.api.v1.agents import require_agent
from crm.models.appointment import Appointment
from crm.models.base import dump_json, load_json, utcnow
from crm.models.lead import (
    Lead,
    LeadActivity,
    LeadActivityRead,
    LeadAlias,
    LeadCreate,
    LeadRead,
    LeadStatus,
    LeadUpdate,
)
from crm.services.funnel import FunnelLead, get_sales_funnel
from crm.services.lead_stage import StageUpdateResult, update_lead_stage
from crm.services.leads import (
    count_leads_by_stage,
    invalidate_lead_counts,
    lead_to_read,
    record_activity,
    sync_aliases,
)
from crm.services.stages import normalize_stage

router = APIRouter(prefix="/leads", tags=["leads"])

# Stored as JSON text on the row
_JSON_FIELDS = {"preferred_zones", "features_needed"}


class StageChange(BaseModel):
    stage: str = Field(min_length=1, max_length=50)


class CloseRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


@router.post("", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
async def create_lead(
    body: LeadCreate,
    auth: Auth,
    session: Session,
) -> LeadRead:
    stage = normalize_stage(body.stage)
    if stage is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown stage: {body.stage}",
        )
    if body.agent_id is not None:
        await require_agent(body.agent_id, auth.tenant_id, session)

    lead = Lead(
        tenant_id=auth.tenant_id,
        agent_id=body.agent_id,
        full_name=body.full_name,
        description=body.description,
        email=body.email,
        phone=body.phone,
        cover=body.cover,
        status=LeadStatus.ACTIVE,
        stage=stage,
        source=body.source,
        interest_level=body.interest_level,
        budget_min=body.budget_min,
        budget_max=body.budget_max,
        property_type=body.property_type,
        preferred_zones=dump_json(body.preferred_zones),
        bedrooms_needed=body.bedrooms_needed,
        bathrooms_needed=_round_or_none(body.bathrooms_needed),
        features_needed=dump_json(body.features_needed),
        notes=body.notes,
        metadata_json=dump_json(body.metadata),
        next_contact_date=body.next_contact_date,
        contact_count=body.contact_count,
    )
    session.add(lead)
    await session.flush()

    await sync_aliases(session, lead)
    record_activity(
        session,
        auth.tenant_id,
        lead.id,
        "lead_created",
        f"Lead {lead.full_name} created",
        metadata={"stage": stage},
        created_by=auth.user_id,
    )
    await session.commit()
    await session.refresh(lead)
    invalidate_lead_counts(auth.tenant_id)
    return lead_to_read(lead)


@router.get("", response_model=list[LeadRead])
async def list_leads(
    auth: Auth,
    session: Session,
    stage: str | None = Query(default=None),
    lead_status: LeadStatus | None = Query(default=None, alias="status"),
    agent_id: uuid.UUID | None = Query(default=None),
) -> list[LeadRead]:
    stmt = select(Lead).where(Lead.tenant_id == auth.tenant_id)
    if stage is not None:
        canonical = normalize_stage(stage)
        if canonical is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Unknown stage: {stage}",
            )
        stmt = stmt.where(Lead.stage == canonical)
    if lead_status is not None:
        stmt = stmt.where(Lead.status == lead_status)
    if agent_id is not None:
        stmt = stmt.where(Lead.agent_id == agent_id)

    result = await session.execute(
        stmt.order_by(Lead.created_at.desc())  # type: ignore[union-attr]
    )
    return [lead_to_read(lead) for lead in result.scalars().all()]


@router.get("/counts", response_model=dict[str, int])
async def get_lead_counts(auth: Auth, session: Session) -> dict[str, int]:
    """Active leads per kanban column."""
    return await count_leads_by_stage(session, auth.tenant_id)


@router.get("/funnel", response_model=dict[str, list[FunnelLead]])
async def get_funnel(auth: Auth, session: Session) -> dict[str, list[FunnelLead]]:
    """Kanban board: the four displayed stages with their leads."""
    return await get_sales_funnel(session, auth.tenant_id)


@router.get("/{lead_id}", response_model=LeadRead)
async def get_lead(
    lead_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> LeadRead:
    return lead_to_read(await _get_or_404(lead_id, auth.tenant_id, session))


@router.patch("/{lead_id}", response_model=LeadRead)
async def update_lead(
    lead_id: uuid.UUID,
    body: LeadUpdate,
    auth: Auth,
    session: Session,
) -> LeadRead:
    lead = await _get_or_404(lead_id, auth.tenant_id, session)
    update_data = body.model_dump(exclude_unset=True)

    previous_agent = lead.agent_id
    previous_status = lead.status
    if update_data.get("agent_id") is not None:
        await require_agent(update_data["agent_id"], auth.tenant_id, session)

    metadata_changed = "metadata" in update_data
    if metadata_changed:
        lead.metadata_json = dump_json(update_data.pop("metadata") or {})
    if "bathrooms_needed" in update_data:
        update_data["bathrooms_needed"] = _round_or_none(update_data["bathrooms_needed"])

    for field, value in update_data.items():
        if field in _JSON_FIELDS:
            value = dump_json(value or [])
        setattr(lead, field, value)

    # Closing through a plain update keeps stage and status aligned
    if update_data.get("status") == LeadStatus.CLOSED:
        lead.stage = "closed"
    reopened = (
        previous_status == LeadStatus.CLOSED
        and update_data.get("status") == LeadStatus.ACTIVE
    )
    # Reopened leads go back to the first funnel column
    if reopened and lead.stage == "closed":
        lead.stage = "new"

    lead.updated_at = utcnow()
    session.add(lead)

    if metadata_changed:
        await sync_aliases(session, lead)
    if reopened:
        record_activity(
            session,
            auth.tenant_id,
            lead.id,
            "lead_reopened",
            "Lead reopened",
            metadata={"stage": lead.stage},
            created_by=auth.user_id,
        )
    if "agent_id" in update_data and lead.agent_id != previous_agent:
        record_activity(
            session,
            auth.tenant_id,
            lead.id,
            "agent_assigned",
            "Agent assignment changed",
            metadata={
                "previous_agent_id": str(previous_agent) if previous_agent else None,
                "agent_id": str(lead.agent_id) if lead.agent_id else None,
            },
            created_by=auth.user_id,
        )

    await session.commit()
    await session.refresh(lead)
    invalidate_lead_counts(auth.tenant_id)
    return lead_to_read(lead)


@router.patch("/{lead_ref}/stage", response_model=StageUpdateResult)
async def change_lead_stage(
    lead_ref: str,
    body: StageChange,
    auth: Auth,
    session: Session,
) -> StageUpdateResult:
    """Move a lead to another funnel stage.

    Always answers 200; callers check ``success`` on the result. ``lead_ref``
    may be the lead id or a legacy identifier recorded in its metadata.
    """
    return await update_lead_stage(
        session, auth.tenant_id, lead_ref, body.stage, changed_by=auth.user_id,
    )


@router.post("/{lead_id}/close", response_model=LeadRead)
async def close_lead(
    lead_id: uuid.UUID,
    auth: Auth,
    session: Session,
    body: CloseRequest | None = None,
) -> LeadRead:
    lead = await _get_or_404(lead_id, auth.tenant_id, session)
    previous_stage = lead.stage

    metadata = load_json(lead.metadata_json, {})
    metadata["closed_at"] = utcnow().isoformat()
    if body is not None and body.reason:
        metadata["closed_reason"] = body.reason

    lead.status = LeadStatus.CLOSED
    lead.stage = "closed"
    lead.metadata_json = dump_json(metadata)
    lead.updated_at = utcnow()
    session.add(lead)
    record_activity(
        session,
        auth.tenant_id,
        lead.id,
        "lead_closed",
        "Lead marked as closed",
        metadata={"previous_stage": previous_stage},
        created_by=auth.user_id,
    )
    await session.commit()
    await session.refresh(lead)
    invalidate_lead_counts(auth.tenant_id)
    return lead_to_read(lead)


@router.get("/{lead_id}/activities", response_model=list[LeadActivityRead])
async def list_lead_activities(
    lead_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> list[LeadActivityRead]:
    await _get_or_404(lead_id, auth.tenant_id, session)
    result = await session.execute(
        select(LeadActivity)
        .where(LeadActivity.lead_id == lead_id, LeadActivity.tenant_id == auth.tenant_id)
        .order_by(LeadActivity.created_at.desc())  # type: ignore[union-attr]
    )
    return [
        LeadActivityRead(
            id=a.id,
            lead_id=a.lead_id,
            activity_type=a.activity_type,
            description=a.description,
            metadata=load_json(a.metadata_json, {}),
            created_by=a.created_by,
            created_at=a.created_at,
        )
        for a in result.scalars().all()
    ]


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lead(
    lead_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> None:
    lead = await _get_or_404(lead_id, auth.tenant_id, session)

    booked = await session.execute(
        select(func.count()).select_from(Appointment).where(
            Appointment.lead_id == lead.id,
            Appointment.tenant_id == auth.tenant_id,
        )
    )
    if booked.scalar_one():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Lead has appointments; delete them first",
        )

    await session.execute(delete(LeadAlias).where(LeadAlias.lead_id == lead.id))
    await session.execute(delete(LeadActivity).where(LeadActivity.lead_id == lead.id))
    await session.delete(lead)
    await session.commit()
    invalidate_lead_counts(auth.tenant_id)


# ── Internal helpers ──────────────────────────────────────────

def _round_or_none(value: float | None) -> int | None:
    return None if value is None else round(value)


async def _get_or_404(
    lead_id: uuid.UUID,
    tenant_id: uuid.UUID,
    session,
) -> Lead:
    stmt = select(Lead).where(Lead.id == lead_id, Lead.tenant_id == tenant_id)
    result = await session.execute(stmt)
    lead = result.scalar_one_or_none()
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    return lead
