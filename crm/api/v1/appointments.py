"""Appointment CRUD, scoped to tenant_id.

Every create and completion is mirrored into the lead's activity log.
"""

import logging
import uuid
from datetime import date

from fastapi import APIRouter, HTTPException, Query, status
from sqlmodel import select

from crm.api.deps import Auth, Session
from crm.api.v1.agents import require_agent
from crm.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatus,
    AppointmentUpdate,
)
from crm.models.base import dump_json, load_json, utcnow
from crm.models.lead import Lead
from crm.services.leads import record_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])

DEFAULT_LOCATION = "Sin definir"


def _to_read(appt: Appointment) -> AppointmentRead:
    return AppointmentRead(
        id=appt.id,
        tenant_id=appt.tenant_id,
        lead_id=appt.lead_id,
        agent_id=appt.agent_id,
        appointment_date=appt.appointment_date,
        appointment_time=appt.appointment_time,
        location=appt.location,
        property_type=appt.property_type,
        property_ids=load_json(appt.property_ids, []),
        status=appt.status,
        notes=appt.notes,
        follow_up_date=appt.follow_up_date,
        follow_up_notes=appt.follow_up_notes,
        created_at=appt.created_at,
        updated_at=appt.updated_at,
    )


@router.post("", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: AppointmentCreate,
    auth: Auth,
    session: Session,
) -> AppointmentRead:
    lead = await _get_lead_or_404(body.lead_id, auth.tenant_id, session)

    agent_id = body.agent_id or lead.agent_id
    if body.agent_id is not None:
        await require_agent(body.agent_id, auth.tenant_id, session)

    appt = Appointment(
        tenant_id=auth.tenant_id,
        lead_id=lead.id,
        agent_id=agent_id,
        appointment_date=body.appointment_date,
        appointment_time=body.appointment_time,
        location=body.location or DEFAULT_LOCATION,
        property_type=body.property_type,
        property_ids=dump_json(body.property_ids),
        status=body.status,
        notes=body.notes,
        follow_up_date=body.follow_up_date,
        follow_up_notes=body.follow_up_notes,
    )
    session.add(appt)
    await session.flush()

    record_activity(
        session,
        auth.tenant_id,
        lead.id,
        "appointment_created",
        f"Appointment scheduled for {appt.appointment_date.isoformat()} {appt.appointment_time}",
        metadata={
            "appointment_id": str(appt.id),
            "location": appt.location,
            "property_ids": body.property_ids,
        },
        created_by=auth.user_id,
    )
    await session.commit()
    await session.refresh(appt)
    logger.info("Appointment %s created for lead %s", appt.id, lead.id)
    return _to_read(appt)


@router.get("", response_model=list[AppointmentRead])
async def list_appointments(
    auth: Auth,
    session: Session,
    agent_id: uuid.UUID | None = Query(default=None),
    lead_id: uuid.UUID | None = Query(default=None),
    appt_status: AppointmentStatus | None = Query(default=None, alias="status"),
    property_type: str | None = Query(default=None),
    from_date: date | None = Query(default=None),
    to_date: date | None = Query(default=None),
) -> list[AppointmentRead]:
    stmt = select(Appointment).where(Appointment.tenant_id == auth.tenant_id)
    if agent_id is not None:
        stmt = stmt.where(Appointment.agent_id == agent_id)
    if lead_id is not None:
        stmt = stmt.where(Appointment.lead_id == lead_id)
    if appt_status is not None:
        stmt = stmt.where(Appointment.status == appt_status)
    if property_type is not None:
        stmt = stmt.where(Appointment.property_type == property_type)
    if from_date is not None:
        stmt = stmt.where(Appointment.appointment_date >= from_date)
    if to_date is not None:
        stmt = stmt.where(Appointment.appointment_date <= to_date)

    result = await session.execute(
        stmt.order_by(Appointment.appointment_date, Appointment.appointment_time)
    )
    return [_to_read(a) for a in result.scalars().all()]


@router.get("/{appointment_id}", response_model=AppointmentRead)
async def get_appointment(
    appointment_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> AppointmentRead:
    return _to_read(await _get_or_404(appointment_id, auth.tenant_id, session))


@router.patch("/{appointment_id}", response_model=AppointmentRead)
async def update_appointment(
    appointment_id: uuid.UUID,
    body: AppointmentUpdate,
    auth: Auth,
    session: Session,
) -> AppointmentRead:
    appt = await _get_or_404(appointment_id, auth.tenant_id, session)
    update_data = body.model_dump(exclude_unset=True)

    if update_data.get("agent_id") is not None:
        await require_agent(update_data["agent_id"], auth.tenant_id, session)

    completing = (
        update_data.get("status") == AppointmentStatus.COMPLETED
        and appt.status != AppointmentStatus.COMPLETED
    )

    if "property_ids" in update_data:
        update_data["property_ids"] = dump_json(update_data["property_ids"] or [])
    if "location" in update_data and not update_data["location"]:
        update_data["location"] = DEFAULT_LOCATION
    for field, value in update_data.items():
        setattr(appt, field, value)

    appt.updated_at = utcnow()
    session.add(appt)

    if completing:
        record_activity(
            session,
            auth.tenant_id,
            appt.lead_id,
            "appointment_completed",
            f"Appointment on {appt.appointment_date.isoformat()} completed",
            metadata={"appointment_id": str(appt.id)},
            created_by=auth.user_id,
        )
        if body.follow_up_notes:
            record_activity(
                session,
                auth.tenant_id,
                appt.lead_id,
                "appointment_follow_up",
                body.follow_up_notes,
                metadata={
                    "appointment_id": str(appt.id),
                    "follow_up_date": appt.follow_up_date.isoformat() if appt.follow_up_date else None,
                },
                created_by=auth.user_id,
            )

    await session.commit()
    await session.refresh(appt)
    return _to_read(appt)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: uuid.UUID,
    auth: Auth,
    session: Session,
) -> None:
    appt = await _get_or_404(appointment_id, auth.tenant_id, session)
    await session.delete(appt)
    await session.commit()


# ── Internal helpers ──────────────────────────────────────────

async def _get_lead_or_404(lead_id: uuid.UUID, tenant_id: uuid.UUID, session) -> Lead:
    result = await session.execute(
        select(Lead).where(Lead.id == lead_id, Lead.tenant_id == tenant_id)
    )
    lead = result.scalar_one_or_none()
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    return lead


async def _get_or_404(
    appointment_id: uuid.UUID,
    tenant_id: uuid.UUID,
    session,
) -> Appointment:
    stmt = select(Appointment).where(
        Appointment.id == appointment_id,
        Appointment.tenant_id == tenant_id,
    )
    result = await session.execute(stmt)
    appt = result.scalar_one_or_none()
    if appt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appt
