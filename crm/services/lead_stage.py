"""Move a lead between funnel stages.

Flow:
  1. Look the lead up by id within the tenant
  2. Fall back to legacy identifiers held in the alias table
  3. Normalize the requested stage through the alias table
  4. Terminal stages (confirmed / closed) are written unconditionally
  5. Otherwise write only if the stage differs, guarded by the stage as read

Failures come back as a ``StageUpdateResult`` with ``success=False``; this
module never raises and never retries.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crm.models.base import utcnow
from crm.models.lead import Lead
from crm.services.leads import find_by_alias, invalidate_lead_counts, record_activity
from crm.services.stages import TERMINAL_STAGES, normalize_stage

logger = logging.getLogger(__name__)


@dataclass
class StageUpdateResult:
    """Outcome of a stage transition."""
    success: bool
    lead_id: str
    stage_changed: bool = False
    previous_stage: str | None = None
    new_stage: str | None = None
    error: str | None = None


async def update_lead_stage(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    lead_ref: str,
    target_stage: str,
    changed_by: uuid.UUID | None = None,
) -> StageUpdateResult:
    """Transition a lead to ``target_stage``.

    Args:
        session: Open database session.
        tenant_id: Tenant the lead must belong to.
        lead_ref: Lead primary key, or a legacy id recorded as an alias.
        target_stage: Canonical code or localized alias.
        changed_by: Acting user, stored on the activity record.
    """
    try:
        return await _transition(session, tenant_id, lead_ref, target_stage, changed_by)
    except SQLAlchemyError as exc:
        logger.exception("Stage update failed for lead %s", lead_ref)
        await session.rollback()
        return StageUpdateResult(
            success=False,
            lead_id=lead_ref,
            error=f"Database error while updating lead {lead_ref}: {exc}",
        )


async def _transition(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    lead_ref: str,
    target_stage: str,
    changed_by: uuid.UUID | None,
) -> StageUpdateResult:
    rows = await _lookup_primary(session, tenant_id, lead_ref)

    if len(rows) > 1:
        return StageUpdateResult(
            success=False,
            lead_id=lead_ref,
            error=f"Multiple leads found for id {lead_ref}",
        )

    lead = rows[0] if rows else await find_by_alias(session, tenant_id, lead_ref)
    if lead is None:
        return StageUpdateResult(
            success=False,
            lead_id=lead_ref,
            error=f"Lead {lead_ref} not found",
        )

    lead_id = str(lead.id)
    stage_as_read = lead.stage
    previous = normalize_stage(stage_as_read) or stage_as_read

    target = normalize_stage(target_stage)
    if target is None:
        return StageUpdateResult(
            success=False,
            lead_id=lead_id,
            previous_stage=previous,
            error=f"Unknown stage: {target_stage}",
        )

    stmt = (
        update(Lead)
        .where(Lead.id == lead.id, Lead.tenant_id == tenant_id)
        .values(stage=target, updated_at=utcnow())
    )

    if target not in TERMINAL_STAGES:
        if target == previous:
            return StageUpdateResult(
                success=True,
                lead_id=lead_id,
                stage_changed=False,
                previous_stage=previous,
                new_stage=target,
            )
        # Guard against a concurrent writer moving the lead since we read it
        stmt = stmt.where(Lead.stage == stage_as_read)

    result = await session.execute(stmt)
    if result.rowcount != 1:
        await session.rollback()
        return StageUpdateResult(
            success=False,
            lead_id=lead_id,
            previous_stage=previous,
            error=f"Lead {lead_id} was modified concurrently; reload and retry",
        )

    record_activity(
        session,
        tenant_id,
        lead.id,
        "stage_changed",
        f"Stage changed from {previous} to {target}",
        metadata={"previous_stage": previous, "new_stage": target},
        created_by=changed_by,
    )
    await session.commit()
    invalidate_lead_counts(tenant_id)

    logger.info("Lead %s moved %s -> %s", lead_id, previous, target)
    return StageUpdateResult(
        success=True,
        lead_id=lead_id,
        stage_changed=True,
        previous_stage=previous,
        new_stage=target,
    )


async def _lookup_primary(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    lead_ref: str,
) -> list[Lead]:
    try:
        lead_uuid = uuid.UUID(str(lead_ref))
    except ValueError:
        return []
    result = await session.execute(
        select(Lead).where(Lead.id == lead_uuid, Lead.tenant_id == tenant_id)
    )
    return list(result.scalars().all())
