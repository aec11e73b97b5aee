"""Lead helpers shared by routers and the stage transition.

Covers the activity log, the legacy-id alias table and the cached per-stage
counts. None of these commit; the caller owns the transaction.
"""

import logging
import uuid

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crm.core import cache
from crm.core.config import get_settings
from crm.models.base import dump_json, load_json
from crm.models.lead import Lead, LeadActivity, LeadAlias, LeadRead, LeadStatus
from crm.services.stages import CANONICAL_STAGES, DISPLAY_STAGES, normalize_stage

logger = logging.getLogger(__name__)

# Metadata keys that may carry an older identifier, in lookup order
ALIAS_KEYS = ("original_lead_id", "db_id", "real_id")


# ── Activity log ─────────────────────────────────────────────

def record_activity(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    lead_id: uuid.UUID,
    activity_type: str,
    description: str,
    metadata: dict | None = None,
    created_by: uuid.UUID | None = None,
) -> LeadActivity:
    activity = LeadActivity(
        tenant_id=tenant_id,
        lead_id=lead_id,
        activity_type=activity_type,
        description=description,
        metadata_json=dump_json(metadata or {}),
        created_by=created_by,
    )
    session.add(activity)
    return activity


# ── Aliases ──────────────────────────────────────────────────

async def sync_aliases(session: AsyncSession, lead: Lead) -> None:
    """Rebuild the alias rows of ``lead`` from its metadata bag."""
    await session.execute(delete(LeadAlias).where(LeadAlias.lead_id == lead.id))
    metadata = load_json(lead.metadata_json, {})
    if not isinstance(metadata, dict):
        return
    for key in ALIAS_KEYS:
        value = metadata.get(key)
        if value in (None, ""):
            continue
        session.add(
            LeadAlias(
                tenant_id=lead.tenant_id,
                lead_id=lead.id,
                alias_key=key,
                external_id=str(value),
            )
        )


async def find_by_alias(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    external_id: str,
) -> Lead | None:
    """Resolve a legacy identifier, trying alias keys in order.

    The first key with any match wins and its oldest alias row is used.
    """
    for key in ALIAS_KEYS:
        result = await session.execute(
            select(Lead)
            .join(LeadAlias, LeadAlias.lead_id == Lead.id)
            .where(
                LeadAlias.tenant_id == tenant_id,
                Lead.tenant_id == tenant_id,
                LeadAlias.alias_key == key,
                LeadAlias.external_id == external_id,
            )
            .order_by(LeadAlias.created_at)
            .limit(1)
        )
        lead = result.scalars().first()
        if lead is not None:
            logger.info("Resolved lead %s through alias %s=%s", lead.id, key, external_id)
            return lead
    return None


# ── Counts ───────────────────────────────────────────────────

async def count_leads_by_stage(session: AsyncSession, tenant_id: uuid.UUID) -> dict[str, int]:
    """Active leads per displayed stage, cached per tenant."""
    settings = get_settings()
    cache_key = ("lead_counts", str(tenant_id))
    cached = cache.get(cache_key, ttl=settings.lead_counts_ttl)
    if cached is not None:
        return cached

    result = await session.execute(
        select(Lead.stage).where(
            Lead.tenant_id == tenant_id,
            Lead.status != LeadStatus.CLOSED,
        )
    )
    counts = {stage: 0 for stage in DISPLAY_STAGES}
    for raw in result.scalars().all():
        stage = canonical_or_new(raw)
        if stage in counts:
            counts[stage] += 1

    cache.put(cache_key, counts)
    return counts


def invalidate_lead_counts(tenant_id: uuid.UUID) -> None:
    cache.invalidate_prefix("lead_counts", str(tenant_id))


# ── Serialization ────────────────────────────────────────────

def lead_to_read(lead: Lead) -> LeadRead:
    return LeadRead(
        id=lead.id,
        tenant_id=lead.tenant_id,
        agent_id=lead.agent_id,
        full_name=lead.full_name,
        description=lead.description,
        email=lead.email,
        phone=lead.phone,
        cover=lead.cover,
        status=lead.status,
        stage=lead.stage,
        source=lead.source,
        interest_level=lead.interest_level,
        budget_min=lead.budget_min,
        budget_max=lead.budget_max,
        property_type=lead.property_type,
        preferred_zones=load_json(lead.preferred_zones, []),
        bedrooms_needed=lead.bedrooms_needed,
        bathrooms_needed=lead.bathrooms_needed,
        features_needed=load_json(lead.features_needed, []),
        notes=lead.notes,
        metadata=load_json(lead.metadata_json, {}),
        last_contact_date=lead.last_contact_date,
        next_contact_date=lead.next_contact_date,
        contact_count=lead.contact_count,
        created_at=lead.created_at,
        updated_at=lead.updated_at,
    )


def canonical_or_new(stage: str | None) -> str:
    """Normalize a stored stage, defaulting unknown values to ``new``."""
    normalized = normalize_stage(stage)
    return normalized if normalized in CANONICAL_STAGES else "new"
