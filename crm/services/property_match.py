"""Suggest listings for an appointment from the lead's stated preferences."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crm.models.lead import Lead
from crm.models.property import Property, PropertyStatus

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 10


async def properties_for_appointment(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    lead_id: uuid.UUID,
    agent_id: uuid.UUID | None = None,
) -> list[Property]:
    """Available properties matching type, budget and room counts.

    Returns an empty list when the lead is unknown or a query fails.
    """
    try:
        result = await session.execute(
            select(Lead).where(Lead.id == lead_id, Lead.tenant_id == tenant_id)
        )
        lead = result.scalars().first()
        if lead is None:
            return []

        stmt = select(Property).where(
            Property.tenant_id == tenant_id,
            Property.is_active == True,  # noqa: E712
            Property.status == PropertyStatus.AVAILABLE,
        )
        if lead.property_type:
            stmt = stmt.where(Property.property_type == lead.property_type)
        if lead.budget_min is not None:
            stmt = stmt.where(Property.price >= lead.budget_min)
        if lead.budget_max is not None:
            stmt = stmt.where(Property.price <= lead.budget_max)
        if lead.bedrooms_needed:
            stmt = stmt.where(Property.bedrooms >= lead.bedrooms_needed)
        if lead.bathrooms_needed:
            stmt = stmt.where(Property.bathrooms >= lead.bathrooms_needed)
        if agent_id is not None:
            stmt = stmt.where(Property.agent_id == agent_id)

        result = await session.execute(
            stmt.order_by(Property.price).limit(MAX_SUGGESTIONS)
        )
        return list(result.scalars().all())
    except Exception:
        logger.exception("Property suggestion failed for lead %s", lead_id)
        return []
