"""Check an operation against the limits of the tenant's plan."""

import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from crm.api.deps import Auth, Session
from crm.models.agent import Agent
from crm.models.appointment import Appointment
from crm.models.base import load_json
from crm.models.lead import Lead
from crm.models.property import Property
from crm.models.subscription import Module, PlanModule
from crm.models.tenant import Tenant
from crm.services.limits import LimitCheck, evaluate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/limits", tags=["limits"])

# Module code -> table counted against max_records
COUNTED_MODELS = {
    "leads": Lead,
    "crm": Lead,
    "properties": Property,
    "appointment": Appointment,
    "appointments": Appointment,
    "agents": Agent,
}


class LimitCheckRequest(BaseModel):
    module_code: str = Field(min_length=1, max_length=100)
    resource_type: str = Field(default="records", max_length=50)
    operation: Literal["create", "update", "delete", "read", "export"] = "create"
    quantity: int = Field(default=1, ge=1)


@router.post("/validate", response_model=LimitCheck)
async def validate_operation(
    body: LimitCheckRequest,
    auth: Auth,
    session: Session,
) -> LimitCheck:
    tenant = await session.get(Tenant, auth.tenant_id)
    if tenant is None or tenant.plan_id is None:
        return LimitCheck(allowed=False, reason="No subscription plan")

    result = await session.execute(
        select(PlanModule)
        .join(Module, Module.id == PlanModule.module_id)
        .where(PlanModule.plan_id == tenant.plan_id, Module.code == body.module_code)
    )
    assignment = result.scalar_one_or_none()
    if assignment is None:
        return LimitCheck(allowed=False, reason="Module is not included in the current plan")
    if not assignment.is_active:
        return LimitCheck(allowed=False, reason="Module is not active in the current plan")

    limits = load_json(assignment.limits, {})
    if not limits:
        return LimitCheck(allowed=True)

    current_count = None
    model = COUNTED_MODELS.get(body.module_code)
    if model is not None and body.operation == "create" and "max_records" in limits:
        try:
            counted = await session.execute(
                select(func.count()).select_from(model).where(model.tenant_id == auth.tenant_id)
            )
            current_count = counted.scalar_one()
        except SQLAlchemyError:
            # An unreadable count must not block the operation
            logger.warning("Record count failed for module %s", body.module_code, exc_info=True)

    return evaluate_limit(
        limits,
        body.operation,
        body.resource_type,
        quantity=body.quantity,
        current_count=current_count,
    )
