"""V1 API router aggregation."""

from fastapi import APIRouter

from crm.api.v1.agents import router as agents_router
from crm.api.v1.appointments import router as appointments_router
from crm.api.v1.leads import router as leads_router
from crm.api.v1.limits import router as limits_router
from crm.api.v1.modules import router as modules_router
from crm.api.v1.plans import router as plans_router
from crm.api.v1.properties import router as properties_router
from crm.api.v1.system import router as system_router
from crm.api.v1.tenants import router as tenants_router
from crm.api.v1.verticals import router as verticals_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(tenants_router)
v1_router.include_router(leads_router)
v1_router.include_router(agents_router)
v1_router.include_router(appointments_router)
v1_router.include_router(properties_router)
v1_router.include_router(modules_router)
v1_router.include_router(plans_router)
v1_router.include_router(limits_router)
v1_router.include_router(verticals_router)
v1_router.include_router(system_router)
