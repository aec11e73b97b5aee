"""Import all models so SQLModel.metadata picks them up."""

from crm.models.agent import Agent, AgentCreate, AgentRead, AgentUpdate, AvailabilitySchedule
from crm.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatus,
    AppointmentUpdate,
)
from crm.models.lead import (
    InterestLevel,
    Lead,
    LeadActivity,
    LeadActivityRead,
    LeadAlias,
    LeadCreate,
    LeadRead,
    LeadStatus,
    LeadUpdate,
)
from crm.models.property import (
    OperationType,
    Property,
    PropertyCreate,
    PropertyRead,
    PropertyStatus,
    PropertyUpdate,
)
from crm.models.subscription import (
    Module,
    ModuleCreate,
    ModuleDependency,
    ModuleRead,
    ModuleUpdate,
    Plan,
    PlanCreate,
    PlanModule,
    PlanRead,
    PlanUpdate,
)
from crm.models.tenant import Tenant, TenantRead, TenantUpdate
from crm.models.vertical import (
    Vertical,
    VerticalCategory,
    VerticalCreate,
    VerticalModule,
    VerticalRead,
    VerticalUpdate,
)

__all__ = [
    "Agent",
    "AgentCreate",
    "AgentRead",
    "AgentUpdate",
    "Appointment",
    "AppointmentCreate",
    "AppointmentRead",
    "AppointmentStatus",
    "AppointmentUpdate",
    "AvailabilitySchedule",
    "InterestLevel",
    "Lead",
    "LeadActivity",
    "LeadActivityRead",
    "LeadAlias",
    "LeadCreate",
    "LeadRead",
    "LeadStatus",
    "LeadUpdate",
    "Module",
    "ModuleCreate",
    "ModuleDependency",
    "ModuleRead",
    "ModuleUpdate",
    "OperationType",
    "Plan",
    "PlanCreate",
    "PlanModule",
    "PlanRead",
    "PlanUpdate",
    "Property",
    "PropertyCreate",
    "PropertyRead",
    "PropertyStatus",
    "PropertyUpdate",
    "Tenant",
    "TenantRead",
    "TenantUpdate",
    "Vertical",
    "VerticalCategory",
    "VerticalCreate",
    "VerticalModule",
    "VerticalRead",
    "VerticalUpdate",
]
