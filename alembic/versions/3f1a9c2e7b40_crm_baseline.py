"""crm baseline: tenants, leads, agents, appointments, properties, subscriptions

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-19 09:12:44.201318

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b40'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _json_text(name: str, default: str) -> sa.Column:
    return sa.Column(name, sa.Text(), nullable=False, server_default=default)


def upgrade() -> None:
    # ── Subscriptions ────────────────────────────────────────
    op.create_table(
        "modules",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("code", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(100), nullable=True),
        sa.Column("is_core", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        _json_text("metadata_json", "{}"),
        *_timestamps(),
    )
    op.create_index("ix_modules_code", "modules", ["code"], unique=True)

    op.create_table(
        "module_dependencies",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("module_id", sa.Uuid(), sa.ForeignKey("modules.id"), nullable=False),
        sa.Column("depends_on_id", sa.Uuid(), sa.ForeignKey("modules.id"), nullable=False),
        sa.UniqueConstraint("module_id", "depends_on_id"),
    )
    op.create_index("ix_module_dependencies_module_id", "module_dependencies", ["module_id"])
    op.create_index("ix_module_dependencies_depends_on_id", "module_dependencies", ["depends_on_id"])

    op.create_table(
        "plans",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("code", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price_monthly", sa.Float(), nullable=False),
        sa.Column("price_yearly", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        _json_text("features", "[]"),
        *_timestamps(),
    )
    op.create_index("ix_plans_code", "plans", ["code"], unique=True)

    op.create_table(
        "plan_modules",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("plan_id", sa.Uuid(), sa.ForeignKey("plans.id"), nullable=False),
        sa.Column("module_id", sa.Uuid(), sa.ForeignKey("modules.id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _json_text("limits", "{}"),
        *_timestamps(),
        sa.UniqueConstraint("plan_id", "module_id"),
    )
    op.create_index("ix_plan_modules_plan_id", "plan_modules", ["plan_id"])
    op.create_index("ix_plan_modules_module_id", "plan_modules", ["module_id"])

    # ── Verticals ────────────────────────────────────────────
    op.create_table(
        "verticals",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("code", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_verticals_code", "verticals", ["code"], unique=True)

    op.create_table(
        "vertical_categories",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("vertical_id", sa.Uuid(), sa.ForeignKey("verticals.id"), nullable=False),
        sa.Column("code", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("vertical_id", "code"),
    )
    op.create_index("ix_vertical_categories_vertical_id", "vertical_categories", ["vertical_id"])

    op.create_table(
        "vertical_modules",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("vertical_id", sa.Uuid(), sa.ForeignKey("verticals.id"), nullable=False),
        sa.Column("module_id", sa.Uuid(), sa.ForeignKey("modules.id"), nullable=False),
        sa.UniqueConstraint("vertical_id", "module_id"),
    )
    op.create_index("ix_vertical_modules_vertical_id", "vertical_modules", ["vertical_id"])
    op.create_index("ix_vertical_modules_module_id", "vertical_modules", ["module_id"])

    # ── Tenants ──────────────────────────────────────────────
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("plan_id", sa.Uuid(), sa.ForeignKey("plans.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)

    # ── CRM ──────────────────────────────────────────────────
    op.create_table(
        "agents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("profile_image", sa.String(2048), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _json_text("availability", "{}"),
        _json_text("metadata_json", "{}"),
        *_timestamps(),
    )
    op.create_index("ix_agents_tenant_id", "agents", ["tenant_id"])

    op.create_table(
        "leads",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("agent_id", sa.Uuid(), sa.ForeignKey("agents.id"), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("cover", sa.String(2048), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("stage", sa.String(50), nullable=False),
        sa.Column("source", sa.String(100), nullable=True),
        sa.Column("interest_level", sa.String(20), nullable=False),
        sa.Column("budget_min", sa.Float(), nullable=True),
        sa.Column("budget_max", sa.Float(), nullable=True),
        sa.Column("property_type", sa.String(100), nullable=True),
        _json_text("preferred_zones", "[]"),
        sa.Column("bedrooms_needed", sa.Integer(), nullable=True),
        sa.Column("bathrooms_needed", sa.Float(), nullable=True),
        _json_text("features_needed", "[]"),
        sa.Column("notes", sa.Text(), nullable=True),
        _json_text("metadata_json", "{}"),
        sa.Column("last_contact_date", sa.DateTime(), nullable=True),
        sa.Column("next_contact_date", sa.DateTime(), nullable=True),
        sa.Column("contact_count", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_leads_tenant_id", "leads", ["tenant_id"])
    op.create_index("ix_leads_agent_id", "leads", ["agent_id"])
    op.create_index("ix_leads_status", "leads", ["status"])
    op.create_index("ix_leads_stage", "leads", ["stage"])

    op.create_table(
        "lead_aliases",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("lead_id", sa.Uuid(), sa.ForeignKey("leads.id"), nullable=False),
        sa.Column("alias_key", sa.String(50), nullable=False),
        sa.Column("external_id", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_lead_aliases_tenant_id", "lead_aliases", ["tenant_id"])
    op.create_index("ix_lead_aliases_lead_id", "lead_aliases", ["lead_id"])
    op.create_index("ix_lead_aliases_external_id", "lead_aliases", ["external_id"])

    op.create_table(
        "lead_activities",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("lead_id", sa.Uuid(), sa.ForeignKey("leads.id"), nullable=False),
        sa.Column("activity_type", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        _json_text("metadata_json", "{}"),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_lead_activities_tenant_id", "lead_activities", ["tenant_id"])
    op.create_index("ix_lead_activities_lead_id", "lead_activities", ["lead_id"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("lead_id", sa.Uuid(), sa.ForeignKey("leads.id"), nullable=False),
        sa.Column("agent_id", sa.Uuid(), sa.ForeignKey("agents.id"), nullable=True),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.String(8), nullable=False),
        sa.Column("location", sa.String(500), nullable=False),
        sa.Column("property_type", sa.String(100), nullable=True),
        _json_text("property_ids", "[]"),
        sa.Column(
            "status",
            sa.Enum(
                "SCHEDULED", "CONFIRMED", "COMPLETED", "CANCELLED", "RESCHEDULED",
                name="appointmentstatus",
            ),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("follow_up_date", sa.Date(), nullable=True),
        sa.Column("follow_up_notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_appointments_tenant_id", "appointments", ["tenant_id"])
    op.create_index("ix_appointments_lead_id", "appointments", ["lead_id"])
    op.create_index("ix_appointments_agent_id", "appointments", ["agent_id"])
    op.create_index("ix_appointments_appointment_date", "appointments", ["appointment_date"])
    op.create_index("ix_appointments_status", "appointments", ["status"])

    op.create_table(
        "properties",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("agent_id", sa.Uuid(), sa.ForeignKey("agents.id"), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("code", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("property_type", sa.String(100), nullable=False),
        sa.Column("operation_type", sa.Enum("SALE", "RENT", name="operationtype"), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column(
            "status",
            sa.Enum("AVAILABLE", "RESERVED", "SOLD", "RENTED", name="propertystatus"),
            nullable=False,
        ),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("city", sa.String(255), nullable=True),
        sa.Column("state", sa.String(255), nullable=True),
        sa.Column("zip_code", sa.String(20), nullable=True),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("show_approximate_location", sa.Boolean(), nullable=False),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Float(), nullable=True),
        sa.Column("area", sa.Float(), nullable=True),
        sa.Column("parking_spots", sa.Integer(), nullable=True),
        sa.Column("year_built", sa.Integer(), nullable=True),
        sa.Column("has_pool", sa.Boolean(), nullable=False),
        sa.Column("has_garden", sa.Boolean(), nullable=False),
        sa.Column("has_garage", sa.Boolean(), nullable=False),
        sa.Column("has_security", sa.Boolean(), nullable=False),
        _json_text("media", "[]"),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_properties_tenant_id", "properties", ["tenant_id"])
    op.create_index("ix_properties_agent_id", "properties", ["agent_id"])
    op.create_index("ix_properties_code", "properties", ["code"])
    op.create_index("ix_properties_property_type", "properties", ["property_type"])
    op.create_index("ix_properties_status", "properties", ["status"])
    op.create_index("ix_properties_city", "properties", ["city"])


def downgrade() -> None:
    for table in (
        "properties",
        "appointments",
        "lead_activities",
        "lead_aliases",
        "leads",
        "agents",
        "tenants",
        "vertical_modules",
        "vertical_categories",
        "verticals",
        "plan_modules",
        "plans",
        "module_dependencies",
        "modules",
    ):
        op.drop_table(table)
    sa.Enum(name="propertystatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="operationtype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="appointmentstatus").drop(op.get_bind(), checkfirst=True)
