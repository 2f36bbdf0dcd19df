"""create_billing_engine_tables

Revision ID: f1a2b3c4d5e6
Revises:
Create Date: 2025-01-20 09:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "f1a2b3c4d5e6"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create tenant, metered resource, usage ledger and invoice tables."""

    op.create_table(
        "tenants",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("subdomain", sa.String(63), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("client_type", sa.String(30), nullable=False),
        sa.Column("billing_model", sa.String(30), nullable=True),
        sa.Column("price_per_door", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("price_per_building", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("price_per_inspector", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("billing_cycle", sa.String(20), nullable=False, server_default="MONTHLY"),
        sa.Column("tax_rate", sa.Numeric(5, 4), nullable=True),
        sa.Column("max_doors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_buildings", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_users", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_inspectors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("invoice_sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quota_version", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "buildings",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_buildings_tenant_id", "buildings", ["tenant_id"])
    op.create_index("ix_buildings_tenant_created", "buildings", ["tenant_id", "created_at"])

    op.create_table(
        "fire_doors",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column(
            "building_id",
            sa.String(255),
            sa.ForeignKey("buildings.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("door_number", sa.String(100), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_fire_doors_tenant_id", "fire_doors", ["tenant_id"])
    op.create_index("ix_fire_doors_tenant_created", "fire_doors", ["tenant_id", "created_at"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_tenant_id", "users", ["tenant_id"])
    op.create_index("ix_users_tenant_email", "users", ["tenant_id", "email"], unique=True)
    op.create_index("ix_users_tenant_role", "users", ["tenant_id", "role"])

    op.create_table(
        "inspections",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column(
            "door_id",
            sa.String(255),
            sa.ForeignKey("fire_doors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("inspector_id", sa.String(255), nullable=True),
        sa.Column("inspection_date", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_inspections_tenant_id", "inspections", ["tenant_id"])
    op.create_index("ix_inspections_tenant_date", "inspections", ["tenant_id", "inspection_date"])

    op.create_table(
        "billing_invoices",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column("invoice_number", sa.String(50), nullable=False, unique=True),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="GBP"),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("billing_period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("billing_period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("issue_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("items", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_billing_invoices_tenant_id", "billing_invoices", ["tenant_id"])
    op.create_index(
        "ix_billing_invoices_tenant_issue", "billing_invoices", ["tenant_id", "issue_date"]
    )
    op.create_index("ix_billing_invoices_status_due", "billing_invoices", ["status", "due_date"])

    op.create_table(
        "billing_usage_records",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("tenant_id", sa.String(255), nullable=False),
        sa.Column("period", sa.DateTime(timezone=True), nullable=False),
        sa.Column("door_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("building_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("inspector_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("inspection_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("calculated_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("usage_details", sa.JSON(), nullable=False),
        sa.Column("invoiced", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "invoice_id", sa.String(255), sa.ForeignKey("billing_invoices.id"), nullable=True
        ),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "period", name="uq_billing_usage_records_tenant_period"),
    )
    op.create_index("ix_billing_usage_records_tenant_id", "billing_usage_records", ["tenant_id"])
    op.create_index(
        "ix_billing_usage_records_tenant_invoiced",
        "billing_usage_records",
        ["tenant_id", "invoiced", "period"],
    )
    op.create_index("ix_billing_usage_records_invoice", "billing_usage_records", ["invoice_id"])


def downgrade() -> None:
    """Drop billing engine tables."""
    op.drop_table("billing_usage_records")
    op.drop_table("billing_invoices")
    op.drop_table("inspections")
    op.drop_table("users")
    op.drop_table("fire_doors")
    op.drop_table("buildings")
    op.drop_table("tenants")
