"""initial commission crm schema

Revision ID: 3f1a9c2d7e45
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f1a9c2d7e45"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -----------------------------------------------------
    # 1) users
    # -----------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="EXECUTIVE"),
        sa.Column("leader_id", sa.Uuid(), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("location", sa.String(length=120), nullable=True),
        sa.Column("pj_details", sa.JSON(), nullable=True),
        sa.Column("magic_code", sa.String(length=64), nullable=True),
        sa.Column("magic_code_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["leader_id"], ["users.id"], name="fk_users_leader_id", ondelete="SET NULL"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_leader_id", "users", ["leader_id"])

    # -----------------------------------------------------
    # 2) opportunities
    # -----------------------------------------------------
    op.create_table(
        "opportunities",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("executive_id", sa.Uuid(), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("cnpj", sa.String(length=32), nullable=True),
        sa.Column("contact_name", sa.String(length=200), nullable=True),
        sa.Column("contact_email", sa.String(length=320), nullable=True),
        sa.Column("project_type", sa.String(length=32), nullable=False, server_default="WEB"),
        sa.Column("estimated_value", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="PROSPECTING"),
        sa.Column("temperature", sa.String(length=8), nullable=False, server_default="WARM"),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("payment_conditions", sa.Text(), nullable=True),
        sa.Column("engineering", sa.JSON(), nullable=True),
        sa.Column("project_start_date", sa.Date(), nullable=True),
        sa.Column("project_deadline", sa.Date(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["executive_id"], ["users.id"], name="fk_opportunities_executive_id", ondelete="RESTRICT"
        ),
        sa.CheckConstraint("estimated_value >= 0", name="ck_opportunities_estimated_value_non_negative"),
    )
    op.create_index("ix_opportunities_executive_created", "opportunities", ["executive_id", "created_at"])
    op.create_index("ix_opportunities_status", "opportunities", ["status"])

    # -----------------------------------------------------
    # 3) commission_records (upserted by deterministic id, never deleted)
    # -----------------------------------------------------
    op.create_table(
        "commission_records",
        sa.Column("id", sa.String(length=96), primary_key=True, nullable=False),
        sa.Column("opportunity_id", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", sa.String(length=24), nullable=False),
        sa.Column("due_date", sa.String(length=32), nullable=False),
        sa.Column("invoice_url", sa.Text(), nullable=True),
        sa.Column("paid_at", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["opportunity_id"],
            ["opportunities.id"],
            name="fk_commission_records_opportunity_id",
            ondelete="RESTRICT",
        ),
    )
    op.create_index("ix_commission_records_opportunity", "commission_records", ["opportunity_id"])
    op.create_index("ix_commission_records_status", "commission_records", ["status"])

    # -----------------------------------------------------
    # 4) timesheet_entries
    # -----------------------------------------------------
    op.create_table(
        "timesheet_entries",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("opportunity_id", sa.String(length=64), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("hours", sa.Numeric(5, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_timesheet_entries_user_id", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["opportunity_id"],
            ["opportunities.id"],
            name="fk_timesheet_entries_opportunity_id",
            ondelete="RESTRICT",
        ),
        sa.CheckConstraint("hours > 0 AND hours <= 24", name="ck_timesheet_entries_hours_range"),
    )
    op.create_index("ix_timesheet_entries_user_work_date", "timesheet_entries", ["user_id", "work_date"])
    op.create_index("ix_timesheet_entries_opportunity", "timesheet_entries", ["opportunity_id"])


def downgrade() -> None:
    op.drop_index("ix_timesheet_entries_opportunity", table_name="timesheet_entries")
    op.drop_index("ix_timesheet_entries_user_work_date", table_name="timesheet_entries")
    op.drop_table("timesheet_entries")

    op.drop_index("ix_commission_records_status", table_name="commission_records")
    op.drop_index("ix_commission_records_opportunity", table_name="commission_records")
    op.drop_table("commission_records")

    op.drop_index("ix_opportunities_status", table_name="opportunities")
    op.drop_index("ix_opportunities_executive_created", table_name="opportunities")
    op.drop_table("opportunities")

    op.drop_index("ix_users_leader_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
