"""Partner onboarding stages, tasks, stage reversal requests, notifications and audit logs.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

STAGES = ("OUTREACH", "PRODUCT_OVERVIEW", "PARTNER_PROGRAM", "KYC", "AGREEMENT", "ONBOARDED")
STAGE_STATUSES = ("PENDING", "IN_PROGRESS", "COMPLETED", "BLOCKED")
REVERSAL_STATUSES = ("PENDING", "APPROVED", "DENIED")


def upgrade() -> None:
    stage_enum = postgresql.ENUM(*STAGES, name="onboardingstage", create_type=False)
    stage_status_enum = postgresql.ENUM(*STAGE_STATUSES, name="stagestatus", create_type=False)
    reversal_status_enum = postgresql.ENUM(*REVERSAL_STATUSES, name="reversalstatus", create_type=False)

    # Shared by several tables; create once up front
    bind = op.get_bind()
    for enum_type in (stage_enum, stage_status_enum, reversal_status_enum):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "partner_onboarding",
        sa.Column("partner_id", sa.String(64), primary_key=True),
        sa.Column("current_stage", stage_enum, nullable=False),
        sa.Column("overall_progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("expected_completion_date", sa.DateTime(), nullable=True),
        sa.Column("last_activity", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "onboarding_stage_states",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("partner_id", sa.String(64), nullable=False),
        sa.Column("stage", stage_enum, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("status", stage_status_enum, nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("assigned_to", sa.String(255), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["partner_id"], ["partner_onboarding.partner_id"]),
        sa.UniqueConstraint("partner_id", "stage", name="uq_onboarding_stage_states_partner_stage"),
    )
    op.create_index("ix_onboarding_stage_states_partner_id", "onboarding_stage_states", ["partner_id"])

    op.create_table(
        "onboarding_tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("stage_state_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("assigned_to", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(["stage_state_id"], ["onboarding_stage_states.id"]),
    )
    op.create_index("ix_onboarding_tasks_stage_state_id", "onboarding_tasks", ["stage_state_id"])

    op.create_table(
        "partner_stage_reversal_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("partner_id", sa.String(64), nullable=False),
        sa.Column("from_stage", stage_enum, nullable=False),
        sa.Column("to_stage", stage_enum, nullable=False),
        sa.Column("requested_by", sa.String(255), nullable=False),
        sa.Column("requested_at", sa.DateTime(), nullable=False),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("status", reversal_status_enum, nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["partner_id"], ["partner_onboarding.partner_id"]),
    )
    op.create_index("ix_partner_stage_reversal_requests_partner_id", "partner_stage_reversal_requests", ["partner_id"])
    op.create_index("ix_partner_stage_reversal_requests_status", "partner_stage_reversal_requests", ["status"])
    op.create_index(
        "ix_partner_stage_reversal_requests_partner_status",
        "partner_stage_reversal_requests",
        ["partner_id", "status"],
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("recipient", sa.String(255), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("partner_id", sa.String(64), nullable=True),
        sa.Column("approval_id", sa.Uuid(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_notifications_recipient", "notifications", ["recipient"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("partner_id", sa.String(64), nullable=True),
        sa.Column("actor", sa.String(255), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("payload_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_audit_logs_partner_id", "audit_logs", ["partner_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_partner_id", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_notifications_recipient", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_partner_stage_reversal_requests_partner_status", table_name="partner_stage_reversal_requests")
    op.drop_index("ix_partner_stage_reversal_requests_status", table_name="partner_stage_reversal_requests")
    op.drop_index("ix_partner_stage_reversal_requests_partner_id", table_name="partner_stage_reversal_requests")
    op.drop_table("partner_stage_reversal_requests")
    op.drop_index("ix_onboarding_tasks_stage_state_id", table_name="onboarding_tasks")
    op.drop_table("onboarding_tasks")
    op.drop_index("ix_onboarding_stage_states_partner_id", table_name="onboarding_stage_states")
    op.drop_table("onboarding_stage_states")
    op.drop_table("partner_onboarding")
    postgresql.ENUM(name="reversalstatus").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="stagestatus").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="onboardingstage").drop(op.get_bind(), checkfirst=True)
