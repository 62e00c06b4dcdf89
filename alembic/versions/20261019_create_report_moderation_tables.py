"""create report moderation tables

Revision ID: 20261019_create_report_moderation
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_create_report_moderation"
down_revision = None
branch_labels = None
depends_on = None

_OPEN_STATUS_SQL = "status IN ('escalated', 'pending', 'under_review')"
_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
        sa.Column("account_status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("suspended_at", sa.DateTime(timezone=True)),
        sa.Column("suspended_until", sa.DateTime(timezone=True)),
        sa.Column("suspension_reason", sa.String(length=500)),
        sa.Column("suspension_key", sa.String(length=200)),
        sa.Column("restricted_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "content_items",
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("author_id", sa.String(length=64), nullable=False),
        sa.Column("removed_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("kind", "id"),
    )
    op.create_index("ix_content_items_author_id", "content_items", ["author_id"])

    op.create_table(
        "reports",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("reporter_id", sa.String(length=64), nullable=False),
        sa.Column("target_kind", sa.String(length=16), nullable=False),
        sa.Column("target_id", sa.String(length=64), nullable=False),
        sa.Column("target_user_id", sa.String(length=64)),
        sa.Column("reason_code", sa.String(length=32), nullable=False),
        sa.Column("narrative", sa.Text(), nullable=False),
        sa.Column("supplement", sa.String(length=500)),
        sa.Column("severity", sa.String(length=16), nullable=False, server_default="medium"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("priority", sa.String(length=16), nullable=False),
        sa.Column("actions_taken", _JSON, nullable=False),
        sa.Column("assigned_to", sa.String(length=64)),
        sa.Column("submission_context", _JSON),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    for column in ("reporter_id", "target_kind", "target_id", "target_user_id", "reason_code", "status", "priority", "assigned_to"):
        op.create_index(f"ix_reports_{column}", "reports", [column])
    op.create_index("ix_reports_created_at", "reports", ["created_at"])
    op.create_index(
        "uq_reports_open_target",
        "reports",
        ["reporter_id", "target_kind", "target_id"],
        unique=True,
        postgresql_where=sa.text(_OPEN_STATUS_SQL),
        sqlite_where=sa.text(_OPEN_STATUS_SQL),
    )

    op.create_table(
        "report_audit_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("report_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("reports.id", ondelete="CASCADE"), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=False),
        sa.Column("event", sa.String(length=32), nullable=False),
        sa.Column("action", sa.String(length=32)),
        sa.Column("status", sa.String(length=32)),
        sa.Column("reason", sa.Text()),
        sa.Column("idempotency_key", sa.String(length=200)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("idempotency_key", name="uq_report_audit_log_idempotency_key"),
    )
    op.create_index("ix_report_audit_log_report_id", "report_audit_log", ["report_id"])
    op.create_index("ix_report_audit_log_actor_id", "report_audit_log", ["actor_id"])

    op.create_table(
        "report_enforcements",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("report_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("reports.id", ondelete="CASCADE"), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("target_kind", sa.String(length=16), nullable=False),
        sa.Column("target_id", sa.String(length=64), nullable=False),
        sa.Column("target_user_id", sa.String(length=64)),
        sa.Column("suspended_until", sa.DateTime(timezone=True)),
        sa.Column("reason", sa.Text()),
        sa.Column("idempotency_key", sa.String(length=200), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text()),
        sa.Column("applied_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.UniqueConstraint("idempotency_key", name="uq_report_enforcements_idempotency_key"),
    )
    op.create_index("ix_report_enforcements_report_id", "report_enforcements", ["report_id"])
    op.create_index("ix_report_enforcements_status", "report_enforcements", ["status"])

    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("recipient_id", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("payload", _JSON),
        sa.Column("emailed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_recipient_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_report_enforcements_status", table_name="report_enforcements")
    op.drop_index("ix_report_enforcements_report_id", table_name="report_enforcements")
    op.drop_table("report_enforcements")

    op.drop_index("ix_report_audit_log_actor_id", table_name="report_audit_log")
    op.drop_index("ix_report_audit_log_report_id", table_name="report_audit_log")
    op.drop_table("report_audit_log")

    op.drop_index("uq_reports_open_target", table_name="reports")
    op.drop_index("ix_reports_created_at", table_name="reports")
    for column in ("reporter_id", "target_kind", "target_id", "target_user_id", "reason_code", "status", "priority", "assigned_to"):
        op.drop_index(f"ix_reports_{column}", table_name="reports")
    op.drop_table("reports")

    op.drop_index("ix_content_items_author_id", table_name="content_items")
    op.drop_table("content_items")

    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
