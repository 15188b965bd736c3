"""Create users, catalog, access settings, history, payment and audit tables

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="user"),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="active"),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("password_changed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_tier", sa.String(length=50), nullable=False, server_default="free"),
        sa.Column("subscription_plan", sa.String(length=50), nullable=False, server_default="free"),
        sa.Column("subscription_status", sa.String(length=50), nullable=False, server_default="none"),
        sa.Column("subscription_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("lemonsqueezy_customer_id", sa.String(length=255), nullable=True),
        sa.Column("lemonsqueezy_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("language", sa.String(length=10), nullable=False, server_default="en"),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("login_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("lemonsqueezy_customer_id"),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_email_status", "users", ["email", "status"])
    op.create_index("ix_users_subscription", "users", ["subscription_tier", "subscription_status"])
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "chemical_tests",
        sa.Column("id", sa.String(length=120), nullable=False),
        sa.Column("method_name", sa.String(length=255), nullable=False),
        sa.Column("method_name_ar", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("description_ar", sa.Text(), nullable=True),
        sa.Column("prepare", sa.Text(), nullable=False, server_default=""),
        sa.Column("prepare_ar", sa.Text(), nullable=True),
        sa.Column("test_type", sa.String(length=50), nullable=False, server_default="F/L"),
        sa.Column("test_number", sa.String(length=50), nullable=False),
        sa.Column("reference", sa.Text(), nullable=True),
        sa.Column("safety_level", sa.String(length=20), nullable=True),
        sa.Column("preparation_time", sa.Integer(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("color_results", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column("updated_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_chemical_tests_order", "chemical_tests", ["display_order"])
    op.create_index("ix_chemical_tests_type", "chemical_tests", ["test_type"])

    op.create_table(
        "access_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("free_tests_enabled", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("free_tests_count", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("premium_required", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("global_free_access", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("premium_test_indices", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("updated_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "test_history",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("test_id", sa.String(length=120), nullable=False),
        sa.Column("test_name", sa.String(length=255), nullable=False),
        sa.Column("test_name_ar", sa.String(length=255), nullable=True),
        sa.Column("selected_color", sa.JSON(), nullable=True),
        sa.Column("result_substance", sa.String(length=255), nullable=True),
        sa.Column("result_substance_ar", sa.String(length=255), nullable=True),
        sa.Column("confidence", sa.String(length=50), nullable=True),
        sa.Column("accuracy", sa.Float(), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "completed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_history_user_id", "test_history", ["user_id"])
    op.create_index("ix_test_history_user_completed", "test_history", ["user_id", "completed_at"])

    op.create_table(
        "payment_records",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("provider_reference", sa.String(length=255), nullable=True),
        sa.Column("event_name", sa.String(length=100), nullable=False),
        sa.Column("plan", sa.String(length=50), nullable=False),
        sa.Column("amount", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="SAR"),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payment_records_user_id", "payment_records", ["user_id"])

    op.create_table(
        "admin_audit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("admin_user_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("admin_email", sa.String(length=255), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("target_type", sa.String(length=50), nullable=False),
        sa.Column("target_id", sa.String(length=120), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["admin_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admin_audit_logs_admin_user_id", "admin_audit_logs", ["admin_user_id"])
    op.create_index("ix_admin_audit_logs_action", "admin_audit_logs", ["action"])
    op.create_index("ix_admin_audit_logs_target_type", "admin_audit_logs", ["target_type"])
    op.create_index("ix_admin_audit_admin_action", "admin_audit_logs", ["admin_user_id", "action"])
    op.create_index("ix_admin_audit_target", "admin_audit_logs", ["target_type", "target_id"])
    op.create_index("ix_admin_audit_created", "admin_audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("admin_audit_logs")
    op.drop_table("payment_records")
    op.drop_table("test_history")
    op.drop_table("access_settings")
    op.drop_table("chemical_tests")
    op.drop_table("users")
