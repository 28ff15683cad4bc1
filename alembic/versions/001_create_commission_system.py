"""Create commission settings, rule and audit tables.

Revision ID: 001_create_commission_system
Revises:
"""

from typing import Union

from alembic import op
from sqlalchemy import inspect
import sqlalchemy as sa

revision: str = "001_create_commission_system"
down_revision: Union[str, None] = None
branch_labels: Union[str, None] = None
depends_on: Union[str, None] = None


def _table_exists(table: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    return table in insp.get_table_names()


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _rule_columns() -> list:
    return [
        sa.Column("subscription_type", sa.String(20), nullable=False),
        sa.Column("commission_model", sa.String(20), nullable=False),
        sa.Column("onetime_type", sa.String(20), server_default="percentage", nullable=False),
        sa.Column("onetime_value", sa.Numeric(10, 2), server_default="0", nullable=False),
        sa.Column("recurring_type", sa.String(20), server_default="percentage", nullable=False),
        sa.Column("recurring_value", sa.Numeric(10, 2), server_default="0", nullable=False),
        sa.Column("recurring_duration", sa.Integer(), server_default="12", nullable=False),
    ]


def _rule_checks(suffix: str) -> list:
    return [
        sa.CheckConstraint(
            "onetime_value >= 0 AND recurring_value >= 0",
            name=f"valid_values{suffix}",
        ),
        sa.CheckConstraint(
            "(onetime_type != 'percentage' OR onetime_value <= 100) AND "
            "(recurring_type != 'percentage' OR recurring_value <= 100)",
            name=f"valid_percentages{suffix}",
        ),
        sa.CheckConstraint(
            "recurring_duration > 0 AND recurring_duration <= 24",
            name=f"valid_duration{suffix}",
        ),
    ]


def upgrade() -> None:
    if not _table_exists("subscription_plans"):
        op.create_table(
            "subscription_plans",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("monthly_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("yearly_price", sa.Numeric(10, 2), server_default="0", nullable=False),
            sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
            _created_at(),
        )

    if not _table_exists("commission_settings"):
        op.create_table(
            "commission_settings",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("version", sa.Integer(), nullable=False, unique=True),
            sa.Column("is_active", sa.Boolean(), server_default="false", nullable=False),
            sa.Column("created_by", sa.String(255), nullable=True),
            # Feature toggles
            sa.Column("enable_multi_tier", sa.Boolean(), server_default="true", nullable=False),
            sa.Column("auto_approve_applications", sa.Boolean(), server_default="false", nullable=False),
            sa.Column("send_welcome_email", sa.Boolean(), server_default="true", nullable=False),
            sa.Column("send_commission_notifications", sa.Boolean(), server_default="true", nullable=False),
            # Payment settings
            sa.Column("min_payout_threshold", sa.Numeric(10, 2), server_default="500.00", nullable=False),
            sa.Column("payment_schedule", sa.String(20), server_default="monthly", nullable=False),
            sa.Column("payment_day", sa.String(20), server_default="1st", nullable=False),
            # Recruitment settings
            sa.Column("max_helpers_per_recruiter", sa.Integer(), server_default="-1", nullable=False),
            sa.Column("referral_code_prefix", sa.String(10), server_default="HELP", nullable=False),
            sa.Column("auto_generate_codes", sa.Boolean(), server_default="true", nullable=False),
            _created_at(),
            sa.CheckConstraint(
                "payment_schedule IN ('weekly', 'biweekly', 'monthly')",
                name="valid_payment_schedule",
            ),
            sa.CheckConstraint("min_payout_threshold >= 0", name="valid_payout_threshold"),
            sa.CheckConstraint("max_helpers_per_recruiter >= -1", name="valid_max_helpers"),
        )
        # At most one active version
        op.create_index(
            "idx_active_commission_settings",
            "commission_settings",
            ["is_active"],
            unique=True,
            postgresql_where=sa.text("is_active"),
        )

    if not _table_exists("network_commission"):
        op.create_table(
            "network_commission",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "settings_id",
                sa.Integer(),
                sa.ForeignKey("commission_settings.id", ondelete="CASCADE"),
                nullable=False,
            ),
            *_rule_columns(),
            _created_at(),
            sa.UniqueConstraint(
                "settings_id", "subscription_type", name="idx_network_commission_unique"
            ),
            *_rule_checks(""),
        )
        op.create_index(
            "ix_network_commission_settings_id", "network_commission", ["settings_id"]
        )

    if not _table_exists("plan_commission"):
        op.create_table(
            "plan_commission",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "settings_id",
                sa.Integer(),
                sa.ForeignKey("commission_settings.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "plan_id",
                sa.String(36),
                sa.ForeignKey("subscription_plans.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("enabled", sa.Boolean(), server_default="false", nullable=False),
            *_rule_columns(),
            _created_at(),
            sa.UniqueConstraint(
                "settings_id", "plan_id", "subscription_type", name="idx_plan_commission_unique"
            ),
            *_rule_checks("_plan"),
        )
        op.create_index("ix_plan_commission_settings_id", "plan_commission", ["settings_id"])
        op.create_index("ix_plan_commission_plan_id", "plan_commission", ["plan_id"])

    if not _table_exists("commission_audit"):
        op.create_table(
            "commission_audit",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "settings_id",
                sa.Integer(),
                sa.ForeignKey("commission_settings.id", ondelete="CASCADE"),
                nullable=True,
            ),
            sa.Column("changed_by", sa.String(255), nullable=True),
            sa.Column("action", sa.String(20), nullable=False),
            sa.Column("table_name", sa.String(50), nullable=False),
            sa.Column("field_changed", sa.String(255), nullable=True),
            sa.Column("old_value", sa.JSON(), nullable=True),
            sa.Column("new_value", sa.JSON(), nullable=True),
            sa.Column("change_reason", sa.Text(), nullable=True),
            _created_at(),
        )
        op.create_index("ix_commission_audit_settings_id", "commission_audit", ["settings_id"])
        op.create_index("ix_commission_audit_changed_by", "commission_audit", ["changed_by"])
        op.create_index("ix_commission_audit_created_at", "commission_audit", ["created_at"])


def downgrade() -> None:
    for table in (
        "commission_audit",
        "plan_commission",
        "network_commission",
        "commission_settings",
        "subscription_plans",
    ):
        if _table_exists(table):
            op.drop_table(table)
