"""add alert rules, planning alerts and planning history

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 09:30:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None


ALERT_TYPES = "('shortage', 'excess', 'exception', 'threshold')"
SEVERITIES = "('info', 'warning', 'error', 'critical')"


def upgrade() -> None:
    op.create_table(
        "alert_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column(
            "key_figure_id",
            sa.Integer(),
            sa.ForeignKey("key_figures.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("comparison", sa.String(length=4), nullable=False),
        sa.Column("threshold_value", sa.Numeric(18, 4), nullable=False),
        sa.Column("alert_type", sa.String(length=12), nullable=False, server_default="threshold"),
        sa.Column("severity", sa.String(length=10), nullable=False, server_default="warning"),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column(
            "time_setting_id",
            sa.Integer(),
            sa.ForeignKey("time_settings.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("period_type", sa.String(length=10), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "comparison IN ('lt', 'lte', 'gt', 'gte', 'eq', 'ne')",
            name="ck_alert_rules_comparison",
        ),
        sa.CheckConstraint(f"alert_type IN {ALERT_TYPES}", name="ck_alert_rules_type"),
        sa.CheckConstraint(f"severity IN {SEVERITIES}", name="ck_alert_rules_severity"),
        sa.CheckConstraint(
            "(time_setting_id IS NULL AND period_type IS NULL) OR "
            "(time_setting_id IS NOT NULL AND period_type IS NOT NULL)",
            name="ck_alert_rules_horizon_pair",
        ),
    )
    op.create_index("ix_alert_rules_id", "alert_rules", ["id"], unique=False)
    op.create_index("ix_alert_rules_key_figure_id", "alert_rules", ["key_figure_id"], unique=False)

    op.create_table(
        "planning_alerts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "version_id",
            sa.Integer(),
            sa.ForeignKey("planning_versions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "key_figure_id",
            sa.Integer(),
            sa.ForeignKey("key_figures.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "rule_id",
            sa.Integer(),
            sa.ForeignKey("alert_rules.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("time_period", sa.String(length=12), nullable=False),
        sa.Column("alert_type", sa.String(length=12), nullable=False),
        sa.Column("severity", sa.String(length=10), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("threshold_value", sa.Numeric(18, 4), nullable=True),
        sa.Column("actual_value", sa.Numeric(18, 4), nullable=True),
        sa.Column("is_resolved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("resolved_by", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(f"alert_type IN {ALERT_TYPES}", name="ck_planning_alerts_type"),
        sa.CheckConstraint(f"severity IN {SEVERITIES}", name="ck_planning_alerts_severity"),
    )
    op.create_index("ix_planning_alerts_id", "planning_alerts", ["id"], unique=False)
    op.create_index("ix_planning_alerts_version_id", "planning_alerts", ["version_id"], unique=False)
    op.create_index(
        "ix_planning_alerts_tuple",
        "planning_alerts",
        ["version_id", "key_figure_id", "time_period", "alert_type", "is_resolved"],
        unique=False,
    )

    op.create_table(
        "planning_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("key_figure_id", sa.Integer(), nullable=True),
        sa.Column("time_period", sa.String(length=12), nullable=True),
        sa.Column("action", sa.String(length=10), nullable=False),
        sa.Column("old_value", sa.Numeric(18, 4), nullable=True),
        sa.Column("new_value", sa.Numeric(18, 4), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("changed_by", sa.String(length=100), nullable=False),
        sa.Column("changed_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "action IN ('create', 'update', 'delete', 'copy', 'lock', 'unlock')",
            name="ck_planning_history_action",
        ),
    )
    op.create_index("ix_planning_history_id", "planning_history", ["id"], unique=False)
    op.create_index(
        "ix_planning_history_version_changed",
        "planning_history",
        ["version_id", "changed_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_planning_history_version_changed", table_name="planning_history")
    op.drop_index("ix_planning_history_id", table_name="planning_history")
    op.drop_table("planning_history")
    op.drop_index("ix_planning_alerts_tuple", table_name="planning_alerts")
    op.drop_index("ix_planning_alerts_version_id", table_name="planning_alerts")
    op.drop_index("ix_planning_alerts_id", table_name="planning_alerts")
    op.drop_table("planning_alerts")
    op.drop_index("ix_alert_rules_key_figure_id", table_name="alert_rules")
    op.drop_index("ix_alert_rules_id", table_name="alert_rules")
    op.drop_table("alert_rules")
