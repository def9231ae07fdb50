"""create planning book core tables

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "time_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("kind", sa.String(length=10), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("rolling_periods", sa.Integer(), nullable=True),
        sa.Column("rolling_unit", sa.String(length=10), nullable=True),
        sa.Column("time_hierarchy_json", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("kind IN ('fixed', 'rolling')", name="ck_time_settings_kind"),
        sa.CheckConstraint(
            "rolling_unit IS NULL OR rolling_unit IN ('day', 'week', 'month', 'quarter', 'year')",
            name="ck_time_settings_rolling_unit",
        ),
        sa.CheckConstraint(
            "(kind = 'fixed' AND end_date IS NOT NULL AND end_date >= start_date) OR "
            "(kind = 'rolling' AND rolling_periods > 0 AND rolling_unit IS NOT NULL)",
            name="ck_time_settings_horizon",
        ),
    )
    op.create_index("ix_time_settings_id", "time_settings", ["id"], unique=False)
    op.create_index("ix_time_settings_active", "time_settings", ["is_active"], unique=False)

    op.create_table(
        "key_figures",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("kf_type", sa.String(length=12), nullable=False),
        sa.Column("unit", sa.String(length=30), nullable=True),
        sa.Column("display_format", sa.String(length=30), nullable=True),
        sa.Column("source_table", sa.String(length=100), nullable=True),
        sa.Column("source_field", sa.String(length=100), nullable=True),
        sa.Column("aggregation", sa.String(length=10), nullable=True),
        sa.Column("formula", sa.Text(), nullable=True),
        sa.Column("formula_ast_json", sa.Text(), nullable=True),
        sa.Column("dependencies_json", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("kf_type IN ('base', 'calculated')", name="ck_key_figures_type"),
        sa.CheckConstraint(
            "aggregation IS NULL OR aggregation IN ('sum', 'avg', 'min', 'max', 'count')",
            name="ck_key_figures_aggregation",
        ),
        sa.CheckConstraint(
            "(kf_type = 'calculated' AND formula IS NOT NULL) OR (kf_type = 'base' AND formula IS NULL)",
            name="ck_key_figures_formula_by_type",
        ),
    )
    op.create_index("ix_key_figures_id", "key_figures", ["id"], unique=False)
    op.create_index("ix_key_figures_code", "key_figures", ["code"], unique=True)
    op.create_index("ix_key_figures_type_active", "key_figures", ["kf_type", "is_active"], unique=False)

    op.create_table(
        "planning_versions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "base_version_id",
            sa.Integer(),
            sa.ForeignKey("planning_versions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="draft"),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        sa.Column("locked_at", sa.DateTime(), nullable=True),
        sa.Column("locked_by", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "status IN ('draft', 'active', 'locked', 'archived')",
            name="ck_planning_versions_status",
        ),
        sa.CheckConstraint(
            "status <> 'locked' OR locked_at IS NOT NULL",
            name="ck_planning_versions_locked_at",
        ),
    )
    op.create_index("ix_planning_versions_id", "planning_versions", ["id"], unique=False)
    op.create_index("ix_planning_versions_status", "planning_versions", ["status"], unique=False)

    op.create_table(
        "planning_data",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "version_id",
            sa.Integer(),
            sa.ForeignKey("planning_versions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("key_figure_id", sa.Integer(), sa.ForeignKey("key_figures.id"), nullable=False),
        sa.Column("time_period", sa.String(length=12), nullable=False),
        sa.Column("period_type", sa.String(length=10), nullable=False),
        sa.Column("value", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("updated_by", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "version_id", "key_figure_id", "time_period", "period_type",
            name="uq_planning_data_cell",
        ),
        sa.CheckConstraint(
            "period_type IN ('day', 'week', 'month', 'quarter', 'year')",
            name="ck_planning_data_period_type",
        ),
    )
    op.create_index("ix_planning_data_id", "planning_data", ["id"], unique=False)
    op.create_index("ix_planning_data_version_id", "planning_data", ["version_id"], unique=False)
    op.create_index("ix_planning_data_key_figure_id", "planning_data", ["key_figure_id"], unique=False)
    op.create_index("ix_planning_data_version_kf", "planning_data", ["version_id", "key_figure_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_planning_data_version_kf", table_name="planning_data")
    op.drop_index("ix_planning_data_key_figure_id", table_name="planning_data")
    op.drop_index("ix_planning_data_version_id", table_name="planning_data")
    op.drop_index("ix_planning_data_id", table_name="planning_data")
    op.drop_table("planning_data")
    op.drop_index("ix_planning_versions_status", table_name="planning_versions")
    op.drop_index("ix_planning_versions_id", table_name="planning_versions")
    op.drop_table("planning_versions")
    op.drop_index("ix_key_figures_type_active", table_name="key_figures")
    op.drop_index("ix_key_figures_code", table_name="key_figures")
    op.drop_index("ix_key_figures_id", table_name="key_figures")
    op.drop_table("key_figures")
    op.drop_index("ix_time_settings_active", table_name="time_settings")
    op.drop_index("ix_time_settings_id", table_name="time_settings")
    op.drop_table("time_settings")
