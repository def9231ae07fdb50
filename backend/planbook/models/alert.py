from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    Text,
    Boolean,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    func,
)
from planbook.database import Base

ALERT_TYPES = ("shortage", "excess", "exception", "threshold")
SEVERITIES = ("info", "warning", "error", "critical")
COMPARISONS = ("lt", "lte", "gt", "gte", "eq", "ne")


class AlertRule(Base):
    __tablename__ = "alert_rules"
    __table_args__ = (
        CheckConstraint(
            "comparison IN ('lt', 'lte', 'gt', 'gte', 'eq', 'ne')",
            name="ck_alert_rules_comparison",
        ),
        CheckConstraint(
            "alert_type IN ('shortage', 'excess', 'exception', 'threshold')",
            name="ck_alert_rules_type",
        ),
        CheckConstraint(
            "severity IN ('info', 'warning', 'error', 'critical')",
            name="ck_alert_rules_severity",
        ),
        CheckConstraint(
            "(time_setting_id IS NULL AND period_type IS NULL) OR "
            "(time_setting_id IS NOT NULL AND period_type IS NOT NULL)",
            name="ck_alert_rules_horizon_pair",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    key_figure_id = Column(Integer, ForeignKey("key_figures.id", ondelete="CASCADE"), nullable=False, index=True)
    comparison = Column(String(4), nullable=False)
    threshold_value = Column(Numeric(18, 4), nullable=False)
    alert_type = Column(String(12), nullable=False, default="threshold")
    severity = Column(String(10), nullable=False, default="warning")
    message = Column(Text, nullable=True)
    time_setting_id = Column(Integer, ForeignKey("time_settings.id", ondelete="SET NULL"), nullable=True)
    period_type = Column(String(10), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)


class Alert(Base):
    __tablename__ = "planning_alerts"
    __table_args__ = (
        CheckConstraint(
            "alert_type IN ('shortage', 'excess', 'exception', 'threshold')",
            name="ck_planning_alerts_type",
        ),
        CheckConstraint(
            "severity IN ('info', 'warning', 'error', 'critical')",
            name="ck_planning_alerts_severity",
        ),
        Index(
            "ix_planning_alerts_tuple",
            "version_id",
            "key_figure_id",
            "time_period",
            "alert_type",
            "is_resolved",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    version_id = Column(
        Integer,
        ForeignKey("planning_versions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    key_figure_id = Column(Integer, ForeignKey("key_figures.id", ondelete="CASCADE"), nullable=False)
    rule_id = Column(Integer, ForeignKey("alert_rules.id", ondelete="SET NULL"), nullable=True)
    time_period = Column(String(12), nullable=False)
    alert_type = Column(String(12), nullable=False)
    severity = Column(String(10), nullable=False)
    message = Column(Text, nullable=False)
    threshold_value = Column(Numeric(18, 4), nullable=True)
    actual_value = Column(Numeric(18, 4), nullable=True)
    is_resolved = Column(Boolean, nullable=False, default=False)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
