from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    Text,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
    func,
)
from planbook.database import Base


class PlanningData(Base):
    __tablename__ = "planning_data"
    __table_args__ = (
        UniqueConstraint(
            "version_id",
            "key_figure_id",
            "time_period",
            "period_type",
            name="uq_planning_data_cell",
        ),
        CheckConstraint(
            "period_type IN ('day', 'week', 'month', 'quarter', 'year')",
            name="ck_planning_data_period_type",
        ),
        Index("ix_planning_data_version_kf", "version_id", "key_figure_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    version_id = Column(
        Integer,
        ForeignKey("planning_versions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    key_figure_id = Column(Integer, ForeignKey("key_figures.id"), nullable=False, index=True)
    time_period = Column(String(12), nullable=False)
    period_type = Column(String(10), nullable=False)
    value = Column(Numeric(18, 4), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    updated_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
