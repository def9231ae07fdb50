from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    Text,
    DateTime,
    CheckConstraint,
    Index,
    func,
)
from planbook.database import Base


class HistoryEntry(Base):
    """Append-only audit row. Never updated or deleted."""

    __tablename__ = "planning_history"
    __table_args__ = (
        CheckConstraint(
            "action IN ('create', 'update', 'delete', 'copy', 'lock', 'unlock')",
            name="ck_planning_history_action",
        ),
        Index("ix_planning_history_version_changed", "version_id", "changed_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # no FK: history outlives the version it describes
    version_id = Column(Integer, nullable=False)
    key_figure_id = Column(Integer, nullable=True)
    time_period = Column(String(12), nullable=True)
    action = Column(String(10), nullable=False)
    old_value = Column(Numeric(18, 4), nullable=True)
    new_value = Column(Numeric(18, 4), nullable=True)
    notes = Column(Text, nullable=True)
    changed_by = Column(String(100), nullable=False)
    changed_at = Column(DateTime, default=func.now(), nullable=False)
