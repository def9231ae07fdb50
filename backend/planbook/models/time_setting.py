import json

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Boolean,
    Text,
    CheckConstraint,
    Index,
    func,
)
from planbook.database import Base


class TimeSetting(Base):
    __tablename__ = "time_settings"
    __table_args__ = (
        CheckConstraint("kind IN ('fixed', 'rolling')", name="ck_time_settings_kind"),
        CheckConstraint(
            "rolling_unit IS NULL OR rolling_unit IN ('day', 'week', 'month', 'quarter', 'year')",
            name="ck_time_settings_rolling_unit",
        ),
        CheckConstraint(
            "(kind = 'fixed' AND end_date IS NOT NULL AND end_date >= start_date) OR "
            "(kind = 'rolling' AND rolling_periods > 0 AND rolling_unit IS NOT NULL)",
            name="ck_time_settings_horizon",
        ),
        Index("ix_time_settings_active", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    kind = Column(String(10), nullable=False, default="fixed")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    rolling_periods = Column(Integer, nullable=True)
    rolling_unit = Column(String(10), nullable=True)
    time_hierarchy_json = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def hierarchy_levels(self) -> list:
        return list(json.loads(self.time_hierarchy_json or "[]"))

    @hierarchy_levels.setter
    def hierarchy_levels(self, levels) -> None:
        self.time_hierarchy_json = json.dumps(sorted(set(levels)))
