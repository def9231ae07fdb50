"""
Time Setting Service — Time Resolver (SRP / DIP)

Owns time setting CRUD and resolves a setting into ordered period columns.
Resolution is read-only and deterministic for fixed settings; rolling
settings are re-anchored on ``today`` at every call.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from planbook.config import settings
from planbook.core.exceptions import BusinessRuleViolationException, EntityNotFoundException
from planbook.engine.periods import (
    TimePeriod,
    enabled_levels,
    next_start,
    period_end,
    period_start,
    resolve_horizon,
)
from planbook.models.alert import AlertRule
from planbook.models.time_setting import TimeSetting
from planbook.repositories.time_setting_repository import TimeSettingRepository
from planbook.schemas.time_setting import (
    TimeHierarchyResponse,
    TimeSettingCreate,
    TimeSettingUpdate,
    check_horizon,
)

logger = logging.getLogger(__name__)


class TimeSettingService:

    def __init__(self, db: Session):
        self._db = db
        self._repo = TimeSettingRepository(db)

    def list_settings(self, is_active: Optional[bool] = None, kind: Optional[str] = None) -> List[TimeSetting]:
        return self._repo.list_filtered(is_active=is_active, kind=kind)

    def get_setting(self, setting_id: int) -> TimeSetting:
        setting = self._repo.get_by_id(setting_id)
        if not setting:
            raise EntityNotFoundException("TimeSetting", setting_id)
        return setting

    def create_setting(self, data: TimeSettingCreate, user_id: Optional[str] = None) -> TimeSetting:
        setting = TimeSetting(
            name=data.name,
            kind=data.kind,
            start_date=data.start_date,
            end_date=data.end_date,
            rolling_periods=data.rolling_periods,
            rolling_unit=data.rolling_unit,
            is_active=data.is_active,
            created_by=user_id,
        )
        setting.hierarchy_levels = data.time_hierarchy
        return self._repo.create(setting)

    def update_setting(self, setting_id: int, data: TimeSettingUpdate) -> TimeSetting:
        setting = self.get_setting(setting_id)
        updates = data.model_dump(exclude_unset=True)
        hierarchy = updates.pop("time_hierarchy", None)

        merged = {
            "kind": updates.get("kind", setting.kind),
            "start_date": updates.get("start_date", setting.start_date),
            "end_date": updates.get("end_date", setting.end_date),
            "rolling_periods": updates.get("rolling_periods", setting.rolling_periods),
            "rolling_unit": updates.get("rolling_unit", setting.rolling_unit),
            "hierarchy": hierarchy if hierarchy is not None else setting.hierarchy_levels,
        }
        try:
            check_horizon(**merged)
        except ValueError as exc:
            raise BusinessRuleViolationException(str(exc), {"time_setting_id": setting_id}) from exc

        if hierarchy is not None:
            pinned = (
                self._db.query(AlertRule)
                .filter(AlertRule.time_setting_id == setting_id, AlertRule.period_type.notin_(hierarchy))
                .order_by(AlertRule.id)
                .all()
            )
            if pinned:
                raise BusinessRuleViolationException(
                    f"Alert rules {', '.join(str(r.id) for r in pinned)} are pinned to levels this update disables.",
                    {
                        "time_setting_id": setting_id,
                        "rule_ids": [r.id for r in pinned],
                        "period_types": sorted({r.period_type for r in pinned}),
                    },
                )
            setting.hierarchy_levels = hierarchy
        return self._repo.update(setting, updates)

    def delete_setting(self, setting_id: int) -> None:
        setting = self.get_setting(setting_id)
        # rules pinned to this horizon fall back to stored periods
        (
            self._db.query(AlertRule)
            .filter(AlertRule.time_setting_id == setting_id)
            .update({"time_setting_id": None, "period_type": None}, synchronize_session=False)
        )
        self._repo.delete(setting)

    def get_hierarchy(self, setting_id: int) -> TimeHierarchyResponse:
        setting = self.get_setting(setting_id)
        levels = enabled_levels(setting.hierarchy_levels)
        return TimeHierarchyResponse(
            time_setting_id=setting.id,
            levels=levels,
            finest=levels[0],
            coarsest=levels[-1],
        )

    @staticmethod
    def finest_level(setting: TimeSetting) -> str:
        return enabled_levels(setting.hierarchy_levels)[0]

    def resolve_periods(
        self,
        setting: TimeSetting,
        level: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[TimePeriod]:
        return resolve_horizon(
            setting,
            level or self.finest_level(setting),
            today=today,
            limit=settings.MAX_RESOLVED_PERIODS,
        )

    def resolve_periods_by_id(
        self,
        setting_id: int,
        level: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[TimePeriod]:
        return self.resolve_periods(self.get_setting(setting_id), level=level, today=today)

    def roll_forward(self, setting_id: int) -> TimeSetting:
        """Shift a fixed horizon forward by one bucket of its finest enabled level."""
        setting = self.get_setting(setting_id)
        if setting.kind != "fixed":
            raise BusinessRuleViolationException(
                "Rolling time settings re-anchor on every resolution and cannot be rolled forward.",
                {"time_setting_id": setting_id},
            )
        level = self.finest_level(setting)
        end_bucket = period_start(setting.end_date, level)
        if setting.end_date == period_end(end_bucket, level):
            # a horizon closing on a bucket boundary keeps closing on one
            end_date = period_end(next_start(end_bucket, level), level)
        else:
            end_date = next_start(setting.end_date, level)
        updates = {
            "start_date": next_start(setting.start_date, level),
            "end_date": end_date,
        }
        logger.info(
            "time_setting_rolled_forward id=%s level=%s start=%s end=%s",
            setting_id, level, updates["start_date"], updates["end_date"],
        )
        return self._repo.update(setting, updates)
