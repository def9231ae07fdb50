# Repository Layer — Data Access (Repository Pattern, GoF)
from planbook.repositories.base import BaseRepository
from planbook.repositories.time_setting_repository import TimeSettingRepository
from planbook.repositories.key_figure_repository import KeyFigureRepository
from planbook.repositories.planning_version_repository import PlanningVersionRepository
from planbook.repositories.planning_data_repository import PlanningDataRepository
from planbook.repositories.alert_repository import AlertRepository, AlertRuleRepository
from planbook.repositories.history_repository import HistoryRepository

__all__ = [
    "BaseRepository",
    "TimeSettingRepository",
    "KeyFigureRepository",
    "PlanningVersionRepository",
    "PlanningDataRepository",
    "AlertRepository",
    "AlertRuleRepository",
    "HistoryRepository",
]
