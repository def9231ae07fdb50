from planbook.models.time_setting import TimeSetting
from planbook.models.key_figure import KeyFigure
from planbook.models.planning_version import PlanningVersion
from planbook.models.planning_data import PlanningData
from planbook.models.alert import Alert, AlertRule
from planbook.models.history_entry import HistoryEntry

__all__ = [
    "TimeSetting",
    "KeyFigure",
    "PlanningVersion",
    "PlanningData",
    "Alert",
    "AlertRule",
    "HistoryEntry",
]
