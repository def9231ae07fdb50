from planbook.services.time_setting_service import TimeSettingService
from planbook.services.key_figure_service import KeyFigureService
from planbook.services.evaluation_service import CellValue, FormulaEvaluator
from planbook.services.planning_data_service import PlanningDataService
from planbook.services.grid_service import GridService
from planbook.services.alert_service import AlertService
from planbook.services.version_service import VersionService

__all__ = [
    "TimeSettingService",
    "KeyFigureService",
    "CellValue",
    "FormulaEvaluator",
    "PlanningDataService",
    "GridService",
    "AlertService",
    "VersionService",
]
