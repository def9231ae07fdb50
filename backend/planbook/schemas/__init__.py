from planbook.schemas.time_setting import (
    TimeSettingCreate,
    TimeSettingUpdate,
    TimeSettingResponse,
    PeriodResponse,
    TimeHierarchyResponse,
)
from planbook.schemas.key_figure import (
    KeyFigureCreate,
    KeyFigureUpdate,
    KeyFigureResponse,
    FormulaValidationRequest,
    FormulaValidationResponse,
    KeyFigureDependenciesResponse,
)
from planbook.schemas.planning_version import (
    PlanningVersionCreate,
    PlanningVersionUpdate,
    PlanningVersionCopyRequest,
    PlanningVersionResponse,
    PlanningVersionListResponse,
)
from planbook.schemas.planning_data import (
    CellUpdate,
    BulkUpdateRequest,
    BulkUpdateResponse,
    PlanningDataUpsert,
    PlanningDataResponse,
    GridCell,
    GridRow,
    GridResponse,
)
from planbook.schemas.alert import (
    AlertRuleCreate,
    AlertRuleUpdate,
    AlertRuleResponse,
    AlertEvaluateRequest,
    AlertResponse,
)
from planbook.schemas.history import HistoryEntryResponse
