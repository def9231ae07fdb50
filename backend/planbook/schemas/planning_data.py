from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field

from planbook.schemas.time_setting import PeriodResponse

PeriodType = Literal["day", "week", "month", "quarter", "year"]


class CellUpdate(BaseModel):
    key_figure_id: int
    period: str = Field(validation_alias=AliasChoices("period", "time_period"))
    period_type: PeriodType
    value: Decimal
    notes: Optional[str] = None


class BulkUpdateRequest(BaseModel):
    version_id: int
    updates: List[CellUpdate]


class BulkUpdateResponse(BaseModel):
    success: bool = True
    version_id: int
    total: int
    changed: int
    unchanged: int


class PlanningDataUpsert(CellUpdate):
    version_id: int


class PlanningDataResponse(BaseModel):
    id: int
    version_id: int
    key_figure_id: int
    time_period: str
    period_type: str
    value: Decimal
    notes: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GridCell(BaseModel):
    period: str
    type: str
    value: float
    has_data: bool
    notes: Optional[str] = None
    data_id: Optional[int] = None


class GridRow(BaseModel):
    key_figure_id: int
    key_figure_code: str
    key_figure_name: str
    key_figure_type: str
    unit: Optional[str] = None
    values: List[GridCell]


class GridResponse(BaseModel):
    version_id: int
    time_setting_id: int
    level: Optional[str] = None
    columns: List[PeriodResponse]
    rows: List[GridRow]
