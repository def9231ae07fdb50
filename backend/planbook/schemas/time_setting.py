from datetime import date, datetime
from typing import Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from planbook.engine.periods import enabled_levels
from planbook.schemas.common import reject_nulls

Level = Literal["day", "week", "month", "quarter", "year"]


def check_horizon(
    kind: str,
    start_date: date,
    end_date: Optional[date],
    rolling_periods: Optional[int],
    rolling_unit: Optional[str],
    hierarchy: List[str],
) -> None:
    """Shared by create validation and the merged state of a partial update."""
    if not hierarchy:
        raise ValueError("time_hierarchy must enable at least one level")
    if kind == "fixed":
        if end_date is None:
            raise ValueError("fixed time settings require end_date")
        if end_date < start_date:
            raise ValueError("end_date must not be before start_date")
        if rolling_periods is not None or rolling_unit is not None:
            raise ValueError("fixed time settings must not set rolling_periods/rolling_unit")
    else:
        if end_date is not None:
            raise ValueError("rolling time settings must not set end_date")
        if not rolling_periods or rolling_periods <= 0 or not rolling_unit:
            raise ValueError("rolling time settings require rolling_periods > 0 and rolling_unit")


def _normalize_hierarchy(value):
    # the dashboard sends {"day": true, "month": false, ...}
    if isinstance(value, dict):
        return enabled_levels(level for level, on in value.items() if on)
    return enabled_levels(value or [])


class TimeSettingBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    kind: Literal["fixed", "rolling"] = Field(
        default="fixed", validation_alias=AliasChoices("kind", "type")
    )
    start_date: date
    end_date: Optional[date] = None
    rolling_periods: Optional[int] = Field(default=None, ge=1)
    rolling_unit: Optional[Level] = None
    time_hierarchy: Union[List[Level], Dict[str, bool]]
    is_active: bool = True

    @field_validator("time_hierarchy", mode="after")
    @classmethod
    def normalize_hierarchy(cls, value):
        return _normalize_hierarchy(value)


class TimeSettingCreate(TimeSettingBase):

    @model_validator(mode="after")
    def validate_horizon(self):
        check_horizon(
            self.kind, self.start_date, self.end_date,
            self.rolling_periods, self.rolling_unit, self.time_hierarchy,
        )
        return self


class TimeSettingUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    kind: Optional[Literal["fixed", "rolling"]] = Field(
        default=None, validation_alias=AliasChoices("kind", "type")
    )
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    rolling_periods: Optional[int] = Field(default=None, ge=1)
    rolling_unit: Optional[Level] = None
    time_hierarchy: Optional[Union[List[Level], Dict[str, bool]]] = None
    is_active: Optional[bool] = None

    @field_validator("time_hierarchy", mode="after")
    @classmethod
    def normalize_hierarchy(cls, value):
        return None if value is None else _normalize_hierarchy(value)

    @model_validator(mode="after")
    def validate_not_null(self):
        reject_nulls(self, ("name", "kind", "start_date", "time_hierarchy", "is_active"))
        return self


class TimeSettingResponse(BaseModel):
    id: int
    name: str
    kind: str
    start_date: date
    end_date: Optional[date] = None
    rolling_periods: Optional[int] = None
    rolling_unit: Optional[str] = None
    time_hierarchy: List[str] = Field(validation_alias=AliasChoices("hierarchy_levels", "time_hierarchy"))
    is_active: bool
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PeriodResponse(BaseModel):
    period: str
    type: str
    label: str
    date: date

    class Config:
        from_attributes = True


class TimeHierarchyResponse(BaseModel):
    time_setting_id: int
    levels: List[str]
    finest: str
    coarsest: str
