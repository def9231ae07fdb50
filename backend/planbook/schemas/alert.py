from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from planbook.schemas.common import reject_nulls

Comparison = Literal["lt", "lte", "gt", "gte", "eq", "ne"]
AlertType = Literal["shortage", "excess", "exception", "threshold"]
Severity = Literal["info", "warning", "error", "critical"]
PeriodType = Literal["day", "week", "month", "quarter", "year"]


class AlertRuleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    key_figure_id: int
    comparison: Comparison
    threshold_value: Decimal
    alert_type: AlertType = "threshold"
    severity: Severity = "warning"
    message: Optional[str] = None
    time_setting_id: Optional[int] = None
    period_type: Optional[PeriodType] = None
    is_active: bool = True

    @model_validator(mode="after")
    def validate_horizon_pair(self):
        if (self.time_setting_id is None) != (self.period_type is None):
            raise ValueError("time_setting_id and period_type must be given together")
        return self


class AlertRuleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    comparison: Optional[Comparison] = None
    threshold_value: Optional[Decimal] = None
    alert_type: Optional[AlertType] = None
    severity: Optional[Severity] = None
    message: Optional[str] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def validate_not_null(self):
        reject_nulls(self, ("name", "comparison", "threshold_value", "alert_type", "severity", "is_active"))
        return self


class AlertRuleResponse(BaseModel):
    id: int
    name: str
    key_figure_id: int
    comparison: str
    threshold_value: Decimal
    alert_type: str
    severity: str
    message: Optional[str] = None
    time_setting_id: Optional[int] = None
    period_type: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AlertEvaluateRequest(BaseModel):
    version_id: int


class AlertResponse(BaseModel):
    id: int
    version_id: int
    key_figure_id: int
    rule_id: Optional[int] = None
    time_period: str
    alert_type: str
    severity: str
    message: str
    threshold_value: Optional[Decimal] = None
    actual_value: Optional[Decimal] = None
    is_resolved: bool
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
