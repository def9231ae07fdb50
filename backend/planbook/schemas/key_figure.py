from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from planbook.engine.formula import is_valid_code
from planbook.schemas.common import reject_nulls

Aggregation = Literal["sum", "avg", "min", "max", "count"]


def _check_code(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_valid_code(value):
        raise ValueError("code must start with a letter or underscore and contain only letters, digits and underscores")
    return value


class KeyFigureCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    kf_type: Literal["base", "calculated"] = Field(
        default="base", validation_alias=AliasChoices("kf_type", "type")
    )
    unit: Optional[str] = None
    display_format: Optional[str] = None
    source_table: Optional[str] = None
    source_field: Optional[str] = None
    aggregation: Aggregation = "sum"
    formula: Optional[str] = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def validate_code(cls, value):
        return _check_code(value)

    @model_validator(mode="after")
    def validate_type_fields(self):
        if self.kf_type == "calculated":
            if not (self.formula or "").strip():
                raise ValueError("calculated key figures require a formula")
        elif self.formula:
            raise ValueError("base key figures must not define a formula")
        return self


class KeyFigureUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    unit: Optional[str] = None
    display_format: Optional[str] = None
    source_table: Optional[str] = None
    source_field: Optional[str] = None
    aggregation: Optional[Aggregation] = None
    formula: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, value):
        return _check_code(value)

    @model_validator(mode="after")
    def validate_not_null(self):
        reject_nulls(self, ("code", "name", "aggregation", "is_active"))
        return self


class KeyFigureResponse(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    kf_type: str
    unit: Optional[str] = None
    display_format: Optional[str] = None
    source_table: Optional[str] = None
    source_field: Optional[str] = None
    aggregation: Optional[str] = None
    formula: Optional[str] = None
    dependencies: List[str] = []
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FormulaValidationRequest(BaseModel):
    formula: str
    code: Optional[str] = None


class FormulaValidationResponse(BaseModel):
    is_valid: bool
    expression: Optional[str] = None
    dependencies: List[str] = []
    error_code: Optional[str] = None
    error_message: Optional[str] = None


class KeyFigureDependenciesResponse(BaseModel):
    key_figure_id: int
    code: str
    direct: List[str]
    evaluation_order: List[str]
    dependents: List[str]
