from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from planbook.schemas.common import reject_nulls


class PlanningVersionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None


class PlanningVersionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = None

    @model_validator(mode="after")
    def validate_not_null(self):
        reject_nulls(self, ("name",))
        return self


class PlanningVersionCopyRequest(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None


class PlanningVersionResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    base_version_id: Optional[int] = None
    status: str
    created_by: Optional[str] = None
    locked_at: Optional[datetime] = None
    locked_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PlanningVersionListResponse(BaseModel):
    items: List[PlanningVersionResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
