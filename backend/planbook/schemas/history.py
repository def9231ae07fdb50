from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class HistoryEntryResponse(BaseModel):
    id: int
    version_id: int
    key_figure_id: Optional[int] = None
    time_period: Optional[str] = None
    action: str
    old_value: Optional[Decimal] = None
    new_value: Optional[Decimal] = None
    notes: Optional[str] = None
    changed_by: str
    changed_at: datetime

    class Config:
        from_attributes = True
