from typing import List, Optional

from sqlalchemy.orm import Session

from planbook.models.time_setting import TimeSetting
from planbook.repositories.base import BaseRepository


class TimeSettingRepository(BaseRepository[TimeSetting]):
    def __init__(self, db: Session):
        super().__init__(TimeSetting, db)

    def list_filtered(self, is_active: Optional[bool] = None, kind: Optional[str] = None) -> List[TimeSetting]:
        q = self.db.query(TimeSetting)
        if is_active is not None:
            q = q.filter(TimeSetting.is_active == is_active)
        if kind is not None:
            q = q.filter(TimeSetting.kind == kind)
        return q.order_by(TimeSetting.name, TimeSetting.id).all()
