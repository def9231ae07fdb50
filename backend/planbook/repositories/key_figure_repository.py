from typing import List, Optional

from sqlalchemy.orm import Session

from planbook.models.key_figure import KeyFigure
from planbook.repositories.base import BaseRepository


class KeyFigureRepository(BaseRepository[KeyFigure]):
    def __init__(self, db: Session):
        super().__init__(KeyFigure, db)

    def get_by_code(self, code: str) -> Optional[KeyFigure]:
        return self.db.query(KeyFigure).filter(KeyFigure.code == code).first()

    def list_filtered(self, kf_type: Optional[str] = None, is_active: Optional[bool] = None) -> List[KeyFigure]:
        q = self.db.query(KeyFigure)
        if kf_type is not None:
            q = q.filter(KeyFigure.kf_type == kf_type)
        if is_active is not None:
            q = q.filter(KeyFigure.is_active == is_active)
        return q.order_by(KeyFigure.code).all()
