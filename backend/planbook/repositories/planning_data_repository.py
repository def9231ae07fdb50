from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from planbook.models.planning_data import PlanningData
from planbook.repositories.base import BaseRepository


class PlanningDataRepository(BaseRepository[PlanningData]):
    def __init__(self, db: Session):
        super().__init__(PlanningData, db)

    def get_cell(
        self,
        version_id: int,
        key_figure_id: int,
        time_period: str,
        period_type: str,
    ) -> Optional[PlanningData]:
        return (
            self.db.query(PlanningData)
            .filter(
                PlanningData.version_id == version_id,
                PlanningData.key_figure_id == key_figure_id,
                PlanningData.time_period == time_period,
                PlanningData.period_type == period_type,
            )
            .first()
        )

    def list_filtered(
        self,
        version_id: Optional[int] = None,
        key_figure_id: Optional[int] = None,
        period_type: Optional[str] = None,
        period_from: Optional[str] = None,
        period_to: Optional[str] = None,
    ) -> List[PlanningData]:
        q = self.db.query(PlanningData)
        if version_id is not None:
            q = q.filter(PlanningData.version_id == version_id)
        if key_figure_id is not None:
            q = q.filter(PlanningData.key_figure_id == key_figure_id)
        if period_type is not None:
            q = q.filter(PlanningData.period_type == period_type)
        # period keys of one type sort lexically in calendar order
        if period_from is not None:
            q = q.filter(PlanningData.time_period >= period_from)
        if period_to is not None:
            q = q.filter(PlanningData.time_period <= period_to)
        return q.order_by(PlanningData.key_figure_id, PlanningData.period_type, PlanningData.time_period).all()

    def list_for_version(self, version_id: int, key_figure_ids: Optional[Iterable[int]] = None) -> List[PlanningData]:
        q = self.db.query(PlanningData).filter(PlanningData.version_id == version_id)
        if key_figure_ids is not None:
            ids = list(key_figure_ids)
            if not ids:
                return []
            q = q.filter(PlanningData.key_figure_id.in_(ids))
        return q.all()

    def count_for_key_figure(self, key_figure_id: int) -> int:
        return self.db.query(PlanningData).filter(PlanningData.key_figure_id == key_figure_id).count()
