"""
Grid Service — Grid Assembler

Columns come from the Time Resolver, rows from the Formula Evaluator. Only
exact stored base cells carry ``notes``/``data_id``.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from planbook.core.exceptions import EntityNotFoundException
from planbook.repositories.key_figure_repository import KeyFigureRepository
from planbook.repositories.planning_version_repository import PlanningVersionRepository
from planbook.schemas.planning_data import GridCell, GridResponse, GridRow
from planbook.schemas.time_setting import PeriodResponse
from planbook.services.evaluation_service import FormulaEvaluator
from planbook.services.time_setting_service import TimeSettingService

logger = logging.getLogger(__name__)


class GridService:

    def __init__(self, db: Session):
        self._db = db
        self._kf_repo = KeyFigureRepository(db)
        self._version_repo = PlanningVersionRepository(db)
        self._time = TimeSettingService(db)
        self._evaluator = FormulaEvaluator(db)

    def build_grid(
        self,
        version_id: int,
        time_setting_id: int,
        key_figure_ids: Optional[List[int]] = None,
        level: Optional[str] = None,
        today: Optional[date] = None,
    ) -> GridResponse:
        if not self._version_repo.get_by_id(version_id):
            raise EntityNotFoundException("PlanningVersion", version_id)
        setting = self._time.get_setting(time_setting_id)
        level = level or self._time.finest_level(setting)
        periods = self._time.resolve_periods(setting, level, today=today)

        if key_figure_ids is None:
            key_figures = self._kf_repo.list_filtered(is_active=True)
        else:
            found = {kf.id: kf for kf in self._kf_repo.get_by_ids(key_figure_ids)}
            for kf_id in key_figure_ids:
                if kf_id not in found:
                    raise EntityNotFoundException("KeyFigure", kf_id)
            # preserve the caller's row order, first occurrence wins
            key_figures = [found[kf_id] for kf_id in dict.fromkeys(key_figure_ids)]

        if not key_figures or not periods:
            return GridResponse(
                version_id=version_id, time_setting_id=time_setting_id, level=level, columns=[], rows=[],
            )

        values = self._evaluator.evaluate_all(
            version_id,
            [(p.period, p.type) for p in periods],
            [kf.code for kf in key_figures],
        )

        rows = []
        for kf in key_figures:
            cells = []
            for p in periods:
                cell = values[(kf.code, p.period, p.type)]
                cells.append(GridCell(
                    period=p.period,
                    type=p.type,
                    value=float(cell.value),
                    has_data=cell.has_data,
                    notes=None if kf.is_calculated else cell.notes,
                    data_id=None if kf.is_calculated else cell.data_id,
                ))
            rows.append(GridRow(
                key_figure_id=kf.id,
                key_figure_code=kf.code,
                key_figure_name=kf.name,
                key_figure_type=kf.kf_type,
                unit=kf.unit,
                values=cells,
            ))

        logger.debug(
            "grid_built version_id=%s time_setting_id=%s level=%s rows=%s columns=%s",
            version_id, time_setting_id, level, len(rows), len(periods),
        )
        return GridResponse(
            version_id=version_id,
            time_setting_id=time_setting_id,
            level=level,
            columns=[PeriodResponse.model_validate(p) for p in periods],
            rows=rows,
        )
