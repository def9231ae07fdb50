"""
Formula Evaluator — derives cell values for base and calculated key figures.

Base figures read stored rows, rolling finer granularities up with the key
figure's aggregation. Calculated figures are evaluated dependencies-first and
memoized for the lifetime of one ``evaluate_all`` call only.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from planbook.core.exceptions import EntityNotFoundException, NoDataForPeriod
from planbook.engine import formula as formulas
from planbook.engine.periods import LEVELS, contains, is_finer
from planbook.models.key_figure import KeyFigure
from planbook.models.planning_data import PlanningData
from planbook.repositories.key_figure_repository import KeyFigureRepository
from planbook.repositories.planning_data_repository import PlanningDataRepository
from planbook.services.key_figure_service import KeyFigureService

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

CellKey = Tuple[str, str, str]  # (code, period, period_type)


@dataclass(frozen=True)
class CellValue:
    value: Decimal
    has_data: bool = False
    data_id: Optional[int] = None
    notes: Optional[str] = None


def aggregate(values: Sequence[Decimal], method: Optional[str]) -> Decimal:
    if method == "avg":
        return sum(values, ZERO) / len(values)
    if method == "min":
        return min(values)
    if method == "max":
        return max(values)
    if method == "count":
        return Decimal(len(values))
    return sum(values, ZERO)


class FormulaEvaluator:

    def __init__(self, db: Session):
        self._db = db
        self._kf_repo = KeyFigureRepository(db)
        self._data_repo = PlanningDataRepository(db)

    def evaluate(self, version_id: int, code: str, period: str, period_type: str) -> CellValue:
        results = self.evaluate_all(version_id, [(period, period_type)], [code])
        return results[(code, period, period_type)]

    def evaluate_all(
        self,
        version_id: int,
        periods: Iterable[Tuple[str, str]],
        codes: Iterable[str],
    ) -> Dict[CellKey, CellValue]:
        """
        Evaluate every ``code`` in every ``(period, period_type)``.

        The returned mapping also holds the cells of any dependency that had
        to be computed along the way.
        """
        periods = list(periods)
        codes = list(codes)
        key_figures = {kf.code: kf for kf in self._kf_repo.get_all()}
        missing = [c for c in codes if c not in key_figures]
        if missing:
            raise EntityNotFoundException("KeyFigure", missing[0])

        graph = KeyFigureService(self._db).build_graph(key_figures.values())
        order = graph.topological_order(codes)
        ids = [key_figures[c].id for c in order if c in key_figures and not key_figures[c].is_calculated]
        rows = _index_rows(self._data_repo.list_for_version(version_id, ids))

        results: Dict[CellKey, CellValue] = {}
        trees: Dict[str, formulas.Node] = {}
        for code in order:
            kf = key_figures[code]
            for period, period_type in periods:
                if kf.is_calculated:
                    if code not in trees:
                        trees[code] = KeyFigureService.formula_tree(kf)
                    results[(code, period, period_type)] = self._evaluate_calculated(
                        trees[code], period, period_type, results
                    )
                else:
                    try:
                        results[(code, period, period_type)] = self._lookup_base(
                            version_id, kf, period, period_type, rows
                        )
                    except NoDataForPeriod:
                        results[(code, period, period_type)] = CellValue(ZERO)
        return results

    @staticmethod
    def _evaluate_calculated(
        tree: formulas.Node,
        period: str,
        period_type: str,
        results: Dict[CellKey, CellValue],
    ) -> CellValue:
        inputs = {ref: results[(ref, period, period_type)] for ref in formulas.references(tree)}
        value = formulas.evaluate(tree, {ref: cell.value for ref, cell in inputs.items()})
        return CellValue(value, has_data=any(cell.has_data for cell in inputs.values()))

    @staticmethod
    def _lookup_base(
        version_id: int,
        kf: KeyFigure,
        period: str,
        period_type: str,
        rows: Dict[Tuple[int, str], Dict[str, PlanningData]],
    ) -> CellValue:
        exact = rows.get((kf.id, period_type), {}).get(period)
        if exact is not None:
            return CellValue(Decimal(exact.value), has_data=True, data_id=exact.id, notes=exact.notes)

        # coarsest finer level first so a cell never double counts
        for level in reversed(LEVELS):
            if not is_finer(level, period_type):
                continue
            stored = rows.get((kf.id, level))
            if not stored:
                continue
            values: List[Decimal] = [
                Decimal(row.value)
                for key, row in stored.items()
                if contains(period, period_type, key, level)
            ]
            if values:
                return CellValue(aggregate(values, kf.aggregation), has_data=True)

        raise NoDataForPeriod(kf.id, period, period_type, version_id)


def _index_rows(rows: Iterable[PlanningData]) -> Dict[Tuple[int, str], Dict[str, PlanningData]]:
    index: Dict[Tuple[int, str], Dict[str, PlanningData]] = defaultdict(dict)
    for row in rows:
        index[(row.key_figure_id, row.period_type)][row.time_period] = row
    return index
