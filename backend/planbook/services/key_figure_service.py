"""
Key Figure Service — Key Figure Registry (SRP / DIP)

Definition errors (bad syntax, unknown references, cycles, duplicate codes)
are rejected here, before anything is persisted, so evaluation never sees them.
"""
import json
import logging
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from planbook.config import settings
from planbook.core.exceptions import (
    BusinessRuleViolationException,
    DuplicateKeyFigureCode,
    EntityNotFoundException,
    InvalidFormulaException,
    PlanBookException,
    UnknownFormulaReference,
)
from planbook.engine import formula as formulas
from planbook.engine.graph import DependencyGraph
from planbook.models.key_figure import KeyFigure
from planbook.repositories.key_figure_repository import KeyFigureRepository
from planbook.repositories.planning_data_repository import PlanningDataRepository
from planbook.schemas.key_figure import (
    FormulaValidationResponse,
    KeyFigureCreate,
    KeyFigureDependenciesResponse,
    KeyFigureUpdate,
)
from planbook.utils.events import KeyFigureChangedEvent, get_event_bus

logger = logging.getLogger(__name__)


class KeyFigureService:

    def __init__(self, db: Session):
        self._db = db
        self._repo = KeyFigureRepository(db)
        self._data_repo = PlanningDataRepository(db)
        self._bus = get_event_bus()

    # ── Graph ─────────────────────────────────────────────────────────────────

    def build_graph(self, key_figures: Optional[Iterable[KeyFigure]] = None) -> DependencyGraph:
        rows = key_figures if key_figures is not None else self._repo.get_all()
        return DependencyGraph({kf.code: kf.dependencies for kf in rows})

    def dependencies_of(self, code: str) -> Set[str]:
        return self.build_graph().dependencies_of(code)

    def topological_order(self, codes: Iterable[str]) -> List[str]:
        return self.build_graph().topological_order(codes)

    @staticmethod
    def formula_tree(key_figure: KeyFigure) -> formulas.Node:
        return formulas.from_dict(json.loads(key_figure.formula_ast_json))

    def _compile(
        self,
        code: str,
        formula: str,
        graph: DependencyGraph,
    ) -> Tuple[formulas.Node, List[str]]:
        """Parse, check references and cycles against ``graph``; mutates ``graph`` on success."""
        if len(formula) > settings.MAX_FORMULA_LENGTH:
            raise InvalidFormulaException(
                f"Formula exceeds {settings.MAX_FORMULA_LENGTH} characters.", {"key_figure_code": code}
            )
        tree = formulas.parse_formula(formula)
        refs = formulas.references(tree)
        missing = refs - graph.codes - {code}
        if missing:
            raise UnknownFormulaReference(code, missing)
        graph.add(code, refs)
        return tree, sorted(refs)

    # ── Queries ───────────────────────────────────────────────────────────────

    def list_key_figures(self, kf_type: Optional[str] = None, is_active: Optional[bool] = None) -> List[KeyFigure]:
        return self._repo.list_filtered(kf_type=kf_type, is_active=is_active)

    def get_key_figure(self, key_figure_id: int) -> KeyFigure:
        kf = self._repo.get_by_id(key_figure_id)
        if not kf:
            raise EntityNotFoundException("KeyFigure", key_figure_id)
        return kf

    def get_by_code(self, code: str) -> KeyFigure:
        kf = self._repo.get_by_code(code)
        if not kf:
            raise EntityNotFoundException("KeyFigure", code)
        return kf

    def get_dependencies(self, key_figure_id: int) -> KeyFigureDependenciesResponse:
        kf = self.get_key_figure(key_figure_id)
        graph = self.build_graph()
        order = graph.topological_order([kf.code])
        return KeyFigureDependenciesResponse(
            key_figure_id=kf.id,
            code=kf.code,
            direct=sorted(graph.dependencies_of(kf.code)),
            evaluation_order=order,
            dependents=sorted(graph.dependents_of(kf.code)),
        )

    def validate_formula(self, formula: str, code: Optional[str] = None) -> FormulaValidationResponse:
        graph = self.build_graph()
        target = code or "__candidate__"
        try:
            tree, deps = self._compile(target, formula, graph)
        except PlanBookException as exc:
            return FormulaValidationResponse(
                is_valid=False,
                error_code=exc.code,
                error_message=exc.message,
            )
        return FormulaValidationResponse(
            is_valid=True,
            expression=formulas.render(tree),
            dependencies=deps,
        )

    # ── Commands ──────────────────────────────────────────────────────────────

    def register(self, data: KeyFigureCreate, user_id: Optional[str] = None) -> KeyFigure:
        if self._repo.get_by_code(data.code):
            raise DuplicateKeyFigureCode(data.code)

        kf = KeyFigure(
            code=data.code,
            name=data.name,
            description=data.description,
            kf_type=data.kf_type,
            unit=data.unit,
            display_format=data.display_format,
            is_active=data.is_active,
        )
        if data.kf_type == "calculated":
            tree, deps = self._compile(data.code, data.formula.strip(), self.build_graph())
            kf.formula = data.formula.strip()
            kf.formula_ast_json = json.dumps(formulas.to_dict(tree))
            kf.dependencies_json = json.dumps(deps)
            kf.aggregation = None
        else:
            kf.source_table = data.source_table
            kf.source_field = data.source_field
            kf.aggregation = data.aggregation
            kf.dependencies_json = "[]"

        result = self._repo.create(kf)
        logger.info("key_figure_registered code=%s type=%s", result.code, result.kf_type)
        self._bus.publish(KeyFigureChangedEvent(
            user_id=user_id, key_figure_id=result.id, code=result.code, action="create",
        ))
        return result

    def update_key_figure(self, key_figure_id: int, data: KeyFigureUpdate, user_id: Optional[str] = None) -> KeyFigure:
        kf = self.get_key_figure(key_figure_id)
        updates = data.model_dump(exclude_unset=True)
        graph = self.build_graph()

        new_code = updates.pop("code", None)
        if new_code is not None and new_code != kf.code:
            dependents = graph.dependents_of(kf.code)
            if dependents:
                raise BusinessRuleViolationException(
                    f"Code '{kf.code}' is referenced by {', '.join(sorted(dependents))} and cannot change.",
                    {"key_figure_id": kf.id, "key_figure_code": kf.code},
                )
            if self._repo.get_by_code(new_code):
                raise DuplicateKeyFigureCode(new_code)
            graph.remove(kf.code)
            graph.add(new_code, kf.dependencies)
            updates["code"] = new_code

        code = updates.get("code", kf.code)
        formula = updates.pop("formula", None)
        if formula is not None:
            if not kf.is_calculated:
                raise BusinessRuleViolationException(
                    "Base key figures cannot carry a formula.", {"key_figure_id": kf.id}
                )
            tree, deps = self._compile(code, formula.strip(), graph)
            updates["formula"] = formula.strip()
            updates["formula_ast_json"] = json.dumps(formulas.to_dict(tree))
            updates["dependencies_json"] = json.dumps(deps)

        if kf.is_calculated:
            for field in ("source_table", "source_field", "aggregation"):
                updates.pop(field, None)

        result = self._repo.update(kf, updates)
        self._bus.publish(KeyFigureChangedEvent(
            user_id=user_id, key_figure_id=result.id, code=result.code, action="update",
        ))
        return result

    def delete_key_figure(self, key_figure_id: int, user_id: Optional[str] = None) -> None:
        kf = self.get_key_figure(key_figure_id)
        dependents = self.build_graph().dependents_of(kf.code)
        if dependents:
            raise BusinessRuleViolationException(
                f"Key figure '{kf.code}' is used by {', '.join(sorted(dependents))}.",
                {"key_figure_id": kf.id, "key_figure_code": kf.code},
            )
        if self._data_repo.count_for_key_figure(kf.id):
            raise BusinessRuleViolationException(
                f"Key figure '{kf.code}' still has planning data.",
                {"key_figure_id": kf.id, "key_figure_code": kf.code},
            )
        code = kf.code
        self._repo.delete(kf)
        self._bus.publish(KeyFigureChangedEvent(
            user_id=user_id, key_figure_id=key_figure_id, code=code, action="delete",
        ))
