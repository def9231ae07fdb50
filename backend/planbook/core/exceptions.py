"""
Domain exceptions for the Planning Book.

Services raise these; the global handler in ``planbook.main`` converts them to
HTTP responses through ``to_http_exception`` so routers never catch them.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class PlanBookException(Exception):
    code = "PLANBOOK_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in (context or {}).items() if v is not None}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "context": self.context}


# ── Generic ───────────────────────────────────────────────────────────────────

class EntityNotFoundException(PlanBookException):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} with id {entity_id} not found.", {"entity": entity, "id": entity_id})


class BusinessRuleViolationException(PlanBookException):
    code = "BUSINESS_RULE_VIOLATION"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ConcurrentModificationException(PlanBookException):
    code = "CONCURRENT_MODIFICATION"
    status_code = status.HTTP_409_CONFLICT


class InvalidStateTransitionException(PlanBookException):
    code = "INVALID_STATE_TRANSITION"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, entity: str, current: str, target: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Cannot move {entity} from '{current}' to '{target}'.",
            {"entity": entity, "current_status": current, "target_status": target, **(context or {})},
        )


# ── Time resolution ───────────────────────────────────────────────────────────

class InvalidHierarchyLevel(PlanBookException):
    code = "INVALID_HIERARCHY_LEVEL"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, level: str, enabled, time_setting_id: Optional[int] = None):
        super().__init__(
            f"Hierarchy level '{level}' is not enabled; enabled levels: {', '.join(enabled) or 'none'}.",
            {"level": level, "time_setting_id": time_setting_id},
        )


class HorizonTooLarge(PlanBookException):
    code = "HORIZON_TOO_LARGE"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


# ── Key figures / formulas ────────────────────────────────────────────────────

class InvalidFormulaException(PlanBookException):
    code = "INVALID_FORMULA"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class CyclicFormula(PlanBookException):
    code = "CYCLIC_FORMULA"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, code: str, cycle):
        super().__init__(
            f"Formula for '{code}' creates a dependency cycle: {' -> '.join(cycle)}.",
            {"key_figure_code": code, "cycle": list(cycle)},
        )


class UnknownFormulaReference(PlanBookException):
    code = "UNKNOWN_FORMULA_REFERENCE"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, code: Optional[str], missing):
        missing = sorted(missing)
        super().__init__(
            f"Formula references unknown key figure code(s): {', '.join(missing)}.",
            {"key_figure_code": code, "missing": missing},
        )


class DuplicateKeyFigureCode(PlanBookException):
    code = "DUPLICATE_KEY_FIGURE_CODE"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, code: str):
        super().__init__(f"Key figure code '{code}' already exists.", {"key_figure_code": code})


class ReadOnlyKeyFigure(PlanBookException):
    code = "READ_ONLY_KEY_FIGURE"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, key_figure_id: int, code: str, period: Optional[str] = None, version_id: Optional[int] = None):
        super().__init__(
            f"Key figure '{code}' is calculated and cannot be edited directly.",
            {"version_id": version_id, "key_figure_id": key_figure_id, "key_figure_code": code, "period": period},
        )


class NoDataForPeriod(PlanBookException):
    """Soft condition: the evaluator degrades it to 0 and never lets it reach callers."""

    code = "NO_DATA_FOR_PERIOD"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, key_figure_id: int, period: str, period_type: str, version_id: Optional[int] = None):
        super().__init__(
            f"No data for key figure {key_figure_id} in {period_type} {period}.",
            {"version_id": version_id, "key_figure_id": key_figure_id, "period": period, "period_type": period_type},
        )


# ── Versions ──────────────────────────────────────────────────────────────────

class VersionLocked(PlanBookException):
    code = "VERSION_LOCKED"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, version_id: int, version_status: str, key_figure_id: Optional[int] = None, period: Optional[str] = None):
        super().__init__(
            f"Planning version {version_id} is {version_status}; writes are not permitted.",
            {"version_id": version_id, "status": version_status, "key_figure_id": key_figure_id, "period": period},
        )


class VersionNotArchived(PlanBookException):
    code = "VERSION_NOT_ARCHIVED"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, version_id: int, version_status: str):
        super().__init__(
            f"Planning version {version_id} is {version_status}; only archived versions can be deleted.",
            {"version_id": version_id, "status": version_status},
        )


def to_http_exception(exc: PlanBookException) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())
