"""
Alert Service — Alert Evaluator and rule store (SRP / DIP)

Evaluation is idempotent per (version, key figure, period, alert type): an
open alert for the tuple is refreshed in place, a resolved one is left alone
and a new alert is opened if the breach persists.
"""
import logging
import operator
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from planbook.core.exceptions import (
    BusinessRuleViolationException,
    EntityNotFoundException,
    InvalidStateTransitionException,
)
from planbook.models.alert import Alert, AlertRule
from planbook.models.key_figure import KeyFigure
from planbook.repositories.alert_repository import AlertRepository, AlertRuleRepository
from planbook.repositories.key_figure_repository import KeyFigureRepository
from planbook.repositories.planning_data_repository import PlanningDataRepository
from planbook.repositories.planning_version_repository import PlanningVersionRepository
from planbook.schemas.alert import AlertRuleCreate, AlertRuleUpdate
from planbook.services.evaluation_service import FormulaEvaluator
from planbook.services.key_figure_service import KeyFigureService
from planbook.services.time_setting_service import TimeSettingService
from planbook.utils.events import AlertsEvaluatedEvent, get_event_bus

logger = logging.getLogger(__name__)

COMPARATORS: Dict[str, Tuple[Callable[[Decimal, Decimal], bool], str]] = {
    "lt": (operator.lt, "<"),
    "lte": (operator.le, "<="),
    "gt": (operator.gt, ">"),
    "gte": (operator.ge, ">="),
    "eq": (operator.eq, "=="),
    "ne": (operator.ne, "!="),
}

DEFAULT_MESSAGE = "{code} {actual} {op} threshold {threshold} in {period}"


def format_number(value: Decimal) -> str:
    return format(Decimal(value).normalize(), "f")


def render_message(template: Optional[str], code: str, actual: Decimal, comparison: str, threshold: Decimal, period: str) -> str:
    return (template or DEFAULT_MESSAGE).format(
        code=code,
        actual=format_number(actual),
        op=COMPARATORS[comparison][1],
        threshold=format_number(threshold),
        period=period,
    )


def check_template(template: Optional[str]) -> None:
    if not template:
        return
    try:
        render_message(template, "KF", Decimal("0"), "eq", Decimal("0"), "2024-01")
    except (KeyError, IndexError, ValueError) as exc:
        raise BusinessRuleViolationException(
            "Alert message may only use {code}, {actual}, {op}, {threshold} and {period}.",
            {"message": template},
        ) from exc


class AlertService:

    def __init__(self, db: Session):
        self._db = db
        self._rule_repo = AlertRuleRepository(db)
        self._repo = AlertRepository(db)
        self._kf_repo = KeyFigureRepository(db)
        self._data_repo = PlanningDataRepository(db)
        self._version_repo = PlanningVersionRepository(db)
        self._time = TimeSettingService(db)
        self._evaluator = FormulaEvaluator(db)
        self._bus = get_event_bus()

    # ── Rules ─────────────────────────────────────────────────────────────────

    def list_rules(self, key_figure_id: Optional[int] = None, is_active: Optional[bool] = None) -> List[AlertRule]:
        return self._rule_repo.list_filtered(key_figure_id=key_figure_id, is_active=is_active)

    def get_rule(self, rule_id: int) -> AlertRule:
        rule = self._rule_repo.get_by_id(rule_id)
        if not rule:
            raise EntityNotFoundException("AlertRule", rule_id)
        return rule

    def create_rule(self, data: AlertRuleCreate) -> AlertRule:
        if not self._kf_repo.get_by_id(data.key_figure_id):
            raise EntityNotFoundException("KeyFigure", data.key_figure_id)
        if data.time_setting_id is not None:
            setting = self._time.get_setting(data.time_setting_id)
            if data.period_type not in setting.hierarchy_levels:
                raise BusinessRuleViolationException(
                    f"Period type '{data.period_type}' is not enabled on time setting {setting.id}.",
                    {"time_setting_id": setting.id, "period_type": data.period_type},
                )
        check_template(data.message)
        return self._rule_repo.create(AlertRule(**data.model_dump()))

    def update_rule(self, rule_id: int, data: AlertRuleUpdate) -> AlertRule:
        rule = self.get_rule(rule_id)
        updates = data.model_dump(exclude_unset=True)
        if "message" in updates:
            check_template(updates["message"])
        return self._rule_repo.update(rule, updates)

    def delete_rule(self, rule_id: int) -> None:
        self._rule_repo.delete(self.get_rule(rule_id))

    # ── Alerts ────────────────────────────────────────────────────────────────

    def list_alerts(
        self,
        version_id: Optional[int] = None,
        key_figure_id: Optional[int] = None,
        severity: Optional[str] = None,
        alert_type: Optional[str] = None,
        is_resolved: Optional[bool] = None,
    ) -> List[Alert]:
        return self._repo.list_filtered(
            version_id=version_id,
            key_figure_id=key_figure_id,
            severity=severity,
            alert_type=alert_type,
            is_resolved=is_resolved,
        )

    def list_unresolved(self, version_id: Optional[int] = None) -> List[Alert]:
        return self._repo.list_filtered(version_id=version_id, is_resolved=False)

    def get_alert(self, alert_id: int) -> Alert:
        alert = self._repo.get_by_id(alert_id)
        if not alert:
            raise EntityNotFoundException("Alert", alert_id)
        return alert

    def _rule_periods(self, version_id: int, rule: AlertRule, kf: KeyFigure, key_figures: List[KeyFigure]) -> List[Tuple[str, str]]:
        if rule.time_setting_id is not None:
            setting = self._time.get_setting(rule.time_setting_id)
            return [(p.period, p.type) for p in self._time.resolve_periods(setting, rule.period_type)]

        # without a pinned horizon, every period the figure or its base inputs hold data for
        if kf.is_calculated:
            graph = KeyFigureService(self._db).build_graph(key_figures)
            codes: Set[str] = graph.transitive_dependencies(kf.code)
            ids = [k.id for k in key_figures if k.code in codes and not k.is_calculated]
        else:
            ids = [kf.id]
        stored = {(row.time_period, row.period_type) for row in self._data_repo.list_for_version(version_id, ids)}
        return sorted(stored, key=lambda item: (item[1], item[0]))

    def evaluate(self, version_id: int, user_id: Optional[str] = None) -> List[Alert]:
        touched: Dict[int, Alert] = {}
        created = refreshed = 0
        try:
            if not self._version_repo.get_for_update(version_id):
                raise EntityNotFoundException("PlanningVersion", version_id)
            key_figures = self._kf_repo.get_all()
            by_id = {kf.id: kf for kf in key_figures}

            for rule in self._rule_repo.list_filtered(is_active=True):
                kf = by_id.get(rule.key_figure_id)
                if kf is None:
                    continue
                periods = self._rule_periods(version_id, rule, kf, key_figures)
                if not periods:
                    continue
                compare, _ = COMPARATORS[rule.comparison]
                threshold = Decimal(rule.threshold_value)
                values = self._evaluator.evaluate_all(version_id, periods, [kf.code])

                for period, period_type in periods:
                    cell = values[(kf.code, period, period_type)]
                    if not cell.has_data or not compare(cell.value, threshold):
                        continue
                    message = render_message(rule.message, kf.code, cell.value, rule.comparison, threshold, period)
                    alert = self._repo.get_open(version_id, kf.id, period, rule.alert_type)
                    if alert is None:
                        alert = Alert(
                            version_id=version_id,
                            key_figure_id=kf.id,
                            rule_id=rule.id,
                            time_period=period,
                            alert_type=rule.alert_type,
                            severity=rule.severity,
                            message=message,
                            threshold_value=threshold,
                            actual_value=cell.value,
                        )
                        self._db.add(alert)
                        created += 1
                    else:
                        alert.rule_id = rule.id
                        alert.severity = rule.severity
                        alert.message = message
                        alert.threshold_value = threshold
                        alert.actual_value = cell.value
                        refreshed += 1
                    self._db.flush()
                    touched[alert.id] = alert
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        for alert in touched.values():
            self._db.refresh(alert)
        logger.info("alerts_evaluated version_id=%s created=%s refreshed=%s", version_id, created, refreshed)
        self._bus.publish(AlertsEvaluatedEvent(
            user_id=user_id, version_id=version_id, created=created, refreshed=refreshed,
        ))
        return list(touched.values())

    def resolve(self, alert_id: int, user_id: Optional[str] = None) -> Alert:
        alert = self.get_alert(alert_id)
        if alert.is_resolved:
            raise InvalidStateTransitionException("Alert", "resolved", "resolved", {"alert_id": alert_id})
        return self._repo.update(alert, {
            "is_resolved": True,
            "resolved_at": datetime.utcnow(),
            "resolved_by": user_id,
        })
