"""
Alerts Router — Thin Controller (SRP / DIP)

Alert rules are the threshold store the evaluator consumes; alerts are what
evaluation produces.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from planbook.database import get_db
from planbook.dependencies import CurrentUser, get_current_user
from planbook.schemas.alert import (
    AlertEvaluateRequest,
    AlertResponse,
    AlertRuleCreate,
    AlertRuleResponse,
    AlertRuleUpdate,
    AlertType,
    Severity,
)
from planbook.services.alert_service import AlertService

router = APIRouter(prefix="/planning-book", tags=["Planning Book — Alerts"])


def get_alert_service(db: Session = Depends(get_db)) -> AlertService:
    return AlertService(db)


# ── Rules ─────────────────────────────────────────────────────────────────────

@router.get("/alert-rules", response_model=List[AlertRuleResponse])
def list_alert_rules(
    key_figure_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    service: AlertService = Depends(get_alert_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.list_rules(key_figure_id=key_figure_id, is_active=is_active)


@router.post("/alert-rules", response_model=AlertRuleResponse, status_code=status.HTTP_201_CREATED)
def create_alert_rule(
    data: AlertRuleCreate,
    service: AlertService = Depends(get_alert_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.create_rule(data)


@router.get("/alert-rules/{rule_id}", response_model=AlertRuleResponse)
def get_alert_rule(
    rule_id: int,
    service: AlertService = Depends(get_alert_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.get_rule(rule_id)


@router.put("/alert-rules/{rule_id}", response_model=AlertRuleResponse)
def update_alert_rule(
    rule_id: int,
    data: AlertRuleUpdate,
    service: AlertService = Depends(get_alert_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.update_rule(rule_id, data)


@router.delete("/alert-rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_alert_rule(
    rule_id: int,
    service: AlertService = Depends(get_alert_service),
    _: CurrentUser = Depends(get_current_user),
):
    service.delete_rule(rule_id)


# ── Alerts ────────────────────────────────────────────────────────────────────

@router.get("/alerts", response_model=List[AlertResponse])
def list_alerts(
    version_id: Optional[int] = None,
    key_figure_id: Optional[int] = None,
    severity: Optional[Severity] = None,
    alert_type: Optional[AlertType] = None,
    is_resolved: Optional[bool] = None,
    service: AlertService = Depends(get_alert_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.list_alerts(
        version_id=version_id,
        key_figure_id=key_figure_id,
        severity=severity,
        alert_type=alert_type,
        is_resolved=is_resolved,
    )


@router.get("/alerts/unresolved", response_model=List[AlertResponse])
def list_unresolved_alerts(
    version_id: Optional[int] = None,
    service: AlertService = Depends(get_alert_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.list_unresolved(version_id=version_id)


@router.post("/alerts/evaluate", response_model=List[AlertResponse])
def evaluate_alerts(
    data: AlertEvaluateRequest,
    service: AlertService = Depends(get_alert_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.evaluate(data.version_id, user_id=current_user.id)


@router.get("/alerts/{alert_id}", response_model=AlertResponse)
def get_alert(
    alert_id: int,
    service: AlertService = Depends(get_alert_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.get_alert(alert_id)


@router.post("/alerts/{alert_id}/resolve", response_model=AlertResponse)
def resolve_alert(
    alert_id: int,
    service: AlertService = Depends(get_alert_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.resolve(alert_id, user_id=current_user.id)
