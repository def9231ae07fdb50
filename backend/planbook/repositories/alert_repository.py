from typing import List, Optional

from sqlalchemy.orm import Session

from planbook.models.alert import Alert, AlertRule
from planbook.repositories.base import BaseRepository


class AlertRuleRepository(BaseRepository[AlertRule]):
    def __init__(self, db: Session):
        super().__init__(AlertRule, db)

    def list_filtered(self, key_figure_id: Optional[int] = None, is_active: Optional[bool] = None) -> List[AlertRule]:
        q = self.db.query(AlertRule)
        if key_figure_id is not None:
            q = q.filter(AlertRule.key_figure_id == key_figure_id)
        if is_active is not None:
            q = q.filter(AlertRule.is_active == is_active)
        return q.order_by(AlertRule.id).all()


class AlertRepository(BaseRepository[Alert]):
    def __init__(self, db: Session):
        super().__init__(Alert, db)

    def list_filtered(
        self,
        version_id: Optional[int] = None,
        key_figure_id: Optional[int] = None,
        severity: Optional[str] = None,
        alert_type: Optional[str] = None,
        is_resolved: Optional[bool] = None,
    ) -> List[Alert]:
        q = self.db.query(Alert)
        if version_id is not None:
            q = q.filter(Alert.version_id == version_id)
        if key_figure_id is not None:
            q = q.filter(Alert.key_figure_id == key_figure_id)
        if severity is not None:
            q = q.filter(Alert.severity == severity)
        if alert_type is not None:
            q = q.filter(Alert.alert_type == alert_type)
        if is_resolved is not None:
            q = q.filter(Alert.is_resolved == is_resolved)
        return q.order_by(Alert.created_at.desc(), Alert.id.desc()).all()

    def get_open(self, version_id: int, key_figure_id: int, time_period: str, alert_type: str) -> Optional[Alert]:
        return (
            self.db.query(Alert)
            .filter(
                Alert.version_id == version_id,
                Alert.key_figure_id == key_figure_id,
                Alert.time_period == time_period,
                Alert.alert_type == alert_type,
                Alert.is_resolved.is_(False),
            )
            .order_by(Alert.id.desc())
            .first()
        )
