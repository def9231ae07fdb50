"""
Planning Data Service — Planning Data Store (SRP / DIP)

Every write runs as one transaction: the version row is locked and its status
checked inside that transaction, all cells are validated before any row is
touched, and one history entry is appended per changed cell.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from planbook.config import settings
from planbook.core.exceptions import (
    BusinessRuleViolationException,
    ConcurrentModificationException,
    EntityNotFoundException,
    ReadOnlyKeyFigure,
    VersionLocked,
)
from planbook.engine.periods import parse_period
from planbook.models.history_entry import HistoryEntry
from planbook.models.key_figure import KeyFigure
from planbook.models.planning_data import PlanningData
from planbook.models.planning_version import PlanningVersion
from planbook.repositories.history_repository import HistoryRepository
from planbook.repositories.key_figure_repository import KeyFigureRepository
from planbook.repositories.planning_data_repository import PlanningDataRepository
from planbook.repositories.planning_version_repository import PlanningVersionRepository
from planbook.schemas.planning_data import BulkUpdateResponse, CellUpdate, PlanningDataUpsert
from planbook.utils.events import PlanningDataSavedEvent, get_event_bus

logger = logging.getLogger(__name__)

SYSTEM_USER = "system"


class PlanningDataService:

    def __init__(self, db: Session):
        self._db = db
        self._repo = PlanningDataRepository(db)
        self._version_repo = PlanningVersionRepository(db)
        self._kf_repo = KeyFigureRepository(db)
        self._history = HistoryRepository(db)
        self._bus = get_event_bus()

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get(self, version_id: int, key_figure_id: int, period: str, period_type: str) -> Optional[Decimal]:
        row = self._repo.get_cell(version_id, key_figure_id, period, period_type)
        return None if row is None else Decimal(row.value)

    def get_data(self, data_id: int) -> PlanningData:
        row = self._repo.get_by_id(data_id)
        if not row:
            raise EntityNotFoundException("PlanningData", data_id)
        return row

    def list_data(
        self,
        version_id: Optional[int] = None,
        key_figure_id: Optional[int] = None,
        period_type: Optional[str] = None,
        period_from: Optional[str] = None,
        period_to: Optional[str] = None,
    ) -> List[PlanningData]:
        return self._repo.list_filtered(
            version_id=version_id,
            key_figure_id=key_figure_id,
            period_type=period_type,
            period_from=period_from,
            period_to=period_to,
        )

    # ── Writes ────────────────────────────────────────────────────────────────

    def _lock_writable_version(self, version_id: int) -> PlanningVersion:
        version = self._version_repo.get_for_update(version_id)
        if not version:
            raise EntityNotFoundException("PlanningVersion", version_id)
        if not version.is_writable:
            raise VersionLocked(version.id, version.status)
        return version

    def _validate(self, version_id: int, updates: List[CellUpdate]) -> Dict[int, KeyFigure]:
        ids = sorted({u.key_figure_id for u in updates})
        key_figures = {kf.id: kf for kf in self._kf_repo.get_by_ids(ids)}
        for update in updates:
            kf = key_figures.get(update.key_figure_id)
            if kf is None:
                raise EntityNotFoundException("KeyFigure", update.key_figure_id)
            if kf.is_calculated:
                raise ReadOnlyKeyFigure(kf.id, kf.code, update.period, version_id)
            try:
                parse_period(update.period, update.period_type)
            except ValueError as exc:
                raise BusinessRuleViolationException(
                    str(exc),
                    {"version_id": version_id, "key_figure_id": kf.id, "period": update.period},
                ) from exc
        return key_figures

    def bulk_upsert(self, version_id: int, updates: List[CellUpdate], user_id: Optional[str] = None) -> BulkUpdateResponse:
        if len(updates) > settings.MAX_BULK_UPDATES:
            raise BusinessRuleViolationException(
                f"A batch may hold at most {settings.MAX_BULK_UPDATES} updates.",
                {"version_id": version_id, "count": len(updates)},
            )
        changed_by = user_id or SYSTEM_USER

        # later edits of the same cell win
        cells: Dict[Tuple[int, str, str], CellUpdate] = {}
        for update in updates:
            cells[(update.key_figure_id, update.period, update.period_type)] = update

        changed = unchanged = 0
        try:
            self._lock_writable_version(version_id)
            self._validate(version_id, list(cells.values()))

            for (key_figure_id, period, period_type), update in cells.items():
                row = self._repo.get_cell(version_id, key_figure_id, period, period_type)
                if row is None:
                    self._db.add(PlanningData(
                        version_id=version_id,
                        key_figure_id=key_figure_id,
                        time_period=period,
                        period_type=period_type,
                        value=update.value,
                        notes=update.notes,
                        updated_by=changed_by,
                    ))
                    self._history.append(HistoryEntry(
                        version_id=version_id,
                        key_figure_id=key_figure_id,
                        time_period=period,
                        action="create",
                        new_value=update.value,
                        notes=update.notes,
                        changed_by=changed_by,
                    ))
                    changed += 1
                    continue

                old_value = Decimal(row.value)
                notes_changed = update.notes is not None and update.notes != row.notes
                if old_value == update.value and not notes_changed:
                    unchanged += 1
                    continue
                row.value = update.value
                if update.notes is not None:
                    row.notes = update.notes
                row.updated_by = changed_by
                self._history.append(HistoryEntry(
                    version_id=version_id,
                    key_figure_id=key_figure_id,
                    time_period=period,
                    action="update",
                    old_value=old_value,
                    new_value=update.value,
                    notes=update.notes,
                    changed_by=changed_by,
                ))
                changed += 1

            self._db.commit()
        except IntegrityError as exc:
            self._db.rollback()
            logger.warning("bulk_upsert_conflict version_id=%s", version_id)
            raise ConcurrentModificationException(
                "Another request wrote the same cells; retry the batch.", {"version_id": version_id}
            ) from exc
        except Exception:
            self._db.rollback()
            raise

        logger.info(
            "planning_data_saved version_id=%s total=%s changed=%s unchanged=%s",
            version_id, len(updates), changed, unchanged,
        )
        self._bus.publish(PlanningDataSavedEvent(
            user_id=user_id, version_id=version_id, changed=changed, unchanged=unchanged,
        ))
        return BulkUpdateResponse(
            version_id=version_id, total=len(updates), changed=changed, unchanged=unchanged,
        )

    def upsert_cell(self, data: PlanningDataUpsert, user_id: Optional[str] = None) -> PlanningData:
        update = CellUpdate(
            key_figure_id=data.key_figure_id,
            period=data.period,
            period_type=data.period_type,
            value=data.value,
            notes=data.notes,
        )
        self.bulk_upsert(data.version_id, [update], user_id=user_id)
        return self._repo.get_cell(data.version_id, data.key_figure_id, data.period, data.period_type)

    def delete_data(self, data_id: int, user_id: Optional[str] = None) -> None:
        row = self.get_data(data_id)
        version_id = row.version_id
        try:
            self._lock_writable_version(version_id)
            self._history.append(HistoryEntry(
                version_id=version_id,
                key_figure_id=row.key_figure_id,
                time_period=row.time_period,
                action="delete",
                old_value=row.value,
                changed_by=user_id or SYSTEM_USER,
            ))
            self._repo.delete(row, commit=False)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        logger.info("planning_data_deleted id=%s version_id=%s", data_id, version_id)
