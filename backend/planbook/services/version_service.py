"""
Version Service — Version Manager (SRP / DIP)

Lifecycle: draft -> active -> locked -> archived, with locked -> active as
the unlock path. Lifecycle changes never touch planning data; every one of
them appends a history entry in the same transaction.
"""
import logging
from datetime import datetime
from math import ceil
from typing import List, Optional

from sqlalchemy.orm import Session

from planbook.core.exceptions import (
    BusinessRuleViolationException,
    EntityNotFoundException,
    InvalidStateTransitionException,
    VersionNotArchived,
)
from planbook.models.alert import Alert
from planbook.models.history_entry import HistoryEntry
from planbook.models.planning_data import PlanningData
from planbook.models.planning_version import PlanningVersion
from planbook.repositories.history_repository import HistoryRepository
from planbook.repositories.planning_data_repository import PlanningDataRepository
from planbook.repositories.planning_version_repository import PlanningVersionRepository
from planbook.schemas.planning_version import (
    PlanningVersionCopyRequest,
    PlanningVersionCreate,
    PlanningVersionListResponse,
    PlanningVersionUpdate,
)
from planbook.services.planning_data_service import SYSTEM_USER
from planbook.utils.events import VersionCopiedEvent, VersionStatusChangedEvent, get_event_bus

logger = logging.getLogger(__name__)

# command -> (allowed source statuses, target status, history action)
TRANSITIONS = {
    "activate": ({"draft"}, "active", "update"),
    "lock": ({"active"}, "locked", "lock"),
    "unlock": ({"locked"}, "active", "unlock"),
    "archive": ({"locked"}, "archived", "update"),
}


class VersionService:

    def __init__(self, db: Session):
        self._db = db
        self._repo = PlanningVersionRepository(db)
        self._data_repo = PlanningDataRepository(db)
        self._history = HistoryRepository(db)
        self._bus = get_event_bus()

    # ── Queries ───────────────────────────────────────────────────────────────

    def list_versions(self, page: int = 1, page_size: int = 20, status: Optional[str] = None) -> PlanningVersionListResponse:
        items, total = self._repo.list_paginated(page=page, page_size=page_size, status=status)
        return PlanningVersionListResponse(
            items=items, total=total, page=page, page_size=page_size,
            total_pages=ceil(total / page_size) if total else 0,
        )

    def get_version(self, version_id: int) -> PlanningVersion:
        version = self._repo.get_by_id(version_id)
        if not version:
            raise EntityNotFoundException("PlanningVersion", version_id)
        return version

    def list_history(
        self,
        version_id: Optional[int] = None,
        key_figure_id: Optional[int] = None,
        action: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[HistoryEntry]:
        return self._history.list_filtered(
            version_id=version_id, key_figure_id=key_figure_id, action=action, limit=limit,
        )

    # ── Commands ──────────────────────────────────────────────────────────────

    def create_version(self, data: PlanningVersionCreate, user_id: Optional[str] = None) -> PlanningVersion:
        try:
            version = self._repo.create(
                PlanningVersion(name=data.name, description=data.description, status="draft", created_by=user_id),
                commit=False,
            )
            self._history.append(HistoryEntry(
                version_id=version.id, action="create", notes=version.name, changed_by=user_id or SYSTEM_USER,
            ))
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(version)
        logger.info("version_created id=%s name=%s", version.id, version.name)
        return version

    def update_version(self, version_id: int, data: PlanningVersionUpdate) -> PlanningVersion:
        version = self.get_version(version_id)
        if version.status == "archived":
            raise BusinessRuleViolationException(
                f"Planning version {version_id} is archived and read-only.", {"version_id": version_id}
            )
        return self._repo.update(version, data.model_dump(exclude_unset=True))

    def _transition(self, version_id: int, command: str, user_id: Optional[str]) -> PlanningVersion:
        sources, target, action = TRANSITIONS[command]
        try:
            version = self._repo.get_for_update(version_id)
            if not version:
                raise EntityNotFoundException("PlanningVersion", version_id)
            current = version.status
            if current not in sources:
                raise InvalidStateTransitionException(
                    "PlanningVersion", current, target, {"version_id": version_id}
                )

            version.status = target
            if target == "locked":
                version.locked_at = datetime.utcnow()
                version.locked_by = user_id
            elif command == "unlock":
                version.locked_at = None
                version.locked_by = None
            self._history.append(HistoryEntry(
                version_id=version_id,
                action=action,
                notes=f"status {current} -> {target}",
                changed_by=user_id or SYSTEM_USER,
            ))
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        self._db.refresh(version)
        logger.info("version_status_changed id=%s %s->%s", version_id, current, target)
        self._bus.publish(VersionStatusChangedEvent(
            user_id=user_id, version_id=version_id, old_status=current, new_status=target,
        ))
        return version

    def activate(self, version_id: int, user_id: Optional[str] = None) -> PlanningVersion:
        return self._transition(version_id, "activate", user_id)

    def lock(self, version_id: int, user_id: Optional[str] = None) -> PlanningVersion:
        return self._transition(version_id, "lock", user_id)

    def unlock(self, version_id: int, user_id: Optional[str] = None) -> PlanningVersion:
        return self._transition(version_id, "unlock", user_id)

    def archive(self, version_id: int, user_id: Optional[str] = None) -> PlanningVersion:
        return self._transition(version_id, "archive", user_id)

    def copy(self, version_id: int, data: PlanningVersionCopyRequest, user_id: Optional[str] = None) -> PlanningVersion:
        """Deep-copy planning data into a new draft; alerts and history start empty."""
        try:
            source = self._repo.get_for_update(version_id)
            if not source:
                raise EntityNotFoundException("PlanningVersion", version_id)
            clone = self._repo.create(
                PlanningVersion(
                    name=data.name,
                    description=data.description if data.description is not None else source.description,
                    base_version_id=source.id,
                    status="draft",
                    created_by=user_id,
                ),
                commit=False,
            )
            rows = self._data_repo.list_for_version(source.id)
            for row in rows:
                self._db.add(PlanningData(
                    version_id=clone.id,
                    key_figure_id=row.key_figure_id,
                    time_period=row.time_period,
                    period_type=row.period_type,
                    value=row.value,
                    notes=row.notes,
                    updated_by=row.updated_by,
                ))
            self._history.append(HistoryEntry(
                version_id=clone.id,
                action="copy",
                notes=f"copied from version {source.id} ({len(rows)} cells)",
                changed_by=user_id or SYSTEM_USER,
            ))
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        self._db.refresh(clone)
        logger.info("version_copied source=%s new=%s rows=%s", version_id, clone.id, len(rows))
        self._bus.publish(VersionCopiedEvent(
            user_id=user_id, source_version_id=version_id, new_version_id=clone.id, rows_copied=len(rows),
        ))
        return clone

    def delete_version(self, version_id: int, user_id: Optional[str] = None) -> None:
        try:
            version = self._repo.get_for_update(version_id)
            if not version:
                raise EntityNotFoundException("PlanningVersion", version_id)
            if version.status != "archived":
                raise VersionNotArchived(version.id, version.status)

            self._db.query(PlanningData).filter(PlanningData.version_id == version_id).delete(synchronize_session=False)
            self._db.query(Alert).filter(Alert.version_id == version_id).delete(synchronize_session=False)
            (
                self._db.query(PlanningVersion)
                .filter(PlanningVersion.base_version_id == version_id)
                .update({"base_version_id": None}, synchronize_session=False)
            )
            self._history.append(HistoryEntry(
                version_id=version_id,
                action="delete",
                notes=version.name,
                changed_by=user_id or SYSTEM_USER,
            ))
            self._repo.delete(version, commit=False)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        logger.info("version_deleted id=%s", version_id)
