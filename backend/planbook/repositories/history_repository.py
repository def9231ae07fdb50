from typing import List, Optional

from sqlalchemy.orm import Session

from planbook.models.history_entry import HistoryEntry


class HistoryRepository:
    """Append-only: exposes ``append`` and reads, nothing that mutates a row."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        self.db.add(entry)
        return entry

    def list_filtered(
        self,
        version_id: Optional[int] = None,
        key_figure_id: Optional[int] = None,
        action: Optional[str] = None,
        limit: Optional[int] = None,
        newest_first: bool = True,
    ) -> List[HistoryEntry]:
        q = self.db.query(HistoryEntry)
        if version_id is not None:
            q = q.filter(HistoryEntry.version_id == version_id)
        if key_figure_id is not None:
            q = q.filter(HistoryEntry.key_figure_id == key_figure_id)
        if action is not None:
            q = q.filter(HistoryEntry.action == action)
        if newest_first:
            q = q.order_by(HistoryEntry.id.desc())
        else:
            q = q.order_by(HistoryEntry.id.asc())
        if limit:
            q = q.limit(limit)
        return q.all()
