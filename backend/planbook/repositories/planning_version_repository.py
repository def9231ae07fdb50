from typing import Optional

from sqlalchemy.orm import Session

from planbook.models.planning_version import PlanningVersion
from planbook.repositories.base import BaseRepository


class PlanningVersionRepository(BaseRepository[PlanningVersion]):
    def __init__(self, db: Session):
        super().__init__(PlanningVersion, db)

    def get_for_update(self, version_id: int) -> Optional[PlanningVersion]:
        """Row-locks the version for the rest of the transaction (no-op on SQLite)."""
        return (
            self.db.query(PlanningVersion)
            .filter(PlanningVersion.id == version_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
