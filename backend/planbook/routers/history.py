"""
History Router — read-only audit trail, newest first.
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from planbook.database import get_db
from planbook.dependencies import CurrentUser, get_current_user
from planbook.schemas.history import HistoryEntryResponse
from planbook.services.version_service import VersionService

router = APIRouter(prefix="/planning-book/history", tags=["Planning Book — History"])

HistoryAction = Literal["create", "update", "delete", "copy", "lock", "unlock"]


def get_version_service(db: Session = Depends(get_db)) -> VersionService:
    return VersionService(db)


@router.get("", response_model=List[HistoryEntryResponse])
def list_history(
    version_id: Optional[int] = None,
    key_figure_id: Optional[int] = None,
    action: Optional[HistoryAction] = None,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: VersionService = Depends(get_version_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.list_history(version_id=version_id, key_figure_id=key_figure_id, action=action, limit=limit)


@router.get("/{version_id}", response_model=List[HistoryEntryResponse])
def get_version_history(
    version_id: int,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: VersionService = Depends(get_version_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.list_history(version_id=version_id, limit=limit)
