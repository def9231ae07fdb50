"""
Planning Data Router — Thin Controller (SRP / DIP)
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from planbook.database import get_db
from planbook.dependencies import CurrentUser, get_current_user
from planbook.schemas.planning_data import (
    BulkUpdateRequest,
    BulkUpdateResponse,
    PeriodType,
    PlanningDataResponse,
    PlanningDataUpsert,
)
from planbook.services.planning_data_service import PlanningDataService

router = APIRouter(prefix="/planning-book/planning-data", tags=["Planning Book — Planning Data"])


def get_planning_data_service(db: Session = Depends(get_db)) -> PlanningDataService:
    return PlanningDataService(db)


@router.get("", response_model=List[PlanningDataResponse])
def list_planning_data(
    version_id: Optional[int] = None,
    key_figure_id: Optional[int] = None,
    period_type: Optional[PeriodType] = None,
    period_from: Optional[str] = Query(None, max_length=12),
    period_to: Optional[str] = Query(None, max_length=12),
    service: PlanningDataService = Depends(get_planning_data_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.list_data(
        version_id=version_id,
        key_figure_id=key_figure_id,
        period_type=period_type,
        period_from=period_from,
        period_to=period_to,
    )


@router.post("", response_model=PlanningDataResponse)
def upsert_planning_data(
    data: PlanningDataUpsert,
    service: PlanningDataService = Depends(get_planning_data_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.upsert_cell(data, user_id=current_user.id)


@router.post("/bulk-update", response_model=BulkUpdateResponse)
def bulk_update_planning_data(
    data: BulkUpdateRequest,
    service: PlanningDataService = Depends(get_planning_data_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.bulk_upsert(data.version_id, data.updates, user_id=current_user.id)


@router.get("/{data_id}", response_model=PlanningDataResponse)
def get_planning_data(
    data_id: int,
    service: PlanningDataService = Depends(get_planning_data_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.get_data(data_id)


@router.delete("/{data_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_planning_data(
    data_id: int,
    service: PlanningDataService = Depends(get_planning_data_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    service.delete_data(data_id, user_id=current_user.id)
