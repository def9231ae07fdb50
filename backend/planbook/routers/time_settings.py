"""
Time Settings Router — Thin Controller (SRP / DIP)
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from planbook.database import get_db
from planbook.dependencies import CurrentUser, get_current_user
from planbook.schemas.time_setting import (
    Level,
    PeriodResponse,
    TimeHierarchyResponse,
    TimeSettingCreate,
    TimeSettingResponse,
    TimeSettingUpdate,
)
from planbook.services.time_setting_service import TimeSettingService

router = APIRouter(prefix="/planning-book/time-settings", tags=["Planning Book — Time Settings"])


def get_time_setting_service(db: Session = Depends(get_db)) -> TimeSettingService:
    return TimeSettingService(db)


@router.get("", response_model=List[TimeSettingResponse])
def list_time_settings(
    is_active: Optional[bool] = None,
    kind: Optional[str] = None,
    service: TimeSettingService = Depends(get_time_setting_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.list_settings(is_active=is_active, kind=kind)


@router.post("", response_model=TimeSettingResponse, status_code=status.HTTP_201_CREATED)
def create_time_setting(
    data: TimeSettingCreate,
    service: TimeSettingService = Depends(get_time_setting_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.create_setting(data, user_id=current_user.id)


@router.get("/{setting_id}", response_model=TimeSettingResponse)
def get_time_setting(
    setting_id: int,
    service: TimeSettingService = Depends(get_time_setting_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.get_setting(setting_id)


@router.put("/{setting_id}", response_model=TimeSettingResponse)
def update_time_setting(
    setting_id: int,
    data: TimeSettingUpdate,
    service: TimeSettingService = Depends(get_time_setting_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.update_setting(setting_id, data)


@router.delete("/{setting_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_time_setting(
    setting_id: int,
    service: TimeSettingService = Depends(get_time_setting_service),
    _: CurrentUser = Depends(get_current_user),
):
    service.delete_setting(setting_id)


@router.get("/{setting_id}/hierarchy", response_model=TimeHierarchyResponse)
def get_time_hierarchy(
    setting_id: int,
    service: TimeSettingService = Depends(get_time_setting_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.get_hierarchy(setting_id)


@router.get("/{setting_id}/periods", response_model=List[PeriodResponse])
def get_time_setting_periods(
    setting_id: int,
    level: Optional[Level] = Query(None),
    service: TimeSettingService = Depends(get_time_setting_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.resolve_periods_by_id(setting_id, level=level)


@router.post("/{setting_id}/roll-forward", response_model=TimeSettingResponse)
def roll_forward_time_setting(
    setting_id: int,
    service: TimeSettingService = Depends(get_time_setting_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.roll_forward(setting_id)
