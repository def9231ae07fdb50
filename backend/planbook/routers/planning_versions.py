"""
Planning Versions Router — Thin Controller (SRP / DIP)
"""
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from planbook.database import get_db
from planbook.dependencies import CurrentUser, get_current_user
from planbook.schemas.planning_version import (
    PlanningVersionCopyRequest,
    PlanningVersionCreate,
    PlanningVersionListResponse,
    PlanningVersionResponse,
    PlanningVersionUpdate,
)
from planbook.services.version_service import VersionService

router = APIRouter(prefix="/planning-book/versions", tags=["Planning Book — Versions"])

VersionStatus = Literal["draft", "active", "locked", "archived"]


def get_version_service(db: Session = Depends(get_db)) -> VersionService:
    return VersionService(db)


@router.get("", response_model=PlanningVersionListResponse)
def list_versions(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[VersionStatus] = None,
    service: VersionService = Depends(get_version_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.list_versions(page=page, page_size=page_size, status=status)


@router.post("", response_model=PlanningVersionResponse, status_code=status.HTTP_201_CREATED)
def create_version(
    data: PlanningVersionCreate,
    service: VersionService = Depends(get_version_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.create_version(data, user_id=current_user.id)


@router.get("/{version_id}", response_model=PlanningVersionResponse)
def get_version(
    version_id: int,
    service: VersionService = Depends(get_version_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.get_version(version_id)


@router.put("/{version_id}", response_model=PlanningVersionResponse)
def update_version(
    version_id: int,
    data: PlanningVersionUpdate,
    service: VersionService = Depends(get_version_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.update_version(version_id, data)


@router.delete("/{version_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_version(
    version_id: int,
    service: VersionService = Depends(get_version_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    service.delete_version(version_id, user_id=current_user.id)


@router.post("/{version_id}/activate", response_model=PlanningVersionResponse)
def activate_version(
    version_id: int,
    service: VersionService = Depends(get_version_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.activate(version_id, user_id=current_user.id)


@router.post("/{version_id}/lock", response_model=PlanningVersionResponse)
def lock_version(
    version_id: int,
    service: VersionService = Depends(get_version_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.lock(version_id, user_id=current_user.id)


@router.post("/{version_id}/unlock", response_model=PlanningVersionResponse)
def unlock_version(
    version_id: int,
    service: VersionService = Depends(get_version_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.unlock(version_id, user_id=current_user.id)


@router.post("/{version_id}/archive", response_model=PlanningVersionResponse)
def archive_version(
    version_id: int,
    service: VersionService = Depends(get_version_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.archive(version_id, user_id=current_user.id)


@router.post("/{version_id}/copy", response_model=PlanningVersionResponse, status_code=status.HTTP_201_CREATED)
def copy_version(
    version_id: int,
    data: PlanningVersionCopyRequest,
    service: VersionService = Depends(get_version_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.copy(version_id, data, user_id=current_user.id)
