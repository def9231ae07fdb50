"""
Key Figures Router — Thin Controller (SRP / DIP)
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from planbook.database import get_db
from planbook.dependencies import CurrentUser, get_current_user
from planbook.schemas.key_figure import (
    FormulaValidationRequest,
    FormulaValidationResponse,
    KeyFigureCreate,
    KeyFigureDependenciesResponse,
    KeyFigureResponse,
    KeyFigureUpdate,
)
from planbook.services.key_figure_service import KeyFigureService

router = APIRouter(prefix="/planning-book/key-figures", tags=["Planning Book — Key Figures"])


def get_key_figure_service(db: Session = Depends(get_db)) -> KeyFigureService:
    return KeyFigureService(db)


@router.get("", response_model=List[KeyFigureResponse])
def list_key_figures(
    kf_type: Optional[Literal["base", "calculated"]] = None,
    is_active: Optional[bool] = None,
    service: KeyFigureService = Depends(get_key_figure_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.list_key_figures(kf_type=kf_type, is_active=is_active)


@router.post("", response_model=KeyFigureResponse, status_code=status.HTTP_201_CREATED)
def create_key_figure(
    data: KeyFigureCreate,
    service: KeyFigureService = Depends(get_key_figure_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.register(data, user_id=current_user.id)


@router.post("/validate-formula", response_model=FormulaValidationResponse)
def validate_formula(
    data: FormulaValidationRequest,
    service: KeyFigureService = Depends(get_key_figure_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.validate_formula(data.formula, code=data.code)


@router.get("/{key_figure_id}", response_model=KeyFigureResponse)
def get_key_figure(
    key_figure_id: int,
    service: KeyFigureService = Depends(get_key_figure_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.get_key_figure(key_figure_id)


@router.get("/{key_figure_id}/dependencies", response_model=KeyFigureDependenciesResponse)
def get_key_figure_dependencies(
    key_figure_id: int,
    service: KeyFigureService = Depends(get_key_figure_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.get_dependencies(key_figure_id)


@router.put("/{key_figure_id}", response_model=KeyFigureResponse)
def update_key_figure(
    key_figure_id: int,
    data: KeyFigureUpdate,
    service: KeyFigureService = Depends(get_key_figure_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.update_key_figure(key_figure_id, data, user_id=current_user.id)


@router.delete("/{key_figure_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_key_figure(
    key_figure_id: int,
    service: KeyFigureService = Depends(get_key_figure_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    service.delete_key_figure(key_figure_id, user_id=current_user.id)
