"""
Grid Router — period columns and the assembled planning grid.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from planbook.database import get_db
from planbook.dependencies import CurrentUser, get_current_user
from planbook.schemas.planning_data import GridResponse
from planbook.schemas.time_setting import Level, PeriodResponse
from planbook.services.grid_service import GridService
from planbook.services.time_setting_service import TimeSettingService

router = APIRouter(prefix="/planning-book", tags=["Planning Book — Grid"])


def get_grid_service(db: Session = Depends(get_db)) -> GridService:
    return GridService(db)


def get_time_setting_service(db: Session = Depends(get_db)) -> TimeSettingService:
    return TimeSettingService(db)


def parse_id_list(raw: Optional[str]) -> Optional[List[int]]:
    """``"1,2,3"`` -> ``[1, 2, 3]``; ``None`` means every active key figure."""
    if raw is None:
        return None
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise ValueError(f"key_figure_ids must be a comma separated list of integers, got '{raw}'") from exc


@router.get("/periods", response_model=List[PeriodResponse])
def get_periods(
    time_setting_id: int,
    level: Optional[Level] = Query(None),
    service: TimeSettingService = Depends(get_time_setting_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.resolve_periods_by_id(time_setting_id, level=level)


@router.get("/grid", response_model=GridResponse)
def get_grid(
    version_id: int,
    time_setting_id: int,
    key_figure_ids: Optional[str] = Query(None, description="Comma separated key figure ids"),
    level: Optional[Level] = Query(None),
    service: GridService = Depends(get_grid_service),
    _: CurrentUser = Depends(get_current_user),
):
    return service.build_grid(
        version_id,
        time_setting_id,
        key_figure_ids=parse_id_list(key_figure_ids),
        level=level,
    )


@router.get("/planning-data/grid", response_model=GridResponse)
def get_planning_data_grid(
    version_id: int,
    time_setting_id: int,
    key_figures: Optional[List[str]] = Query(None, description="Key figure ids, repeated or comma separated"),
    level: Optional[Level] = Query(None),
    service: GridService = Depends(get_grid_service),
    _: CurrentUser = Depends(get_current_user),
):
    """Grid under the planning-data path the dashboard calls."""
    return service.build_grid(
        version_id,
        time_setting_id,
        key_figure_ids=parse_id_list(",".join(key_figures)) if key_figures else None,
        level=level,
    )
