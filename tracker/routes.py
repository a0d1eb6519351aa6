"""
Discipline HTTP routes.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional

from tracker.database import get_db
from tracker.auth import verify_api_key
from tracker.constants import DisciplineStatus, QUARTER_PATTERN
from tracker.schemas import (
    DisciplineCreate, DisciplineUpdate, DisciplineResponse,
    DisciplineCheckResponse, DisciplineStats, TodayDiscipline,
    CheckInRequest, GraduateRequest, RetireRequest, LimitWarningResponse
)
from tracker.services.discipline_service import DisciplineService
from tracker.services.quarter_service import QuarterService

router = APIRouter(prefix="/api/disciplines", tags=["disciplines"])
quarter_router = APIRouter(prefix="/api/quarters", tags=["quarters"])


@router.get("", response_model=List[DisciplineResponse])
def list_disciplines(
    status_filter: Optional[DisciplineStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    """Get all disciplines, optionally filtered by status."""
    service = DisciplineService(db)
    return [service.to_response(d) for d in service.list_disciplines(status_filter)]


@router.get("/today", response_model=List[TodayDiscipline])
def get_today_disciplines(
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    """Get active disciplines with today's applicability, check and streak."""
    return DisciplineService(db).get_today_disciplines()


@router.get("/limit-warning", response_model=LimitWarningResponse)
def get_limit_warning(
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    """Tell the client whether adding another discipline exceeds the soft limit."""
    service = DisciplineService(db)
    return {
        "active_count": service.get_active_count(),
        "should_warn": service.should_warn_about_limit()
    }


@router.delete("/checks/{check_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_check(
    check_id: int,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    """Delete a single check-in."""
    DisciplineService(db).delete_check(check_id)


@router.get("/{discipline_id}", response_model=DisciplineResponse)
def get_discipline(
    discipline_id: int,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    service = DisciplineService(db)
    return service.to_response(service.get_discipline(discipline_id))


@router.post("", response_model=DisciplineResponse, status_code=status.HTTP_201_CREATED)
def create_discipline(
    data: DisciplineCreate,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    service = DisciplineService(db)
    return service.to_response(service.create_discipline(data))


@router.put("/{discipline_id}", response_model=DisciplineResponse)
def update_discipline(
    discipline_id: int,
    update: DisciplineUpdate,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    service = DisciplineService(db)
    return service.to_response(service.update_discipline(discipline_id, update))


@router.delete("/{discipline_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_discipline(
    discipline_id: int,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    """Delete a discipline and its check history."""
    DisciplineService(db).delete_discipline(discipline_id)


@router.post("/{discipline_id}/graduate", response_model=DisciplineResponse)
def graduate_discipline(
    discipline_id: int,
    body: GraduateRequest,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    """Mark a discipline as ingrained."""
    service = DisciplineService(db)
    return service.to_response(service.graduate(discipline_id, body.reflection))


@router.post("/{discipline_id}/retire", response_model=DisciplineResponse)
def retire_discipline(
    discipline_id: int,
    body: RetireRequest,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    service = DisciplineService(db)
    return service.to_response(service.retire(discipline_id, body.reason))


@router.post(
    "/{discipline_id}/evolve",
    response_model=DisciplineResponse,
    status_code=status.HTTP_201_CREATED
)
def evolve_discipline(
    discipline_id: int,
    data: DisciplineCreate,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    """Replace a discipline with a successor that links back to it."""
    service = DisciplineService(db)
    return service.to_response(service.evolve(discipline_id, data))


@router.get("/{discipline_id}/lineage", response_model=List[DisciplineResponse])
def get_lineage(
    discipline_id: int,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    service = DisciplineService(db)
    return [service.to_response(d) for d in service.get_lineage(discipline_id)]


@router.get("/{discipline_id}/stats", response_model=DisciplineStats)
def get_stats(
    discipline_id: int,
    quarter: Optional[str] = Query(None, pattern=QUARTER_PATTERN),
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    """Get streak, quarter consistency and rating counts."""
    service = DisciplineService(db)
    return service.get_stats(service.get_discipline(discipline_id), quarter)


@router.get("/{discipline_id}/checks", response_model=List[DisciplineCheckResponse])
def get_checks(
    discipline_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    return DisciplineService(db).get_checks(discipline_id, start, end)


@router.post("/{discipline_id}/check-in", response_model=DisciplineCheckResponse)
def check_in(
    discipline_id: int,
    body: CheckInRequest,
    db: Session = Depends(get_db),
    _: str = Depends(verify_api_key)
):
    """Record today's rating. Repeating it on the same day overwrites."""
    return DisciplineService(db).check_in(
        discipline_id, body.rating, body.actual_time, body.note
    )


@quarter_router.get("/current")
def get_current_quarter(_: str = Depends(verify_api_key)):
    """Get the current quarter with its labels and week position."""
    today = date.today()
    quarter_key = QuarterService.get_current_quarter(today)
    start, end = QuarterService.quarter_date_range(quarter_key)
    return {
        "quarter": quarter_key,
        "label": QuarterService.format_quarter_label(quarter_key),
        "range_label": QuarterService.format_quarter_range(quarter_key),
        "start": start,
        "end": end,
        "months": QuarterService.get_months_in_quarter(quarter_key),
        "week": QuarterService.get_week_of_quarter(today),
        "total_weeks": QuarterService.get_total_weeks_in_quarter(quarter_key),
        "previous": QuarterService.add_quarters(quarter_key, -1),
        "next": QuarterService.add_quarters(quarter_key, 1)
    }
