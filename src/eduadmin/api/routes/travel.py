"""Instructor travel allowance endpoints."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...config import settings
from ...errors import (
    InvalidInputError,
    NotFoundError,
    PolicyNotFoundError,
    PreconditionFailedError,
    TravelAllowanceError,
)
from ...schemas.travel import DailyTravelResponse, MonthlyTravelSummaryResponse
from ...services.travel.queries import MONTH_PATTERN, TravelQueryService
from ...services.travel.recalculator import DailyTravelRecalculator
from ..dependencies import get_query_service, get_recalculator

router = APIRouter(prefix="/v1/admin/instructors", tags=["travel-allowance"])

_STATUS_BY_ERROR: tuple[tuple[type[TravelAllowanceError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PreconditionFailedError, status.HTTP_409_CONFLICT),
    (PolicyNotFoundError, 422),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
)


def _http_error(exc: TravelAllowanceError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail={"code": exc.code, "message": exc.message})
    logging.exception(f"Unhandled travel allowance error: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": exc.code, "message": exc.message},
    )


def _today() -> date:
    return datetime.now(ZoneInfo(settings.timezone)).date()


@router.get("/{instructor_id}/daily-travel", response_model=List[DailyTravelResponse])
def get_daily_travel(
    instructor_id: int,
    from_date: date | None = Query(default=None, alias="from", description="Inclusive start; defaults to month start."),
    to_date: date | None = Query(default=None, alias="to", description="Inclusive end; defaults to today."),
    queries: TravelQueryService = Depends(get_query_service),
) -> List[DailyTravelResponse]:
    today = _today()
    start = from_date or today.replace(day=1)
    end = to_date or today
    try:
        records = queries.get_daily_records(instructor_id, start, end)
    except TravelAllowanceError as exc:
        raise _http_error(exc) from exc
    return [DailyTravelResponse.from_record(record) for record in records]


@router.post(
    "/{instructor_id}/daily-travel/recalculate",
    response_model=DailyTravelResponse,
    status_code=status.HTTP_200_OK,
)
def recalculate_daily_travel(
    instructor_id: int,
    travel_date: date = Query(..., alias="date", description="Travel date (YYYY-MM-DD)."),
    recalculator: DailyTravelRecalculator = Depends(get_recalculator),
) -> DailyTravelResponse:
    try:
        record = recalculator.recalculate(instructor_id, travel_date)
    except TravelAllowanceError as exc:
        raise _http_error(exc) from exc
    except Exception as exc:
        logging.exception(f"Error recalculating daily travel: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to recalculate daily travel: {str(exc)}",
        ) from exc
    return DailyTravelResponse.from_record(record)


@router.post(
    "/{instructor_id}/daily-travel/rebuild",
    response_model=List[DailyTravelResponse],
    status_code=status.HTTP_200_OK,
)
def rebuild_daily_travel(
    instructor_id: int,
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    recalculator: DailyTravelRecalculator = Depends(get_recalculator),
) -> List[DailyTravelResponse]:
    try:
        records = recalculator.rebuild(instructor_id, from_date, to_date)
    except TravelAllowanceError as exc:
        raise _http_error(exc) from exc
    except Exception as exc:
        logging.exception(f"Error rebuilding daily travel: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to rebuild daily travel: {str(exc)}",
        ) from exc
    return [DailyTravelResponse.from_record(record) for record in records]


@router.get("/{instructor_id}/monthly-travel", response_model=MonthlyTravelSummaryResponse)
def get_monthly_travel(
    instructor_id: int,
    month: str = Query(..., pattern=MONTH_PATTERN.pattern, description="Month in YYYY-MM format."),
    queries: TravelQueryService = Depends(get_query_service),
) -> MonthlyTravelSummaryResponse:
    try:
        summary = queries.get_monthly_summary(instructor_id, month)
    except TravelAllowanceError as exc:
        raise _http_error(exc) from exc
    return MonthlyTravelSummaryResponse.from_summary(summary)
