# ruff: noqa: B008, TC003
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query

from leave_engine.exceptions import LeaveValidationError
from leave_engine.schemas.holiday import HolidayListResponse, WorkingDaysResponse
from leave_engine.services import holiday as holiday_service

holidays_router = APIRouter(prefix="/holidays", tags=["holidays"])

MAX_RANGE_DAYS = 366


@holidays_router.get("", response_model=HolidayListResponse)
async def list_holidays(
    year: int = Query(ge=1900, le=2999),
) -> HolidayListResponse:
    """South African public holidays for a year, observed Mondays included."""
    items = holiday_service.get_public_holidays(year)
    return HolidayListResponse(year=year, items=items, total=len(items))


@holidays_router.get("/working-days", response_model=WorkingDaysResponse)
async def count_working_days(
    start_date: date = Query(),
    end_date: date = Query(),
) -> WorkingDaysResponse:
    """Working days in the inclusive range, weekends and public holidays excluded."""
    if (end_date - start_date).days >= MAX_RANGE_DAYS:
        raise LeaveValidationError(f"Date range must not exceed {MAX_RANGE_DAYS} days")
    return WorkingDaysResponse(
        start_date=start_date,
        end_date=end_date,
        working_days=holiday_service.count_working_days(start_date, end_date),
    )
