from __future__ import annotations

import datetime

from pydantic import BaseModel


class PublicHoliday(BaseModel):
    """A South African public holiday."""

    date: datetime.date
    name: str
    is_fixed: bool


class HolidayListResponse(BaseModel):
    """Public holidays for a calendar year."""

    year: int
    items: list[PublicHoliday]
    total: int


class WorkingDaysResponse(BaseModel):
    """Working days in an inclusive date range."""

    start_date: datetime.date
    end_date: datetime.date
    working_days: int
