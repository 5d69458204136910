"""South African public holiday calendar and working-day arithmetic.

Pure functions: no database, no clock.
"""

from __future__ import annotations

from datetime import date, timedelta
from functools import lru_cache

from dateutil.easter import easter

from leave_engine.exceptions import LeaveValidationError
from leave_engine.schemas.holiday import PublicHoliday

# (month, day, name) of holidays that fall on the same date every year.
_FIXED_HOLIDAYS: tuple[tuple[int, int, str], ...] = (
    (1, 1, "New Year's Day"),
    (3, 21, "Human Rights Day"),
    (4, 27, "Freedom Day"),
    (5, 1, "Workers' Day"),
    (6, 16, "Youth Day"),
    (8, 9, "National Women's Day"),
    (9, 24, "Heritage Day"),
    (12, 16, "Day of Reconciliation"),
    (12, 25, "Christmas Day"),
    (12, 26, "Day of Goodwill"),
)

_SATURDAY = 5
_SUNDAY = 6


@lru_cache(maxsize=64)
def _holidays_for_year(year: int) -> tuple[PublicHoliday, ...]:
    holidays = [PublicHoliday(date=date(year, month, day), name=name, is_fixed=True) for month, day, name in _FIXED_HOLIDAYS]

    easter_sunday = easter(year)
    holidays.append(PublicHoliday(date=easter_sunday - timedelta(days=2), name="Good Friday", is_fixed=False))
    holidays.append(PublicHoliday(date=easter_sunday + timedelta(days=1), name="Family Day", is_fixed=False))

    # A fixed holiday on a Sunday is observed on the Monday, or the next free
    # day when the Monday is itself a holiday (25 Dec on a Sunday -> 27 Dec).
    taken = {h.date for h in holidays}
    observed: list[PublicHoliday] = []
    for holiday in sorted(holidays, key=lambda h: h.date):
        if not holiday.is_fixed or holiday.date.weekday() != _SUNDAY:
            continue
        observed_on = holiday.date + timedelta(days=1)
        while observed_on in taken:
            observed_on += timedelta(days=1)
        taken.add(observed_on)
        observed.append(PublicHoliday(date=observed_on, name=f"{holiday.name} (Observed)", is_fixed=False))

    return tuple(sorted(holidays + observed, key=lambda h: h.date))


def get_public_holidays(year: int) -> list[PublicHoliday]:
    """All public holidays for a year, ordered by date."""
    return list(_holidays_for_year(year))


def _holiday_dates(year: int) -> dict[date, str]:
    return {h.date: h.name for h in _holidays_for_year(year)}


def is_public_holiday(day: date) -> bool:
    return day in _holiday_dates(day.year)


def get_holiday_name(day: date) -> str | None:
    """Name of the holiday on this date, or None."""
    return _holiday_dates(day.year).get(day)


def is_working_day(day: date) -> bool:
    """A working day is neither a weekend day nor a public holiday."""
    return day.weekday() not in (_SATURDAY, _SUNDAY) and not is_public_holiday(day)


def count_working_days(start_date: date, end_date: date) -> int:
    """Count working days in the inclusive range [start_date, end_date].

    Whole weeks count five days each, so the cost grows with the number of
    years spanned rather than the number of days.
    """
    if end_date < start_date:
        raise LeaveValidationError("End date must not be before start date")

    full_weeks, remainder = divmod((end_date - start_date).days + 1, 7)
    weekdays = full_weeks * 5
    first_weekday = start_date.weekday()
    weekdays += sum(1 for offset in range(remainder) if (first_weekday + offset) % 7 < _SATURDAY)

    # A set: Family Day can coincide with Freedom Day, Good Friday with Human Rights Day.
    weekday_holidays = {
        holiday.date
        for year in range(start_date.year, end_date.year + 1)
        for holiday in _holidays_for_year(year)
        if start_date <= holiday.date <= end_date and holiday.date.weekday() < _SATURDAY
    }
    return weekdays - len(weekday_holidays)
