"""BCEA entitlement and eligibility rules.

Pure and deterministic: every function is keyed only by the hire date, a
reference date (or year) and the leave type name.

- Annual leave (s20): 15 working days a year, pro-rata in the hire year.
- Sick leave (s22): 1 day per 26 days worked during the first six months,
  then 30 days per cycle. Usable only after 180 days of employment.
- Family responsibility leave (s27): after 4 months (120 days).
- Paternity leave: after one year (365 days).
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_EVEN, Decimal

from leave_engine.models.enums import BceaLeaveType

ANNUAL_LEAVE_DAYS = Decimal(15)
SICK_LEAVE_DAYS = Decimal(30)
SICK_LEAVE_ACCRUAL_DIVISOR = 26

SICK_LEAVE_QUALIFYING_DAYS = 180
FAMILY_LEAVE_QUALIFYING_DAYS = 120
PATERNITY_LEAVE_QUALIFYING_DAYS = 365

_ONE_DECIMAL = Decimal("0.1")


def days_employed(hire_date: date, reference_date: date) -> int:
    """Whole calendar days between hire and the reference date."""
    return (reference_date - hire_date).days


# ---------------------------------------------------------------------------
# Entitlement values
# ---------------------------------------------------------------------------


def calculate_pro_rata_annual_leave(hire_date: date, year: int) -> Decimal:
    """Annual leave allocation for `year`.

    Months are counted from the hire month through December inclusive, so a
    1 July hire earns 6/12 of 15 = 7.5 days.
    """
    if hire_date.year < year:
        return ANNUAL_LEAVE_DAYS
    if hire_date.year > year:
        return Decimal(0)

    months_worked = 13 - hire_date.month
    # Multiply first: months * 15 / 12 is exact in quarters of a day.
    pro_rata = Decimal(months_worked) * ANNUAL_LEAVE_DAYS / Decimal(12)
    return pro_rata.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_EVEN)


def calculate_sick_leave_entitlement(hire_date: date, reference_date: date) -> Decimal:
    """Sick leave entitlement as of reference_date.

    This is the stored value. Whether the employee may actually draw on it is
    decided separately by is_eligible_for_sick_leave.
    """
    worked = days_employed(hire_date, reference_date)
    if worked < SICK_LEAVE_QUALIFYING_DAYS:
        return Decimal(max(worked, 0) // SICK_LEAVE_ACCRUAL_DIVISOR)
    return SICK_LEAVE_DAYS


# ---------------------------------------------------------------------------
# Eligibility gates
# ---------------------------------------------------------------------------


def is_eligible_for_sick_leave(hire_date: date, reference_date: date) -> bool:
    return days_employed(hire_date, reference_date) >= SICK_LEAVE_QUALIFYING_DAYS


def is_eligible_for_family_leave(hire_date: date, reference_date: date) -> bool:
    return days_employed(hire_date, reference_date) >= FAMILY_LEAVE_QUALIFYING_DAYS


def is_eligible_for_paternity_leave(hire_date: date, reference_date: date) -> bool:
    return days_employed(hire_date, reference_date) >= PATERNITY_LEAVE_QUALIFYING_DAYS


def eligibility_date(leave_type_name: str, hire_date: date) -> date | None:
    """First date on which the employee may use this leave type, or None if ungated."""
    if leave_type_name == BceaLeaveType.SICK:
        return hire_date + timedelta(days=SICK_LEAVE_QUALIFYING_DAYS)
    if leave_type_name == BceaLeaveType.FAMILY_RESPONSIBILITY:
        return hire_date + timedelta(days=FAMILY_LEAVE_QUALIFYING_DAYS)
    if leave_type_name == BceaLeaveType.PATERNITY:
        return hire_date + timedelta(days=PATERNITY_LEAVE_QUALIFYING_DAYS)
    return None


def is_eligible(leave_type_name: str, hire_date: date, reference_date: date) -> bool:
    """Whether the employee may submit this leave type for a leave starting on reference_date."""
    eligible_from = eligibility_date(leave_type_name, hire_date)
    return eligible_from is None or reference_date >= eligible_from


def eligibility_error(leave_type_name: str, hire_date: date, reference_date: date) -> str | None:
    """Human-readable reason the employee cannot use this leave type yet, or None."""
    if is_eligible(leave_type_name, hire_date, reference_date):
        return None

    eligible_from = eligibility_date(leave_type_name, hire_date)
    qualifying = {
        BceaLeaveType.SICK: "6 months",
        BceaLeaveType.FAMILY_RESPONSIBILITY: "4 months",
        BceaLeaveType.PATERNITY: "1 year",
    }[BceaLeaveType(leave_type_name)]
    return (
        f"You are not eligible for {leave_type_name.lower()} yet. "
        f"Eligibility date: {eligible_from:%b %d, %Y} (after {qualifying} employment)."
    )


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------


def calculate_entitlement(
    leave_type_name: str,
    default_days: Decimal,
    hire_date: date,
    reference_date: date,
    year: int,
) -> Decimal:
    """Days allocated for a new (employee, leave type, year) balance, before carry-forward."""
    if leave_type_name == BceaLeaveType.ANNUAL:
        return calculate_pro_rata_annual_leave(hire_date, year)
    if leave_type_name == BceaLeaveType.SICK:
        return calculate_sick_leave_entitlement(hire_date, reference_date)
    if leave_type_name == BceaLeaveType.FAMILY_RESPONSIBILITY:
        return default_days if is_eligible_for_family_leave(hire_date, reference_date) else Decimal(0)
    if leave_type_name == BceaLeaveType.PATERNITY:
        return default_days if is_eligible_for_paternity_leave(hire_date, reference_date) else Decimal(0)
    # Maternity, study, unpaid and any administrator-defined type.
    return default_days


def calculate_carry_forward(previous_available: Decimal | None, cap: Decimal) -> Decimal:
    """Unused prior-year annual leave carried into the new year, capped."""
    if previous_available is None:
        return Decimal(0)
    return max(min(previous_available, cap), Decimal(0))
