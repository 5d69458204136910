"""Tests for BCEA entitlement and eligibility rules."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest

from leave_engine.models.enums import BceaLeaveType
from leave_engine.services.eligibility import (
    calculate_carry_forward,
    calculate_entitlement,
    calculate_pro_rata_annual_leave,
    calculate_sick_leave_entitlement,
    eligibility_date,
    eligibility_error,
    is_eligible,
    is_eligible_for_family_leave,
    is_eligible_for_paternity_leave,
    is_eligible_for_sick_leave,
)

HIRE = date(2030, 1, 14)


def _days_after_hire(days: int) -> date:
    return HIRE + timedelta(days=days)


# ---------------------------------------------------------------------------
# Annual leave pro-rata
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("hire_date", "expected"),
    [
        (date(2030, 1, 1), Decimal("15.0")),
        (date(2030, 3, 10), Decimal("12.5")),
        (date(2030, 7, 1), Decimal("7.5")),
        (date(2030, 12, 1), Decimal("1.2")),
    ],
)
def test_pro_rata_in_hire_year(hire_date: date, expected: Decimal) -> None:
    assert calculate_pro_rata_annual_leave(hire_date, 2030) == expected


def test_full_entitlement_after_hire_year() -> None:
    assert calculate_pro_rata_annual_leave(date(2029, 11, 20), 2030) == Decimal(15)


def test_no_entitlement_before_hire_year() -> None:
    assert calculate_pro_rata_annual_leave(date(2031, 2, 1), 2030) == Decimal(0)


# ---------------------------------------------------------------------------
# Sick leave
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("days", "expected"),
    [(0, 0), (25, 0), (26, 1), (60, 2), (179, 6), (180, 30), (900, 30)],
)
def test_sick_leave_entitlement(days: int, expected: int) -> None:
    assert calculate_sick_leave_entitlement(HIRE, _days_after_hire(days)) == Decimal(expected)


def test_sick_leave_entitlement_before_hire_is_zero() -> None:
    assert calculate_sick_leave_entitlement(HIRE, HIRE - timedelta(days=10)) == Decimal(0)


def test_sick_leave_accrues_before_it_can_be_used() -> None:
    reference = _days_after_hire(179)
    assert calculate_sick_leave_entitlement(HIRE, reference) == Decimal(6)
    assert not is_eligible_for_sick_leave(HIRE, reference)
    assert is_eligible_for_sick_leave(HIRE, _days_after_hire(180))


# ---------------------------------------------------------------------------
# Eligibility gates
# ---------------------------------------------------------------------------


def test_family_leave_boundary() -> None:
    assert not is_eligible_for_family_leave(HIRE, _days_after_hire(119))
    assert is_eligible_for_family_leave(HIRE, _days_after_hire(120))
    assert is_eligible_for_family_leave(HIRE, _days_after_hire(179))


def test_paternity_leave_boundary() -> None:
    assert not is_eligible_for_paternity_leave(HIRE, _days_after_hire(364))
    assert is_eligible_for_paternity_leave(HIRE, _days_after_hire(365))


def test_ungated_leave_types_are_always_eligible() -> None:
    for name in (BceaLeaveType.ANNUAL, BceaLeaveType.MATERNITY, BceaLeaveType.STUDY, BceaLeaveType.UNPAID):
        assert eligibility_date(name, HIRE) is None
        assert is_eligible(name, HIRE, HIRE)
        assert eligibility_error(name, HIRE, HIRE) is None


def test_eligibility_dates() -> None:
    assert eligibility_date(BceaLeaveType.SICK, HIRE) == date(2030, 7, 13)
    assert eligibility_date(BceaLeaveType.FAMILY_RESPONSIBILITY, HIRE) == date(2030, 5, 14)
    assert eligibility_date(BceaLeaveType.PATERNITY, HIRE) == date(2031, 1, 14)


def test_eligibility_error_message() -> None:
    message = eligibility_error(BceaLeaveType.SICK, HIRE, _days_after_hire(100))
    assert message == (
        "You are not eligible for sick leave yet. Eligibility date: Jul 13, 2030 (after 6 months employment)."
    )


def test_eligibility_error_for_family_leave() -> None:
    message = eligibility_error(BceaLeaveType.FAMILY_RESPONSIBILITY, HIRE, _days_after_hire(119))
    assert message is not None
    assert "family responsibility leave" in message
    assert "after 4 months employment" in message


# ---------------------------------------------------------------------------
# Allocation and carry-forward
# ---------------------------------------------------------------------------


def test_entitlement_dispatch() -> None:
    reference = _days_after_hire(100)
    assert calculate_entitlement(BceaLeaveType.ANNUAL, Decimal(15), HIRE, reference, 2030) == Decimal("15.0")
    assert calculate_entitlement(BceaLeaveType.SICK, Decimal(30), HIRE, reference, 2030) == Decimal(3)
    assert calculate_entitlement(BceaLeaveType.FAMILY_RESPONSIBILITY, Decimal(3), HIRE, reference, 2030) == 0
    assert calculate_entitlement(BceaLeaveType.PATERNITY, Decimal(10), HIRE, reference, 2030) == 0
    assert calculate_entitlement(BceaLeaveType.MATERNITY, Decimal(120), HIRE, reference, 2030) == Decimal(120)
    assert calculate_entitlement(BceaLeaveType.UNPAID, Decimal(0), HIRE, reference, 2030) == Decimal(0)


def test_entitlement_for_custom_leave_type_uses_default() -> None:
    assert calculate_entitlement("Volunteer Leave", Decimal(2), HIRE, HIRE, 2030) == Decimal(2)


def test_family_leave_entitlement_once_eligible() -> None:
    reference = _days_after_hire(120)
    assert calculate_entitlement(BceaLeaveType.FAMILY_RESPONSIBILITY, Decimal(3), HIRE, reference, 2030) == 3


@pytest.mark.parametrize(
    ("previous", "expected"),
    [
        (None, Decimal(0)),
        (Decimal("10.0"), Decimal(6)),
        (Decimal("6.0"), Decimal(6)),
        (Decimal("4.5"), Decimal("4.5")),
        (Decimal("0.0"), Decimal(0)),
    ],
)
def test_carry_forward_capped(previous: Decimal | None, expected: Decimal) -> None:
    assert calculate_carry_forward(previous, Decimal(6)) == expected
