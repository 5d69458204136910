"""Tests for the balance ledger: lazy creation, carry-forward, initialization,
the non-negativity invariant and administrative overrides.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select, update
from sqlmodel import col

from leave_engine.db import atomic
from leave_engine.exceptions import LeaveValidationError, LedgerInvariantViolation, NotFoundError, PersistenceFailure
from leave_engine.models import AuditLog, LeaveBalance, LeaveType
from leave_engine.models.enums import AuditAction, BceaLeaveType, Role
from leave_engine.schemas.auth import AuthContext
from leave_engine.schemas.balance import BalanceOverrideRequest
from leave_engine.services.balance import (
    adjust_balance,
    apply_ledger_delta,
    get_balance,
    get_employee_balances,
    get_or_create_balance_for_update,
    initialize_balances,
    initialize_historical_balances,
)
from leave_engine.services.employee import EmployeeInfo

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.services.employee import InMemoryEmployeeDirectory

    from .conftest import Staff

LeaveTypes = dict[BceaLeaveType, LeaveType]


def _new_hire(directory: InMemoryEmployeeDirectory, staff: Staff, hire_date: date) -> EmployeeInfo:
    employee = EmployeeInfo(
        id=uuid.uuid4(),
        full_name="Lerato Khumalo",
        email=f"lerato.{hire_date:%Y%m%d}@example.co.za",
        hire_date=hire_date,
        line_manager_id=staff.manager.id,
    )
    directory.seed(employee)
    return employee


async def _open(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    year: int,
    as_of: date | None = None,
) -> LeaveBalance:
    async with atomic(session):
        balance = await get_or_create_balance_for_update(session, employee_id, leave_type, year, as_of=as_of)
    return balance


# ---------------------------------------------------------------------------
# Lazy creation
# ---------------------------------------------------------------------------


async def test_lazy_annual_balance_full_year(db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes) -> None:
    balance = await _open(db_session, staff.employee.id, leave_types[BceaLeaveType.ANNUAL], 2030)

    assert balance.total_days == Decimal(15)
    assert balance.used_days == 0
    assert balance.pending_days == 0
    assert balance.carry_forward_days == 0
    assert balance.available_days == Decimal(15)
    assert balance.version == 1


async def test_lazy_annual_balance_pro_rata_for_mid_year_hire(
    db_session: AsyncSession,
    directory: InMemoryEmployeeDirectory,
    staff: Staff,
    leave_types: LeaveTypes,
) -> None:
    hire = _new_hire(directory, staff, date(2030, 7, 1))
    balance = await _open(db_session, hire.id, leave_types[BceaLeaveType.ANNUAL], 2030, as_of=date(2030, 7, 1))

    assert balance.total_days == Decimal("7.5")
    assert balance.carry_forward_days == 0


async def test_lazy_sick_balance_uses_reference_date(
    db_session: AsyncSession,
    directory: InMemoryEmployeeDirectory,
    staff: Staff,
    leave_types: LeaveTypes,
) -> None:
    hire = _new_hire(directory, staff, date(2030, 1, 1))
    balance = await _open(db_session, hire.id, leave_types[BceaLeaveType.SICK], 2030, as_of=date(2030, 3, 2))

    # 60 days employed: one day per 26 worked.
    assert balance.total_days == Decimal(2)


async def test_existing_balance_is_returned_not_recreated(
    db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes
) -> None:
    annual = leave_types[BceaLeaveType.ANNUAL]
    first = await _open(db_session, staff.employee.id, annual, 2030)
    second = await _open(db_session, staff.employee.id, annual, 2030)

    assert first.id == second.id
    result = await db_session.execute(select(LeaveBalance).where(col(LeaveBalance.employee_id) == staff.employee.id))
    assert len(result.scalars().all()) == 1


async def test_lazy_creation_requires_active_employee(db_session: AsyncSession, leave_types: LeaveTypes) -> None:
    with pytest.raises(NotFoundError):
        await _open(db_session, uuid.uuid4(), leave_types[BceaLeaveType.ANNUAL], 2030)


async def test_duplicate_balance_insert_is_a_persistence_failure(
    db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes
) -> None:
    annual = leave_types[BceaLeaveType.ANNUAL]
    await _open(db_session, staff.employee.id, annual, 2030)

    with pytest.raises(PersistenceFailure):
        async with atomic(db_session):
            db_session.add(LeaveBalance(employee_id=staff.employee.id, leave_type_id=annual.id, year=2030))
            await db_session.flush()


# ---------------------------------------------------------------------------
# Carry-forward
# ---------------------------------------------------------------------------


async def test_carry_forward_capped_at_six(db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes) -> None:
    annual = leave_types[BceaLeaveType.ANNUAL]
    db_session.add(
        LeaveBalance(
            employee_id=staff.employee.id,
            leave_type_id=annual.id,
            year=2029,
            total_days=Decimal(15),
            used_days=Decimal(5),
        )
    )
    await db_session.commit()

    balance = await _open(db_session, staff.employee.id, annual, 2030)

    assert balance.carry_forward_days == Decimal(6)
    assert balance.total_days == Decimal(21)


async def test_carry_forward_below_cap(db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes) -> None:
    annual = leave_types[BceaLeaveType.ANNUAL]
    db_session.add(
        LeaveBalance(
            employee_id=staff.employee.id,
            leave_type_id=annual.id,
            year=2029,
            total_days=Decimal(15),
            used_days=Decimal(10),
            pending_days=Decimal("0.5"),
        )
    )
    await db_session.commit()

    balance = await _open(db_session, staff.employee.id, annual, 2030)

    assert balance.carry_forward_days == Decimal("4.5")
    assert balance.total_days == Decimal("19.5")


async def test_no_carry_forward_for_other_leave_types(
    db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes
) -> None:
    study = leave_types[BceaLeaveType.STUDY]
    db_session.add(LeaveBalance(employee_id=staff.employee.id, leave_type_id=study.id, year=2029, total_days=Decimal(5)))
    await db_session.commit()

    balance = await _open(db_session, staff.employee.id, study, 2030)

    assert balance.carry_forward_days == 0
    assert balance.total_days == Decimal(5)


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------


async def test_initialize_balances_for_all_active_types(
    db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes
) -> None:
    result = await initialize_balances(db_session, staff.employee.id, 2030, as_of=date(2030, 1, 2))

    assert result.total == len(BceaLeaveType)
    by_name = {item.leave_type_name: item for item in result.items}
    assert by_name[BceaLeaveType.ANNUAL].total_days == Decimal(15)
    assert by_name[BceaLeaveType.SICK].total_days == Decimal(30)
    assert by_name[BceaLeaveType.MATERNITY].total_days == Decimal(120)
    assert by_name[BceaLeaveType.UNPAID].total_days == Decimal(0)


async def test_initialize_balances_is_idempotent(
    db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes
) -> None:
    first = await initialize_balances(db_session, staff.employee.id, 2030)
    second = await initialize_balances(db_session, staff.employee.id, 2030)

    assert {b.id for b in first.items} == {b.id for b in second.items}


async def test_initialize_skips_inactive_leave_types(
    db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes
) -> None:
    await db_session.execute(
        update(LeaveType).where(col(LeaveType.id) == leave_types[BceaLeaveType.STUDY].id).values(is_active=False)
    )
    await db_session.commit()

    result = await initialize_balances(db_session, staff.employee.id, 2030)

    assert result.total == len(BceaLeaveType) - 1
    assert BceaLeaveType.STUDY not in {item.leave_type_name for item in result.items}


async def test_initialize_historical_balances_chains_carry_forward(
    db_session: AsyncSession,
    directory: InMemoryEmployeeDirectory,
    staff: Staff,
    leave_types: LeaveTypes,
) -> None:
    hire = _new_hire(directory, staff, date(2028, 7, 1))

    result = await initialize_historical_balances(db_session, hire.id, through_year=2030)

    assert result.total == 3 * len(BceaLeaveType)
    annual = leave_types[BceaLeaveType.ANNUAL]
    annual_by_year = {b.year: b for b in result.items if b.leave_type_id == annual.id}
    assert annual_by_year[2028].total_days == Decimal("7.5")
    assert annual_by_year[2029].carry_forward_days == Decimal(6)
    assert annual_by_year[2029].total_days == Decimal(21)
    assert annual_by_year[2030].total_days == Decimal(21)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def test_get_balance_not_found(db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes) -> None:
    with pytest.raises(NotFoundError):
        await get_balance(db_session, staff.employee.id, leave_types[BceaLeaveType.ANNUAL].id, 2030)


async def test_get_employee_balances_filters_by_year(
    db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes
) -> None:
    annual = leave_types[BceaLeaveType.ANNUAL]
    await _open(db_session, staff.employee.id, annual, 2030)
    await _open(db_session, staff.employee.id, annual, 2031)

    result = await get_employee_balances(db_session, staff.employee.id, 2030)

    assert result.total == 1
    assert result.items[0].year == 2030
    assert result.items[0].leave_type_name == BceaLeaveType.ANNUAL


# ---------------------------------------------------------------------------
# Ledger invariant
# ---------------------------------------------------------------------------


def _balance(total: str, used: str = "0", pending: str = "0") -> LeaveBalance:
    return LeaveBalance(
        employee_id=uuid.uuid4(),
        leave_type_id=uuid.uuid4(),
        year=2030,
        total_days=Decimal(total),
        used_days=Decimal(used),
        pending_days=Decimal(pending),
    )


def test_ledger_delta_moves_pending_to_used() -> None:
    balance = _balance("15", pending="5")

    apply_ledger_delta(balance, pending=Decimal(-5), used=Decimal(5))

    assert balance.pending_days == 0
    assert balance.used_days == Decimal(5)
    assert balance.available_days == Decimal(10)
    assert balance.version == 2


@pytest.mark.parametrize(
    ("pending", "used"),
    [
        (Decimal(16), Decimal(0)),  # available below zero
        (Decimal(-1), Decimal(0)),  # pending below zero
        (Decimal(0), Decimal(-1)),  # used below zero
    ],
)
def test_ledger_delta_rejects_negative_buckets(pending: Decimal, used: Decimal) -> None:
    balance = _balance("15")

    with pytest.raises(LedgerInvariantViolation):
        apply_ledger_delta(balance, pending=pending, used=used)

    assert balance.pending_days == 0
    assert balance.used_days == 0
    assert balance.version == 1


# ---------------------------------------------------------------------------
# Administrative override
# ---------------------------------------------------------------------------


async def test_adjust_balance_writes_audit(db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes) -> None:
    balance = await _open(db_session, staff.employee.id, leave_types[BceaLeaveType.ANNUAL], 2030)
    hr = AuthContext(user_id=uuid.uuid4(), role=Role.HR)

    result = await adjust_balance(
        db_session,
        hr,
        balance.id,
        BalanceOverrideRequest(total_days=Decimal(18), used_days=Decimal(2), reason="Long-service award"),
    )

    assert result.total_days == Decimal(18)
    assert result.used_days == Decimal(2)
    assert result.available_days == Decimal(16)

    logs = (await db_session.execute(select(AuditLog).where(col(AuditLog.entity_id) == balance.id))).scalars().all()
    assert len(logs) == 1
    assert logs[0].action == AuditAction.ADJUST
    assert logs[0].actor_id == hr.user_id
    assert logs[0].before_json is not None
    assert logs[0].before_json["reason"] == "Long-service award"


async def test_adjust_balance_keeps_room_for_pending_days(
    db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes
) -> None:
    balance = await _open(db_session, staff.employee.id, leave_types[BceaLeaveType.ANNUAL], 2030)
    balance.pending_days = Decimal(5)
    await db_session.commit()
    hr = AuthContext(user_id=uuid.uuid4(), role=Role.HR)

    with pytest.raises(LeaveValidationError):
        await adjust_balance(
            db_session,
            hr,
            balance.id,
            BalanceOverrideRequest(total_days=Decimal(10), used_days=Decimal(6), reason="Correction"),
        )

    refreshed = await get_balance(db_session, staff.employee.id, leave_types[BceaLeaveType.ANNUAL].id, 2030)
    assert refreshed.total_days == Decimal(15)
    assert refreshed.used_days == 0


async def test_adjust_balance_rejects_used_above_total(
    db_session: AsyncSession, staff: Staff, leave_types: LeaveTypes
) -> None:
    balance = await _open(db_session, staff.employee.id, leave_types[BceaLeaveType.ANNUAL], 2030)
    admin = AuthContext(user_id=uuid.uuid4(), role=Role.ADMIN)

    with pytest.raises(LeaveValidationError):
        await adjust_balance(
            db_session,
            admin,
            balance.id,
            BalanceOverrideRequest(total_days=Decimal(3), used_days=Decimal(4), reason="Typo"),
        )


async def test_adjust_missing_balance(db_session: AsyncSession) -> None:
    admin = AuthContext(user_id=uuid.uuid4(), role=Role.ADMIN)
    with pytest.raises(NotFoundError):
        await adjust_balance(
            db_session,
            admin,
            uuid.uuid4(),
            BalanceOverrideRequest(total_days=Decimal(3), used_days=Decimal(0), reason="Nothing"),
        )
