from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_engine.config import get_settings
from leave_engine.db import atomic
from leave_engine.exceptions import LeaveValidationError, LedgerInvariantViolation, NotFoundError
from leave_engine.models.balance import LeaveBalance
from leave_engine.models.enums import AuditAction, AuditEntityType, BceaLeaveType
from leave_engine.models.leave_type import LeaveType
from leave_engine.schemas.balance import BalanceListResponse, BalanceResponse
from leave_engine.services.approver import get_active_employee
from leave_engine.services.audit import model_to_audit_dict, write_audit_log
from leave_engine.services.eligibility import calculate_carry_forward, calculate_entitlement
from leave_engine.services.leave_type import list_active_leave_types

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.auth import AuthContext
    from leave_engine.schemas.balance import BalanceOverrideRequest
    from leave_engine.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)

_ZERO = Decimal(0)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_balance_response(balance: LeaveBalance, leave_type_name: str | None = None) -> BalanceResponse:
    """Map a balance model to its response schema."""
    return BalanceResponse(
        id=balance.id,
        employee_id=balance.employee_id,
        leave_type_id=balance.leave_type_id,
        leave_type_name=leave_type_name,
        year=balance.year,
        total_days=balance.total_days,
        used_days=balance.used_days,
        pending_days=balance.pending_days,
        available_days=balance.available_days,
        carry_forward_days=balance.carry_forward_days,
        updated_at=balance.updated_at,
    )


async def _find_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    *,
    for_update: bool = False,
) -> LeaveBalance | None:
    query = select(LeaveBalance).where(
        col(LeaveBalance.employee_id) == employee_id,
        col(LeaveBalance.leave_type_id) == leave_type_id,
        col(LeaveBalance.year) == year,
    )
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def _previous_year_available(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
) -> Decimal | None:
    previous = await _find_balance(session, employee_id, leave_type_id, year - 1)
    return previous.available_days if previous is not None else None


async def _build_new_balance(
    session: AsyncSession,
    employee: EmployeeInfo,
    leave_type: LeaveType,
    year: int,
    as_of: date,
) -> LeaveBalance:
    """Compute the opening balance for (employee, leave type, year) without persisting it."""
    allocated = calculate_entitlement(
        leave_type.name,
        leave_type.default_days_per_year,
        employee.hire_date,
        as_of,
        year,
    )

    carry_forward = _ZERO
    if leave_type.name == BceaLeaveType.ANNUAL and year > employee.hire_date.year:
        previous_available = await _previous_year_available(session, employee.id, leave_type.id, year)
        carry_forward = calculate_carry_forward(previous_available, get_settings().carry_forward_cap_days)

    logger.info(
        "Opening %s balance for employee=%s year=%d: allocated=%s carry_forward=%s",
        leave_type.name,
        employee.id,
        year,
        allocated,
        carry_forward,
    )
    return LeaveBalance(
        employee_id=employee.id,
        leave_type_id=leave_type.id,
        year=year,
        total_days=allocated + carry_forward,
        used_days=_ZERO,
        pending_days=_ZERO,
        carry_forward_days=carry_forward,
        version=1,
    )


async def get_or_create_balance_for_update(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    year: int,
    *,
    as_of: date | None = None,
) -> LeaveBalance:
    """Get the balance with a FOR UPDATE lock, creating it from the BCEA rules if absent.

    A concurrent creator of the same triple loses on the unique constraint and
    its whole transaction is rolled back by the caller's unit of work.
    """
    balance = await _find_balance(session, employee_id, leave_type.id, year, for_update=True)
    if balance is not None:
        return balance

    employee = await get_active_employee(employee_id)
    balance = await _build_new_balance(session, employee, leave_type, year, as_of or date.today())
    session.add(balance)
    await session.flush()
    return balance


def apply_ledger_delta(
    balance: LeaveBalance,
    *,
    pending: Decimal = _ZERO,
    used: Decimal = _ZERO,
) -> None:
    """Move days between the pending and used buckets of a locked balance.

    Raises LedgerInvariantViolation, leaving the balance untouched, if any
    bucket or the available figure would drop below zero.
    """
    new_pending = balance.pending_days + pending
    new_used = balance.used_days + used
    new_available = balance.total_days - new_used - new_pending

    if new_pending < _ZERO or new_used < _ZERO or new_available < _ZERO:
        raise LedgerInvariantViolation(
            f"Balance update would break the ledger invariant "
            f"(total={balance.total_days}, used={new_used}, pending={new_pending})"
        )

    balance.pending_days = new_pending
    balance.used_days = new_used
    balance.version += 1


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
) -> BalanceResponse:
    """Get a single balance or raise 404."""
    balance = await _find_balance(session, employee_id, leave_type_id, year)
    if balance is None:
        raise NotFoundError("Leave balance not found")
    return _build_balance_response(balance)


async def get_employee_balances(
    session: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
) -> BalanceListResponse:
    """All balances an employee holds for a year, ordered by leave type name."""
    result = await session.execute(
        select(LeaveBalance, col(LeaveType.name))
        .join(LeaveType, col(LeaveType.id) == col(LeaveBalance.leave_type_id))
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.year) == year,
        )
        .order_by(col(LeaveType.name))
    )
    items = [_build_balance_response(balance, name) for balance, name in result.all()]
    return BalanceListResponse(items=items, total=len(items))


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------


async def initialize_balances(
    session: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
    *,
    as_of: date | None = None,
) -> BalanceListResponse:
    """Open a balance for every active leave type for the year. Existing balances are kept."""
    employee = await get_active_employee(employee_id)
    reference_date = as_of or date.today()

    async with atomic(session):
        created = 0
        for leave_type in await list_active_leave_types(session):
            if await _find_balance(session, employee_id, leave_type.id, year, for_update=True) is not None:
                continue
            session.add(await _build_new_balance(session, employee, leave_type, year, reference_date))
            await session.flush()
            created += 1

    logger.info("Initialized %d leave balance(s) for employee=%s year=%d", created, employee_id, year)
    return await get_employee_balances(session, employee_id, year)


async def initialize_historical_balances(
    session: AsyncSession,
    employee_id: uuid.UUID,
    *,
    through_year: int | None = None,
) -> BalanceListResponse:
    """Open balances for every year from the hire year through `through_year`.

    Years are processed oldest first so each year's carry-forward can read the
    previous year's balance. A failing year is logged and skipped.
    """
    employee = await get_active_employee(employee_id)
    last_year = through_year or date.today().year

    items: list[BalanceResponse] = []
    for year in range(employee.hire_date.year, last_year + 1):
        try:
            year_balances = await initialize_balances(session, employee_id, year)
        except Exception:
            logger.exception("Failed to initialize balances for employee=%s year=%d", employee_id, year)
            continue
        items.extend(year_balances.items)

    return BalanceListResponse(items=items, total=len(items))


# ---------------------------------------------------------------------------
# Write path: administrative override
# ---------------------------------------------------------------------------


async def adjust_balance(
    session: AsyncSession,
    auth: AuthContext,
    balance_id: uuid.UUID,
    payload: BalanceOverrideRequest,
) -> BalanceResponse:
    """HR/Admin override of a balance's total and used days.

    Bypasses the application state machine but keeps the ledger invariant:
    pending days are untouched and total - used - pending must stay >= 0.
    """
    async with atomic(session):
        result = await session.execute(
            select(LeaveBalance)
            .where(col(LeaveBalance.id) == balance_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        balance = result.scalar_one_or_none()
        if balance is None:
            raise NotFoundError("Leave balance not found")

        if payload.used_days > payload.total_days:
            raise LeaveValidationError("Used days cannot exceed total days")
        if payload.total_days - payload.used_days - balance.pending_days < _ZERO:
            raise LeaveValidationError(
                f"Override leaves a negative available balance while {balance.pending_days} day(s) are pending"
            )

        before_dict = model_to_audit_dict(balance)

        balance.total_days = payload.total_days
        balance.used_days = payload.used_days
        balance.version += 1
        await session.flush()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=balance.id,
            action=AuditAction.ADJUST,
            before_json=before_dict | {"reason": payload.reason},
            after_json=model_to_audit_dict(balance),
        )

    logger.info(
        "Balance %s overridden by %s: total %s -> %s, used %s -> %s. Reason: %s",
        balance.id,
        auth.user_id,
        before_dict["total_days"],
        balance.total_days,
        before_dict["used_days"],
        balance.used_days,
        payload.reason,
    )
    return _build_balance_response(balance)
