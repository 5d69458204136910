# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from leave_engine.api.deps import AuthDep, HrAdminDep, ensure_can_view_employee
from leave_engine.db import SessionDep
from leave_engine.schemas.balance import BalanceListResponse, BalanceOverrideRequest, BalanceResponse
from leave_engine.services import balance as balance_service

employee_balance_router = APIRouter(
    prefix="/employees/{employee_id}/balances",
    tags=["balances"],
)

balance_router = APIRouter(prefix="/balances", tags=["balances"])


@employee_balance_router.get("", response_model=BalanceListResponse)
async def get_employee_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=1900, le=2999),
) -> BalanceListResponse:
    """Balances an employee holds for a year (defaults to the current year)."""
    await ensure_can_view_employee(auth, employee_id)
    return await balance_service.get_employee_balances(session, employee_id, year or date.today().year)


@employee_balance_router.post("/initialize", response_model=BalanceListResponse)
async def initialize_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: HrAdminDep,
    year: int | None = Query(default=None, ge=1900, le=2999),
) -> BalanceListResponse:
    """Open balances for every active leave type for a year (HR/admin only)."""
    return await balance_service.initialize_balances(session, employee_id, year or date.today().year)


@employee_balance_router.post("/initialize-history", response_model=BalanceListResponse)
async def initialize_historical_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: HrAdminDep,
) -> BalanceListResponse:
    """Open balances for every year from the hire year to now (HR/admin only)."""
    return await balance_service.initialize_historical_balances(session, employee_id)


@balance_router.put("/{balance_id}", response_model=BalanceResponse)
async def override_balance(
    balance_id: uuid.UUID,
    payload: BalanceOverrideRequest,
    session: SessionDep,
    auth: HrAdminDep,
) -> BalanceResponse:
    """Override a balance's total and used days (HR/admin only)."""
    return await balance_service.adjust_balance(session, auth, balance_id, payload)
