# ruff: noqa: B008
from __future__ import annotations

from fastapi import APIRouter, Query

from leave_engine.api.deps import AuthDep
from leave_engine.db import SessionDep
from leave_engine.schemas.leave_type import LeaveTypeListResponse
from leave_engine.services import leave_type as leave_type_service

leave_types_router = APIRouter(prefix="/leave-types", tags=["leave-types"])


@leave_types_router.get("", response_model=LeaveTypeListResponse)
async def list_leave_types(
    session: SessionDep,
    auth: AuthDep,
    include_inactive: bool = Query(default=False),
) -> LeaveTypeListResponse:
    """List leave types. Inactive ones are hidden unless requested."""
    return await leave_type_service.list_leave_types(session, include_inactive)
