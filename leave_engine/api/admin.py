from __future__ import annotations

from fastapi import APIRouter

from leave_engine.api.deps import AdminDep
from leave_engine.db import SessionDep
from leave_engine.schemas.auto_approval import AutoApprovalRunResponse
from leave_engine.services.auto_approval import run_sweeps

admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.post("/auto-approval/run", response_model=AutoApprovalRunResponse)
async def run_auto_approval(
    session: SessionDep,
    auth: AdminDep,
) -> AutoApprovalRunResponse:
    """Run one scheduler tick now (admin only).

    Sends urgent reminders and auto-approves stale applications exactly as the
    worker does on its own schedule.
    """
    return await run_sweeps(session)
