from __future__ import annotations

from fastapi import APIRouter

from leave_engine.api.deps import AuthDep
from leave_engine.db import SessionDep
from leave_engine.schemas.application import ApplicationListResponse
from leave_engine.services import application as application_service

approvals_router = APIRouter(prefix="/approvals", tags=["approvals"])


@approvals_router.get("/pending", response_model=ApplicationListResponse)
async def list_pending_approvals(
    session: SessionDep,
    auth: AuthDep,
) -> ApplicationListResponse:
    """Pending applications from the caller's direct reports, oldest first."""
    return await application_service.list_pending_for_manager(session, auth.user_id)
