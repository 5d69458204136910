# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from leave_engine.api.deps import AuthDep
from leave_engine.db import SessionDep
from leave_engine.models.enums import LeaveStatus
from leave_engine.schemas.application import (
    ApplicationListResponse,
    ApplicationResponse,
    DecisionPayload,
    SubmitApplicationPayload,
)
from leave_engine.services import application as application_service

applications_router = APIRouter(prefix="/applications", tags=["applications"])


@applications_router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def submit_application(
    payload: SubmitApplicationPayload,
    session: SessionDep,
    auth: AuthDep,
) -> ApplicationResponse:
    """Submit a leave application for the caller."""
    return await application_service.submit_application(session, auth, payload)


@applications_router.get("", response_model=ApplicationListResponse)
async def list_my_applications(
    session: SessionDep,
    auth: AuthDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> ApplicationListResponse:
    """List the caller's own applications, newest first."""
    return await application_service.list_my_applications(session, auth.user_id, status_filter, offset, limit)


@applications_router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> ApplicationResponse:
    return await application_service.get_application(session, auth, application_id)


@applications_router.post("/{application_id}/approve", response_model=ApplicationResponse)
async def approve_application(
    application_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: DecisionPayload | None = None,
) -> ApplicationResponse:
    """Approve a pending application (the employee's line manager only)."""
    return await application_service.approve_application(session, auth.user_id, application_id, payload)


@applications_router.post("/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    application_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: DecisionPayload | None = None,
) -> ApplicationResponse:
    """Reject a pending application (the employee's line manager only)."""
    return await application_service.reject_application(session, auth.user_id, application_id, payload)


@applications_router.post("/{application_id}/cancel", response_model=ApplicationResponse)
async def cancel_application(
    application_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> ApplicationResponse:
    """Cancel one of the caller's own applications."""
    return await application_service.cancel_application(session, auth, application_id)
