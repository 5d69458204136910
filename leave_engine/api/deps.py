# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, status

from leave_engine.exceptions import AppError, NotAuthorized
from leave_engine.models.enums import Role
from leave_engine.schemas.auth import AuthContext
from leave_engine.services.application import SYSTEM_ACTOR
from leave_engine.services.employee import get_employee_directory


async def get_auth_context(
    x_user_id: uuid.UUID | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_role: Role = Header(default=Role.EMPLOYEE),
) -> AuthContext:
    """Extract dev auth context from request headers.

    X-User-Id wins; otherwise X-User-Email is resolved through the employee directory.
    The scheduler's reserved identity is never accepted from a request.
    """
    user_id = x_user_id
    if user_id is None and x_user_email:
        user_id = await get_employee_directory().get_employee_id_by_email(x_user_email)
    if user_id is None or user_id == SYSTEM_ACTOR:
        raise AppError("Missing or unknown caller identity", status_code=status.HTTP_401_UNAUTHORIZED)
    return AuthContext(user_id=user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_hr_or_admin(auth: AuthDep) -> AuthContext:
    """Require the HR or admin role for the request."""
    if not auth.is_hr_or_admin:
        raise NotAuthorized("HR or admin access required")
    return auth


HrAdminDep = Annotated[AuthContext, Depends(require_hr_or_admin)]


async def require_admin(auth: AuthDep) -> AuthContext:
    """Require admin role for the request."""
    if auth.role != Role.ADMIN:
        raise NotAuthorized("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def ensure_can_view_employee(auth: AuthContext, employee_id: uuid.UUID) -> None:
    """The employee themselves, their line manager and HR/admin may read an employee's data."""
    if auth.user_id == employee_id or auth.is_hr_or_admin:
        return
    employee = await get_employee_directory().get_employee(employee_id)
    if employee is None or employee.line_manager_id != auth.user_id:
        raise NotAuthorized("You are not authorized to view this employee's leave")
