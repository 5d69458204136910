"""Approver resolution from the line-manager graph.

Every employee must have an active line manager; there is no
fallback to HR. Role-based access (HR/Admin) is checked by the API layer and
never folded into can_approve.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from leave_engine.exceptions import ManagerInactive, NoManagerAssigned, NotFoundError
from leave_engine.services.employee import get_employee_directory

if TYPE_CHECKING:
    import uuid

    from leave_engine.models.application import LeaveApplication
    from leave_engine.services.employee import EmployeeInfo


async def get_active_employee(employee_id: uuid.UUID) -> EmployeeInfo:
    """Fetch an employee that exists and is not soft-deleted."""
    employee = await get_employee_directory().get_employee(employee_id)
    if employee is None or employee.is_deleted:
        raise NotFoundError("Employee not found or inactive")
    return employee


async def resolve_approver(employee_id: uuid.UUID) -> EmployeeInfo:
    """Return the line manager authorized to decide this employee's applications."""
    directory = get_employee_directory()
    employee = await get_active_employee(employee_id)

    if employee.line_manager_id is None:
        raise NoManagerAssigned(
            f"No manager found for employee '{employee.full_name}'. "
            "Contact HR to assign a Line Manager before applying for leave."
        )

    manager = await directory.get_employee(employee.line_manager_id)
    if manager is None or manager.is_deleted:
        raise ManagerInactive(
            f"Assigned manager (ID: {employee.line_manager_id}) not found or inactive for employee "
            f"'{employee.full_name}'. Contact HR to update the Line Manager assignment."
        )

    return manager


async def has_valid_manager(employee_id: uuid.UUID) -> bool:
    """Non-raising variant of resolve_approver."""
    try:
        await resolve_approver(employee_id)
    except (NoManagerAssigned, NotFoundError):
        return False
    return True


async def can_approve(actor_id: uuid.UUID, application: LeaveApplication) -> bool:
    """Whether actor_id is the resolved approver for the application's employee."""
    try:
        approver = await resolve_approver(application.employee_id)
    except (NoManagerAssigned, NotFoundError):
        return False
    return approver.id == actor_id


async def get_direct_report_ids(manager_id: uuid.UUID) -> list[uuid.UUID]:
    reports = await get_employee_directory().list_direct_reports(manager_id)
    return [e.id for e in reports]
