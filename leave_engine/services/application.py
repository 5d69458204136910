# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_engine.config import get_settings
from leave_engine.db import atomic
from leave_engine.exceptions import (
    EligibilityError,
    InsufficientBalance,
    InvalidStateTransition,
    LeaveValidationError,
    NoManagerAssigned,
    NotAuthorized,
    NotFoundError,
    OverlapConflict,
)
from leave_engine.models.application import LeaveApplication
from leave_engine.models.base import as_utc, now_utc
from leave_engine.models.enums import AuditAction, AuditEntityType, LeaveStatus, NotificationKind
from leave_engine.models.leave_type import LeaveType
from leave_engine.schemas.application import ApplicationListResponse, ApplicationResponse
from leave_engine.services.approver import can_approve, get_active_employee, get_direct_report_ids, resolve_approver
from leave_engine.services.audit import model_to_audit_dict, write_audit_log
from leave_engine.services.balance import apply_ledger_delta, get_or_create_balance_for_update
from leave_engine.services.eligibility import eligibility_error
from leave_engine.services.employee import get_employee_directory
from leave_engine.services.holiday import count_working_days
from leave_engine.services.leave_type import get_leave_type
from leave_engine.services.notification import send_notification

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_engine.schemas.application import DecisionPayload, SubmitApplicationPayload
    from leave_engine.schemas.auth import AuthContext

logger = logging.getLogger(__name__)

# Reviewer identity stamped on applications decided by the scheduler.
SYSTEM_ACTOR = uuid.UUID(int=0)

ACTIVE_STATUSES = (LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value)

MY_APPLICATIONS_URL = "/leave/applications"


def review_url(application_id: uuid.UUID) -> str:
    return f"/approvals/{application_id}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_application_response(application: LeaveApplication) -> ApplicationResponse:
    """Map an application model to its response schema."""
    return ApplicationResponse(
        id=application.id,
        employee_id=application.employee_id,
        leave_type_id=application.leave_type_id,
        start_date=application.start_date,
        end_date=application.end_date,
        total_days=application.total_days,
        reason=application.reason,
        contact_during_leave=application.contact_during_leave,
        status=LeaveStatus(application.status),
        applied_at=as_utc(application.applied_at),
        reviewed_by=application.reviewed_by,
        reviewed_at=as_utc(application.reviewed_at) if application.reviewed_at else None,
        review_comments=application.review_comments,
    )


def _date_span(application: LeaveApplication) -> str:
    return f"{application.start_date:%b %d} - {application.end_date:%b %d}"


async def _get_application_or_404(session: AsyncSession, application_id: uuid.UUID) -> LeaveApplication:
    result = await session.execute(select(LeaveApplication).where(col(LeaveApplication.id) == application_id))
    application = result.scalar_one_or_none()
    if application is None:
        raise NotFoundError("Leave application not found")
    return application


async def _get_application_for_update(session: AsyncSession, application_id: uuid.UUID) -> LeaveApplication:
    """Lock the application row and reload it, so the status check sees the committed state."""
    result = await session.execute(
        select(LeaveApplication)
        .where(col(LeaveApplication.id) == application_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    application = result.scalar_one_or_none()
    if application is None:
        raise NotFoundError("Leave application not found")
    return application


def employee_lock_key(employee_id: uuid.UUID) -> int:
    """Signed 64-bit advisory lock key derived from the employee id."""
    key = employee_id.int >> 64
    return key - (1 << 64) if key >= 1 << 63 else key


async def _lock_employee(session: AsyncSession, employee_id: uuid.UUID) -> None:
    """Serialize submissions for one employee until the transaction ends.

    Row locks cannot cover an application that does not exist yet, and the
    balance rows differ per leave type. Other dialects rely on their own
    writer serialization.
    """
    if session.get_bind().dialect.name != "postgresql":
        return
    await session.execute(select(func.pg_advisory_xact_lock(employee_lock_key(employee_id))))


async def _check_overlap(
    session: AsyncSession,
    employee_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> None:
    """Raise OverlapConflict if a pending or approved application intersects [start_date, end_date].

    Both ranges are inclusive and the check spans every leave type.
    """
    result = await session.execute(
        select(LeaveApplication, col(LeaveType.name))
        .join(LeaveType, col(LeaveType.id) == col(LeaveApplication.leave_type_id))
        .where(
            col(LeaveApplication.employee_id) == employee_id,
            col(LeaveApplication.status).in_(ACTIVE_STATUSES),
            col(LeaveApplication.start_date) <= end_date,
            col(LeaveApplication.end_date) >= start_date,
        )
        .order_by(col(LeaveApplication.start_date))
        .limit(1)
    )
    row = result.first()
    if row is None:
        return

    conflict, leave_type_name = row
    raise OverlapConflict(
        f"You already have {conflict.status.lower()} {leave_type_name} from "
        f"{conflict.start_date:%b %d, %Y} to {conflict.end_date:%b %d, %Y}. "
        "You cannot apply for overlapping leave dates."
    )


def _require_pending(application: LeaveApplication, action: str) -> None:
    if application.status != LeaveStatus.PENDING:
        raise InvalidStateTransition(
            f"Only pending applications can be {action} (current status: {application.status})"
        )


def _check_cancellable(application: LeaveApplication, today: date) -> None:
    """Pending leave is always cancellable; approved leave only before the configured cutoff."""
    if application.status == LeaveStatus.PENDING:
        return
    if application.status != LeaveStatus.APPROVED:
        raise InvalidStateTransition(f"This leave application cannot be cancelled (current status: {application.status})")

    cutoff_days = get_settings().approved_cancellation_cutoff_days
    last_cancellable_day = application.start_date - timedelta(days=cutoff_days + 1)
    if today > last_cancellable_day:
        raise InvalidStateTransition("Approved leave that has started or is within the cancellation cutoff cannot be cancelled")


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def submit_application(
    session: AsyncSession,
    auth: AuthContext,
    payload: SubmitApplicationPayload,
    *,
    today: date | None = None,
) -> ApplicationResponse:
    """Submit a leave application for the caller.

    Flow:
    1. Count working days in the range (weekends and public holidays excluded)
    2. Check the leave type is active
    3. Resolve the approver (blocking if missing or inactive)
    4. Apply the eligibility gate for the leave start date
    5. Lock the employee, then reject overlap with any pending or approved application
    6. Lock (or lazily open) the balance for the start date's year
    7. Enforce available >= requested
    8. Create the application, move the days into pending, audit
    9. Commit, then notify the employee and the approver
    """
    employee = await get_active_employee(auth.user_id)

    working_days = count_working_days(payload.start_date, payload.end_date)
    if working_days == 0:
        raise LeaveValidationError("The selected dates contain no working days")
    requested = Decimal(working_days)

    leave_type = await get_leave_type(session, payload.leave_type_id)
    if not leave_type.is_active:
        raise LeaveValidationError(f"{leave_type.name} is not currently available")

    approver = await resolve_approver(employee.id)

    reason = eligibility_error(leave_type.name, employee.hire_date, payload.start_date)
    if reason is not None:
        raise EligibilityError(reason)

    async with atomic(session):
        await _lock_employee(session, employee.id)
        await _check_overlap(session, employee.id, payload.start_date, payload.end_date)

        balance = await get_or_create_balance_for_update(
            session, employee.id, leave_type, payload.start_date.year, as_of=today
        )
        if balance.available_days < requested:
            raise InsufficientBalance(
                f"Insufficient leave balance. Available: {balance.available_days} days, Requested: {requested} days."
            )

        application = LeaveApplication(
            employee_id=employee.id,
            leave_type_id=leave_type.id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            total_days=requested,
            reason=payload.reason,
            contact_during_leave=payload.contact_during_leave,
            status=LeaveStatus.PENDING.value,
            applied_at=now_utc(),
        )
        session.add(application)
        apply_ledger_delta(balance, pending=requested)
        await session.flush()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.APPLICATION,
            entity_id=application.id,
            action=AuditAction.SUBMIT,
            after_json=model_to_audit_dict(application),
        )

    logger.info(
        "Leave application %s submitted by %s: %s day(s) of %s",
        application.id,
        employee.id,
        requested,
        leave_type.name,
        extra={"event": "leave.submitted", "application_id": str(application.id), "approver_id": str(approver.id)},
    )

    await send_notification(
        employee.id,
        "Leave Application Submitted",
        f"Your {leave_type.name} request for {requested} days has been submitted successfully. "
        f"It will be reviewed by {approver.full_name}.",
        MY_APPLICATIONS_URL,
        NotificationKind.LEAVE_SUBMITTED,
    )
    await send_notification(
        approver.id,
        "New Leave Request",
        f"{employee.full_name} has requested {requested} days of {leave_type.name} leave from "
        f"{application.start_date:%b %d} to {application.end_date:%b %d}. Please review and approve/reject.",
        review_url(application.id),
        NotificationKind.LEAVE_REQUIRES_APPROVAL,
    )
    return _build_application_response(application)


async def approve_application(
    session: AsyncSession,
    actor_id: uuid.UUID,
    application_id: uuid.UUID,
    payload: DecisionPayload | None = None,
    *,
    now: datetime | None = None,
) -> ApplicationResponse:
    """Approve a pending application: move its days from pending to used.

    actor_id must be the employee's resolved approver.
    """
    return await _approve(session, actor_id, application_id, payload, now=now, is_system=False)


async def auto_approve_application(
    session: AsyncSession,
    application_id: uuid.UUID,
    payload: DecisionPayload | None = None,
    *,
    now: datetime | None = None,
) -> ApplicationResponse:
    """Approve as SYSTEM_ACTOR without an approver check. Scheduler only.

    Audited as AUTO_APPROVE; notifying the employee is left to the caller.
    """
    return await _approve(session, SYSTEM_ACTOR, application_id, payload, now=now, is_system=True)


async def _approve(
    session: AsyncSession,
    actor_id: uuid.UUID,
    application_id: uuid.UUID,
    payload: DecisionPayload | None,
    *,
    now: datetime | None,
    is_system: bool,
) -> ApplicationResponse:
    comments = payload.comments if payload else None

    async with atomic(session):
        application = await _get_application_for_update(session, application_id)
        if not is_system and not await can_approve(actor_id, application):
            raise NotAuthorized("You are not authorized to approve this leave application")
        _require_pending(application, "approved")

        leave_type = await get_leave_type(session, application.leave_type_id)
        balance = await get_or_create_balance_for_update(
            session, application.employee_id, leave_type, application.start_date.year
        )
        before_dict = model_to_audit_dict(application)

        apply_ledger_delta(balance, pending=-application.total_days, used=application.total_days)
        application.status = LeaveStatus.APPROVED.value
        application.reviewed_by = actor_id
        application.reviewed_at = now or now_utc()
        application.review_comments = comments
        await session.flush()

        await write_audit_log(
            session,
            actor_id=actor_id,
            entity_type=AuditEntityType.APPLICATION,
            entity_id=application.id,
            action=AuditAction.AUTO_APPROVE if is_system else AuditAction.APPROVE,
            before_json=before_dict,
            after_json=model_to_audit_dict(application),
        )

    logger.info(
        "Leave application %s approved by %s",
        application.id,
        "system" if is_system else actor_id,
        extra={"event": "leave.approved", "application_id": str(application.id), "auto": is_system},
    )

    if not is_system:
        message = (
            f"Your {leave_type.name} request for {application.total_days} days "
            f"({_date_span(application)}) has been approved."
        )
        if comments and comments.strip():
            message += f" Manager's comment: {comments}"
        await send_notification(
            application.employee_id,
            "Leave Approved",
            message,
            MY_APPLICATIONS_URL,
            NotificationKind.LEAVE_APPROVED,
        )
    return _build_application_response(application)


async def reject_application(
    session: AsyncSession,
    actor_id: uuid.UUID,
    application_id: uuid.UUID,
    payload: DecisionPayload | None = None,
    *,
    now: datetime | None = None,
) -> ApplicationResponse:
    """Reject a pending application: release its pending days."""
    comments = payload.comments if payload else None

    async with atomic(session):
        application = await _get_application_for_update(session, application_id)
        if not await can_approve(actor_id, application):
            raise NotAuthorized("You are not authorized to reject this leave application")
        _require_pending(application, "rejected")

        leave_type = await get_leave_type(session, application.leave_type_id)
        balance = await get_or_create_balance_for_update(
            session, application.employee_id, leave_type, application.start_date.year
        )
        before_dict = model_to_audit_dict(application)

        apply_ledger_delta(balance, pending=-application.total_days)
        application.status = LeaveStatus.REJECTED.value
        application.reviewed_by = actor_id
        application.reviewed_at = now or now_utc()
        application.review_comments = comments
        await session.flush()

        await write_audit_log(
            session,
            actor_id=actor_id,
            entity_type=AuditEntityType.APPLICATION,
            entity_id=application.id,
            action=AuditAction.REJECT,
            before_json=before_dict,
            after_json=model_to_audit_dict(application),
        )

    logger.info(
        "Leave application %s rejected by %s",
        application.id,
        actor_id,
        extra={"event": "leave.rejected", "application_id": str(application.id)},
    )

    message = (
        f"Your {leave_type.name} request for {application.total_days} days "
        f"({_date_span(application)}) has been rejected."
    )
    if comments and comments.strip():
        message += f" Manager's comment: {comments}"
    await send_notification(
        application.employee_id,
        "Leave Rejected",
        message,
        MY_APPLICATIONS_URL,
        NotificationKind.LEAVE_REJECTED,
    )
    return _build_application_response(application)


async def cancel_application(
    session: AsyncSession,
    auth: AuthContext,
    application_id: uuid.UUID,
    *,
    today: date | None = None,
) -> ApplicationResponse:
    """Cancel the caller's own application.

    Pending days are released for a pending application; used days are
    restored for an approved one that has not started yet.
    """
    today = today or date.today()

    async with atomic(session):
        application = await _get_application_for_update(session, application_id)
        if application.employee_id != auth.user_id:
            raise NotAuthorized("You can only cancel your own leave applications")
        _check_cancellable(application, today)

        was_approved = application.status == LeaveStatus.APPROVED
        leave_type = await get_leave_type(session, application.leave_type_id)
        balance = await get_or_create_balance_for_update(
            session, application.employee_id, leave_type, application.start_date.year
        )
        before_dict = model_to_audit_dict(application)

        if was_approved:
            apply_ledger_delta(balance, used=-application.total_days)
        else:
            apply_ledger_delta(balance, pending=-application.total_days)
        application.status = LeaveStatus.CANCELLED.value
        application.review_comments = "Cancelled by employee"
        await session.flush()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.APPLICATION,
            entity_id=application.id,
            action=AuditAction.CANCEL,
            before_json=before_dict,
            after_json=model_to_audit_dict(application),
        )

    prior_status = "approved" if was_approved else "pending"
    logger.info(
        "Leave application %s (%s) cancelled by employee %s",
        application.id,
        prior_status,
        auth.user_id,
        extra={"event": "leave.cancelled", "application_id": str(application.id), "prior_status": prior_status},
    )

    employee = await get_employee_directory().get_employee(application.employee_id)
    employee_name = employee.full_name if employee is not None else "An employee"
    try:
        approver = await resolve_approver(application.employee_id)
    except (NoManagerAssigned, NotFoundError) as exc:
        logger.warning("Could not notify manager of cancellation of %s: %s", application.id, exc.message)
    else:
        await send_notification(
            approver.id,
            "Leave Application Cancelled",
            f"{employee_name} has cancelled their {prior_status} {leave_type.name} request for "
            f"{application.total_days} days ({_date_span(application)}).",
            review_url(application.id),
            NotificationKind.LEAVE_CANCELLED,
        )

    await send_notification(
        application.employee_id,
        "Leave Application Cancelled",
        f"You have successfully cancelled your {leave_type.name} request for "
        f"{application.total_days} days ({_date_span(application)}).",
        MY_APPLICATIONS_URL,
        NotificationKind.LEAVE_CANCELLED,
    )
    return _build_application_response(application)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_application(
    session: AsyncSession,
    auth: AuthContext,
    application_id: uuid.UUID,
) -> ApplicationResponse:
    """Get one application. Visible to its owner, its approver and HR/Admin."""
    application = await _get_application_or_404(session, application_id)
    if (
        application.employee_id != auth.user_id
        and not auth.is_hr_or_admin
        and not await can_approve(auth.user_id, application)
    ):
        raise NotAuthorized("You are not authorized to view this leave application")
    return _build_application_response(application)


async def list_my_applications(
    session: AsyncSession,
    employee_id: uuid.UUID,
    status_filter: LeaveStatus | None = None,
    offset: int = 0,
    limit: int = 50,
) -> ApplicationListResponse:
    """An employee's applications, newest first."""
    filters = [col(LeaveApplication.employee_id) == employee_id]
    if status_filter is not None:
        filters.append(col(LeaveApplication.status) == status_filter.value)

    count_result = await session.execute(select(func.count()).select_from(LeaveApplication).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveApplication)
        .where(*filters)
        .order_by(col(LeaveApplication.applied_at).desc())
        .offset(offset)
        .limit(limit)
    )
    return ApplicationListResponse(
        items=[_build_application_response(a) for a in result.scalars().all()],
        total=total,
    )


async def list_pending_for_manager(session: AsyncSession, manager_id: uuid.UUID) -> ApplicationListResponse:
    """Pending applications from the manager's direct reports, oldest first."""
    report_ids = await get_direct_report_ids(manager_id)
    if not report_ids:
        return ApplicationListResponse(items=[], total=0)

    result = await session.execute(
        select(LeaveApplication)
        .where(
            col(LeaveApplication.employee_id).in_(report_ids),
            col(LeaveApplication.status) == LeaveStatus.PENDING.value,
        )
        .order_by(col(LeaveApplication.applied_at))
    )
    applications = list(result.scalars().all())
    return ApplicationListResponse(
        items=[_build_application_response(a) for a in applications],
        total=len(applications),
    )
