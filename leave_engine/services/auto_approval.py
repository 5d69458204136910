"""Scheduled sweeps over pending leave applications.

Two independent sweeps, both safe to repeat:

- Urgent reminders: applications pending for at least `urgent_reminder_days`
  but less than `auto_approve_days` get a reminder sent to the approver on
  every tick they remain in that window.
- Auto-approval: applications pending for `auto_approve_days` or more are
  approved by the system actor through the normal approve transition.

Each application is handled in its own transaction, so a failure on one row
never affects the others, and a stop request is honoured between items: rows not yet
reached stay PENDING for the next run.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_engine.config import get_settings
from leave_engine.exceptions import InvalidStateTransition, NotFoundError
from leave_engine.models.application import LeaveApplication
from leave_engine.models.base import as_utc, now_utc
from leave_engine.models.enums import LeaveStatus, NotificationKind
from leave_engine.schemas.application import DecisionPayload
from leave_engine.schemas.auto_approval import AutoApprovalRunResponse, SweepResponse
from leave_engine.services.application import (
    MY_APPLICATIONS_URL,
    auto_approve_application,
    review_url,
)
from leave_engine.services.approver import get_active_employee, resolve_approver
from leave_engine.services.leave_type import get_leave_type
from leave_engine.services.notification import send_notification

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

ShouldStop = Callable[[], bool]

AUTO_APPROVAL_COMMENT = "Auto-approved after {days} days pending (no manager action)"


@dataclass
class SweepResult:
    """Summary of one sweep."""

    run_at: datetime
    processed: int = 0
    succeeded: int = 0
    skipped: int = 0
    errors: int = 0
    application_ids: list[uuid.UUID] = field(default_factory=list)

    def to_response(self) -> SweepResponse:
        return SweepResponse(
            processed=self.processed,
            succeeded=self.succeeded,
            skipped=self.skipped,
            errors=self.errors,
        )


async def _find_pending(
    session: AsyncSession,
    *,
    applied_on_or_before: datetime,
    applied_after: datetime | None = None,
) -> list[tuple[uuid.UUID, uuid.UUID, datetime]]:
    """(id, employee_id, applied_at) of pending applications in the age window, oldest first."""
    query = select(
        col(LeaveApplication.id),
        col(LeaveApplication.employee_id),
        col(LeaveApplication.applied_at),
    ).where(
        col(LeaveApplication.status) == LeaveStatus.PENDING.value,
        col(LeaveApplication.applied_at) <= applied_on_or_before,
    )
    if applied_after is not None:
        query = query.where(col(LeaveApplication.applied_at) > applied_after)

    result = await session.execute(query.order_by(col(LeaveApplication.applied_at)))
    rows = [(row[0], row[1], as_utc(row[2])) for row in result.all()]
    # Release the read transaction before per-item units of work begin.
    await session.commit()
    return rows


async def run_urgent_reminder_sweep(
    session: AsyncSession,
    now: datetime | None = None,
    should_stop: ShouldStop | None = None,
) -> SweepResult:
    """Remind approvers of applications about to be auto-approved."""
    settings = get_settings()
    now = now or now_utc()
    result = SweepResult(run_at=now)

    candidates = await _find_pending(
        session,
        applied_on_or_before=now - timedelta(days=settings.urgent_reminder_days),
        applied_after=now - timedelta(days=settings.auto_approve_days),
    )

    for application_id, employee_id, applied_at in candidates:
        if should_stop is not None and should_stop():
            logger.info("Stop requested, leaving %d reminder(s) for the next run", len(candidates) - result.processed)
            break
        result.processed += 1
        try:
            employee = await get_active_employee(employee_id)
            approver = await resolve_approver(employee_id)
            days_pending = (now - applied_at).days
            delivered = await send_notification(
                approver.id,
                "URGENT: Leave Approval Required",
                f"REMINDER: {employee.full_name}'s leave request has been pending for {days_pending} days. "
                f"It will be AUTO-APPROVED in {settings.auto_approve_days - days_pending} day(s) if no action "
                "is taken. Please review immediately.",
                review_url(application_id),
                NotificationKind.LEAVE_URGENT_APPROVAL,
            )
        except Exception:
            logger.exception("Error sending urgent reminder for application=%s", application_id)
            result.errors += 1
            continue

        if delivered:
            result.succeeded += 1
            result.application_ids.append(application_id)
        else:
            result.errors += 1

    if result.processed:
        logger.info("Sent %d urgent approval reminder(s)", result.succeeded)
    return result


async def run_auto_approval_sweep(
    session: AsyncSession,
    now: datetime | None = None,
    should_stop: ShouldStop | None = None,
) -> SweepResult:
    """Approve, as the system actor, every application pending past the auto-approval age."""
    settings = get_settings()
    now = now or now_utc()
    result = SweepResult(run_at=now)
    payload = DecisionPayload(comments=AUTO_APPROVAL_COMMENT.format(days=settings.auto_approve_days))

    candidates = await _find_pending(
        session,
        applied_on_or_before=now - timedelta(days=settings.auto_approve_days),
    )

    for application_id, employee_id, _applied_at in candidates:
        if should_stop is not None and should_stop():
            logger.info(
                "Stop requested, leaving %d application(s) pending for the next run",
                len(candidates) - result.processed,
            )
            break
        result.processed += 1
        try:
            approved = await auto_approve_application(session, application_id, payload, now=now)
        except InvalidStateTransition as exc:
            # Decided or cancelled since the candidate query ran.
            logger.info("Skipping auto-approval of application=%s: %s", application_id, exc.message)
            result.skipped += 1
            continue
        except Exception:
            logger.exception("Error auto-approving application=%s employee=%s", application_id, employee_id)
            result.errors += 1
            continue

        result.succeeded += 1
        result.application_ids.append(application_id)

        try:
            leave_type = await get_leave_type(session, approved.leave_type_id)
        except NotFoundError:
            logger.warning("Leave type of auto-approved application=%s no longer exists", application_id)
            continue
        await send_notification(
            approved.employee_id,
            "Leave Auto-Approved",
            f"Your {leave_type.name} request for {approved.total_days} days has been auto-approved "
            f"(no manager response after {settings.auto_approve_days} days).",
            MY_APPLICATIONS_URL,
            NotificationKind.LEAVE_APPROVED,
        )

    if result.processed:
        logger.info(
            "Auto-approved %d leave application(s) pending for %d+ days",
            result.succeeded,
            settings.auto_approve_days,
        )
    return result


async def run_sweeps(
    session: AsyncSession,
    now: datetime | None = None,
    should_stop: ShouldStop | None = None,
) -> AutoApprovalRunResponse:
    """One scheduler tick: reminders first, then auto-approvals."""
    now = now or now_utc()
    reminders = await run_urgent_reminder_sweep(session, now, should_stop)
    approvals = await run_auto_approval_sweep(session, now, should_stop)
    return AutoApprovalRunResponse(
        run_at=now,
        reminders=reminders.to_response(),
        approvals=approvals.to_response(),
    )
