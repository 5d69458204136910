from __future__ import annotations

import enum


class LeaveStatus(enum.StrEnum):
    """State machine for leave applications."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class BceaLeaveType(enum.StrEnum):
    """Statutory leave type names the eligibility rules are keyed on."""

    ANNUAL = "Annual Leave"
    SICK = "Sick Leave"
    FAMILY_RESPONSIBILITY = "Family Responsibility Leave"
    MATERNITY = "Maternity Leave"
    PATERNITY = "Paternity Leave"
    STUDY = "Study Leave"
    UNPAID = "Unpaid Leave"


class Role(enum.StrEnum):
    """Caller role supplied by the access-control collaborator."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    HR = "hr"
    ADMIN = "admin"


class NotificationKind(enum.StrEnum):
    """Kind of notification handed to the notification sink."""

    LEAVE_SUBMITTED = "LEAVE_SUBMITTED"
    LEAVE_REQUIRES_APPROVAL = "LEAVE_REQUIRES_APPROVAL"
    LEAVE_APPROVED = "LEAVE_APPROVED"
    LEAVE_REJECTED = "LEAVE_REJECTED"
    LEAVE_CANCELLED = "LEAVE_CANCELLED"
    LEAVE_URGENT_APPROVAL = "LEAVE_URGENT_APPROVAL"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    APPLICATION = "APPLICATION"
    BALANCE = "BALANCE"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    AUTO_APPROVE = "AUTO_APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    ADJUST = "ADJUST"
