from sqlmodel import SQLModel

from leave_engine.models.application import LeaveApplication
from leave_engine.models.audit import AuditLog
from leave_engine.models.balance import LeaveBalance
from leave_engine.models.base import TimestampMixin, UUIDBase
from leave_engine.models.enums import (
    AuditAction,
    AuditEntityType,
    BceaLeaveType,
    LeaveStatus,
    NotificationKind,
    Role,
)
from leave_engine.models.leave_type import LeaveType

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "BceaLeaveType",
    "LeaveApplication",
    "LeaveBalance",
    "LeaveStatus",
    "LeaveType",
    "NotificationKind",
    "Role",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
