# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import DAYS_TYPE, TimestampMixin, UUIDBase, now_utc
from leave_engine.models.enums import LeaveStatus


class LeaveApplication(UUIDBase, TimestampMixin, table=True):
    """An employee's leave application with approval workflow state."""

    __tablename__ = "leave_application"
    __table_args__ = (
        sa.Index("ix_application_status_applied", "status", "applied_at"),
        sa.Index("ix_application_employee_dates", "employee_id", "start_date", "end_date"),
    )

    employee_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    total_days: Decimal = Field(sa_type=DAYS_TYPE)
    reason: str | None = Field(default=None, max_length=1000)
    contact_during_leave: str | None = Field(default=None, max_length=500)
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    applied_at: datetime = Field(
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )
    reviewed_by: uuid.UUID | None = None
    reviewed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    review_comments: str | None = Field(default=None, max_length=1000)
