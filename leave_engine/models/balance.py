# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import TimestampMixin, UUIDBase, days_field, now_utc


class LeaveBalance(UUIDBase, TimestampMixin, table=True):
    """Per employee, leave type and year entitlement ledger.

    Updated transactionally with every application state change.
    """

    __tablename__ = "leave_balance"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "leave_type_id", "year", name="uq_balance_employee_type_year"),
        sa.CheckConstraint("used_days >= 0 AND pending_days >= 0 AND total_days >= 0", name="ck_balance_non_negative"),
    )

    employee_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    year: int
    total_days: Decimal = days_field()
    used_days: Decimal = days_field()
    pending_days: Decimal = days_field()
    carry_forward_days: Decimal = days_field()
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": now_utc},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})

    @property
    def available_days(self) -> Decimal:
        return self.total_days - self.used_days - self.pending_days
