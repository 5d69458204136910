from __future__ import annotations

from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_engine.models.base import DAYS_TYPE, TimestampMixin, UUIDBase


class LeaveType(UUIDBase, TimestampMixin, table=True):
    """Reference data for a kind of leave (Annual, Sick, ...)."""

    __tablename__ = "leave_type"
    __table_args__ = (sa.UniqueConstraint("name", name="uq_leave_type_name"),)

    name: str = Field(max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    default_days_per_year: Decimal = Field(default=Decimal(0), sa_type=DAYS_TYPE)
    requires_approval: bool = True
    is_paid: bool = True
    is_active: bool = Field(default=True, index=True)
