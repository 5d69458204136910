# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

from pydantic import BaseModel


class LeaveTypeResponse(BaseModel):
    """Response schema for a leave type."""

    id: uuid.UUID
    name: str
    description: str | None
    default_days_per_year: Decimal
    requires_approval: bool
    is_paid: bool
    is_active: bool


class LeaveTypeListResponse(BaseModel):
    items: list[LeaveTypeResponse]
    total: int
