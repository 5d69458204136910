# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Balance response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """Balance for a single leave type and year."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    leave_type_name: str | None = None
    year: int
    total_days: Decimal
    used_days: Decimal
    pending_days: Decimal
    available_days: Decimal
    carry_forward_days: Decimal
    updated_at: datetime | None


class BalanceListResponse(BaseModel):
    """All leave balances for an employee in a year."""

    items: list[BalanceResponse]
    total: int


# ---------------------------------------------------------------------------
# Administrative override
# ---------------------------------------------------------------------------


class BalanceOverrideRequest(BaseModel):
    """Request body for an HR/Admin balance override."""

    total_days: Decimal = Field(ge=0, max_digits=6, decimal_places=1)
    used_days: Decimal = Field(ge=0, max_digits=6, decimal_places=1)
    reason: str = Field(min_length=1, max_length=1000)
