# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, Field, model_validator

from leave_engine.models.enums import LeaveStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitApplicationPayload(BaseModel):
    """Request body for submitting a new leave application."""

    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=1000)
    contact_during_leave: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions."""

    comments: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ApplicationResponse(BaseModel):
    """Response schema for a single leave application."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    total_days: Decimal
    reason: str | None
    contact_during_leave: str | None
    status: LeaveStatus
    applied_at: datetime
    reviewed_by: uuid.UUID | None
    reviewed_at: datetime | None
    review_comments: str | None


class ApplicationListResponse(BaseModel):
    """Paginated list of leave applications."""

    items: list[ApplicationResponse]
    total: int
