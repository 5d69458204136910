from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SweepResponse(BaseModel):
    """Counts from one sweep over pending applications."""

    processed: int
    succeeded: int
    skipped: int
    errors: int


class AutoApprovalRunResponse(BaseModel):
    """Result of a manually triggered scheduler tick."""

    run_at: datetime
    reminders: SweepResponse
    approvals: SweepResponse
