# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from leave_engine.models.enums import Role


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    user_id: uuid.UUID
    role: Role = Role.EMPLOYEE

    @property
    def is_hr_or_admin(self) -> bool:
        return self.role in (Role.HR, Role.ADMIN)
