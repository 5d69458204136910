# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class EmployeeInfo(BaseModel):
    """Employee record from the Employee Directory."""

    id: uuid.UUID
    full_name: str
    email: str
    hire_date: date
    line_manager_id: uuid.UUID | None = None
    is_deleted: bool = False


@runtime_checkable
class EmployeeDirectory(Protocol):
    """Interface for the Employee Directory."""

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch an employee, soft-deleted ones included. Returns None if not found."""
        ...

    async def get_employee_id_by_email(self, email: str) -> uuid.UUID | None:
        """Resolve an active employee's ID from their login email."""
        ...

    async def list_direct_reports(self, manager_id: uuid.UUID) -> list[EmployeeInfo]:
        """List active employees whose line manager is manager_id."""
        ...


class InMemoryEmployeeDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[uuid.UUID, EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[employee.id] = employee

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        return self._employees.get(employee_id)

    async def get_employee_id_by_email(self, email: str) -> uuid.UUID | None:
        needle = email.strip().lower()
        for employee in self._employees.values():
            if employee.email.lower() == needle and not employee.is_deleted:
                return employee.id
        return None

    async def list_direct_reports(self, manager_id: uuid.UUID) -> list[EmployeeInfo]:
        return [e for e in self._employees.values() if e.line_manager_id == manager_id and not e.is_deleted]


_employee_directory: EmployeeDirectory = InMemoryEmployeeDirectory()


def get_employee_directory() -> EmployeeDirectory:
    """FastAPI dependency for the Employee Directory."""
    return _employee_directory


def set_employee_directory(directory: EmployeeDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _employee_directory
    _employee_directory = directory
