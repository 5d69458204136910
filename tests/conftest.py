from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leave_engine.db import get_session
from leave_engine.main import app
from leave_engine.models import LeaveType, SQLModel
from leave_engine.models.enums import BceaLeaveType
from leave_engine.services.employee import EmployeeInfo, InMemoryEmployeeDirectory, set_employee_directory
from leave_engine.services.leave_type import get_leave_type_by_name, seed_leave_types
from leave_engine.services.notification import InMemoryNotificationSink, set_notification_sink

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine


@dataclass
class Staff:
    """A line manager, one of their reports and an unrelated manager."""

    manager: EmployeeInfo
    employee: EmployeeInfo
    outsider: EmployeeInfo


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """A fresh in-memory SQLite database per test, schema created from the models."""
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def directory() -> Iterator[InMemoryEmployeeDirectory]:
    """A fresh employee directory for every test."""
    stub = InMemoryEmployeeDirectory()
    set_employee_directory(stub)
    yield stub
    set_employee_directory(InMemoryEmployeeDirectory())


@pytest.fixture(autouse=True)
def sink() -> Iterator[InMemoryNotificationSink]:
    """A fresh notification sink for every test."""
    stub = InMemoryNotificationSink()
    set_notification_sink(stub)
    yield stub
    set_notification_sink(InMemoryNotificationSink())


@pytest.fixture
def staff(directory: InMemoryEmployeeDirectory) -> Staff:
    manager = EmployeeInfo(
        id=uuid.uuid4(),
        full_name="Thandi Mokoena",
        email="thandi.mokoena@example.co.za",
        hire_date=date(2015, 3, 2),
    )
    employee = EmployeeInfo(
        id=uuid.uuid4(),
        full_name="Sipho Dlamini",
        email="sipho.dlamini@example.co.za",
        hire_date=date(2020, 1, 15),
        line_manager_id=manager.id,
    )
    outsider = EmployeeInfo(
        id=uuid.uuid4(),
        full_name="Anele Naidoo",
        email="anele.naidoo@example.co.za",
        hire_date=date(2018, 9, 3),
    )
    for person in (manager, employee, outsider):
        directory.seed(person)
    return Staff(manager=manager, employee=employee, outsider=outsider)


@pytest.fixture
async def leave_types(db_session: AsyncSession) -> dict[BceaLeaveType, LeaveType]:
    """The seeded statutory leave types keyed by name.

    Returned detached, so a rollback in the test session cannot expire them.
    """
    await seed_leave_types(db_session)
    seeded: dict[BceaLeaveType, LeaveType] = {}
    for name in BceaLeaveType:
        leave_type = await get_leave_type_by_name(db_session, name)
        assert leave_type is not None
        db_session.expunge(leave_type)
        seeded[name] = leave_type
    return seeded
