from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_engine.exceptions import NotFoundError
from leave_engine.models.enums import BceaLeaveType
from leave_engine.models.leave_type import LeaveType
from leave_engine.schemas.leave_type import LeaveTypeListResponse, LeaveTypeResponse

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession


def _build_leave_type_response(leave_type: LeaveType) -> LeaveTypeResponse:
    return LeaveTypeResponse(
        id=leave_type.id,
        name=leave_type.name,
        description=leave_type.description,
        default_days_per_year=leave_type.default_days_per_year,
        requires_approval=leave_type.requires_approval,
        is_paid=leave_type.is_paid,
        is_active=leave_type.is_active,
    )


async def get_leave_type(session: AsyncSession, leave_type_id: uuid.UUID) -> LeaveType:
    """Get a single leave type or raise 404."""
    result = await session.execute(select(LeaveType).where(col(LeaveType.id) == leave_type_id))
    leave_type = result.scalar_one_or_none()
    if leave_type is None:
        raise NotFoundError("Leave type not found")
    return leave_type


async def get_leave_type_by_name(session: AsyncSession, name: str) -> LeaveType | None:
    result = await session.execute(select(LeaveType).where(col(LeaveType.name) == name))
    return result.scalar_one_or_none()


async def list_active_leave_types(session: AsyncSession) -> list[LeaveType]:
    """Active leave types ordered by name."""
    result = await session.execute(
        select(LeaveType).where(col(LeaveType.is_active).is_(True)).order_by(col(LeaveType.name))
    )
    return list(result.scalars().all())


async def list_leave_types(session: AsyncSession, include_inactive: bool = False) -> LeaveTypeListResponse:
    query = select(LeaveType).order_by(col(LeaveType.name))
    if not include_inactive:
        query = query.where(col(LeaveType.is_active).is_(True))
    result = await session.execute(query)
    leave_types = list(result.scalars().all())
    return LeaveTypeListResponse(
        items=[_build_leave_type_response(lt) for lt in leave_types],
        total=len(leave_types),
    )


# (name, default days, requires approval, paid, description)
BCEA_LEAVE_TYPES: tuple[tuple[BceaLeaveType, int, bool, bool, str], ...] = (
    (
        BceaLeaveType.ANNUAL,
        15,
        True,
        True,
        "15 working days per year for a 5-day work week, pro-rata in the year of hire.",
    ),
    (
        BceaLeaveType.SICK,
        30,
        False,
        True,
        "30 days over the sick leave cycle, usable after 6 months of employment.",
    ),
    (
        BceaLeaveType.FAMILY_RESPONSIBILITY,
        3,
        True,
        True,
        "3 paid days per year for birth, illness or death in the immediate family. Available after 4 months.",
    ),
    (
        BceaLeaveType.MATERNITY,
        120,
        True,
        False,
        "4 consecutive months, unpaid unless the employer or UIF pays.",
    ),
    (
        BceaLeaveType.PATERNITY,
        10,
        True,
        False,
        "10 consecutive days parental leave, available after one year of employment.",
    ),
    (
        BceaLeaveType.STUDY,
        5,
        True,
        True,
        "Company policy: 5 days per year for approved qualifications.",
    ),
    (
        BceaLeaveType.UNPAID,
        0,
        True,
        False,
        "Leave without pay, subject to manager approval.",
    ),
)


async def seed_leave_types(session: AsyncSession) -> list[str]:
    """Insert any missing statutory leave types. Returns the names created."""
    created: list[str] = []
    for name, days, requires_approval, is_paid, description in BCEA_LEAVE_TYPES:
        if await get_leave_type_by_name(session, name) is not None:
            continue
        session.add(
            LeaveType(
                name=name.value,
                description=description,
                default_days_per_year=Decimal(days),
                requires_approval=requires_approval,
                is_paid=is_paid,
                is_active=True,
            )
        )
        created.append(name.value)
    await session.commit()
    return created
