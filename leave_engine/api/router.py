from fastapi import APIRouter

from leave_engine.api.admin import admin_router
from leave_engine.api.applications import applications_router
from leave_engine.api.approvals import approvals_router
from leave_engine.api.balances import balance_router, employee_balance_router
from leave_engine.api.holidays import holidays_router
from leave_engine.api.leave_types import leave_types_router

api_router = APIRouter()
api_router.include_router(leave_types_router)
api_router.include_router(holidays_router)
api_router.include_router(applications_router)
api_router.include_router(approvals_router)
api_router.include_router(employee_balance_router)
api_router.include_router(balance_router)
api_router.include_router(admin_router)
