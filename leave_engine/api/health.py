import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from leave_engine.config import get_settings
from leave_engine.db import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    database: Literal["up", "down"]
    version: str
    environment: str
    auto_approve_days: int


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Liveness for load balancers. Unauthenticated; a down database degrades but still answers 200."""
    settings = get_settings()

    try:
        await session.execute(text("SELECT 1"))
        database: Literal["up", "down"] = "up"
    except Exception:
        logger.exception("Leave store unreachable from /health")
        database = "down"

    return HealthResponse(
        status="ok" if database == "up" else "degraded",
        database=database,
        version=settings.app_version,
        environment=settings.environment,
        auto_approve_days=settings.auto_approve_days,
    )
