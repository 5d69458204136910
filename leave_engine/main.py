from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from leave_engine.api.health import router as health_router
from leave_engine.api.router import api_router
from leave_engine.config import get_settings
from leave_engine.db import dispose_engine
from leave_engine.exceptions import setup_exception_handlers
from leave_engine.middleware import setup_middleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup and shutdown."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info(
        "Starting %s v%s [%s]: auto-approve after %d days, reminders after %d",
        settings.app_name,
        settings.app_version,
        settings.environment,
        settings.auto_approve_days,
        settings.urgent_reminder_days,
    )
    yield
    logger.info("Shutting down %s", settings.app_name)
    await dispose_engine()


def create_app() -> FastAPI:
    """Build the API app. Routers stay thin; all rules live in leave_engine.services."""
    settings = get_settings()

    application = FastAPI(
        title=settings.app_name,
        description="BCEA leave entitlement, application workflow and balance ledger.",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
    )

    setup_middleware(application, settings)
    setup_exception_handlers(application)

    application.include_router(health_router)
    application.include_router(api_router)

    return application


app = create_app()
