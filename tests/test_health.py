from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.db import get_session
from leave_engine.main import app

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


async def test_health_ok(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "database": "up",
        "version": "0.1.0",
        "environment": "development",
        "auto_approve_days": 5,
    }


async def test_health_needs_no_identity(async_client: AsyncClient) -> None:
    response = await async_client.get("/health", headers={})
    assert response.status_code == 200


async def test_health_degraded_when_database_unreachable() -> None:
    """GET /health still answers 200, reporting degraded, when the database is down."""
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.execute.side_effect = OperationalError("SELECT 1", {}, ConnectionRefusedError("db:5432"))

    async def _broken_session() -> AsyncIterator[AsyncSession]:
        yield mock_session

    app.dependency_overrides[get_session] = _broken_session
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["database"] == "down"
    finally:
        app.dependency_overrides.clear()
