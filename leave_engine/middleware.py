from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

if TYPE_CHECKING:
    from fastapi import FastAPI

    from leave_engine.config import Settings


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Allow the self-service front end to call the API from its own origin."""
    app.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type", "X-User-Id", "X-User-Email", "X-Role"],
    )
