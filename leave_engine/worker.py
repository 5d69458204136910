"""Worker process for the auto-approval scheduler.

Runs an asyncio loop that performs the urgent-reminder and auto-approval
sweeps every `sweep_interval_seconds`. SIGINT/SIGTERM stop the loop between
applications; a tick already in progress finishes only the application it is on.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import TYPE_CHECKING

from leave_engine.config import get_settings
from leave_engine.db import dispose_engine, get_session_factory
from leave_engine.services.auto_approval import run_sweeps

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


async def run_sweep_loop(
    stop: asyncio.Event,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    interval: float | None = None,
) -> None:
    """Run scheduler ticks until `stop` is set.

    A failing tick is logged and the loop carries on; the stop event is also
    checked between applications inside a tick.
    """
    settings = get_settings()
    session_factory = session_factory or get_session_factory()
    interval = settings.sweep_interval_seconds if interval is None else interval

    logger.info(
        "Auto-approval worker started (interval=%ds, reminder after %dd, auto-approve after %dd)",
        interval,
        settings.urgent_reminder_days,
        settings.auto_approve_days,
    )

    while not stop.is_set():
        try:
            async with session_factory() as session:
                result = await run_sweeps(session, should_stop=stop.is_set)
            logger.info(
                "Sweep complete at %s: reminders=%d/%d approvals=%d/%d skipped=%d errors=%d",
                result.run_at.isoformat(),
                result.reminders.succeeded,
                result.reminders.processed,
                result.approvals.succeeded,
                result.approvals.processed,
                result.approvals.skipped,
                result.reminders.errors + result.approvals.errors,
            )
        except Exception:
            logger.exception("Auto-approval sweep failed")

        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=interval)

    logger.info("Auto-approval worker stopped")


async def _run() -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        await run_sweep_loop(stop)
    finally:
        await dispose_engine()


def main() -> None:
    """Entry point for the worker process."""
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    asyncio.run(_run())


if __name__ == "__main__":
    main()
