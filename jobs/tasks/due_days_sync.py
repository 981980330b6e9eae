"""
Due days sync task.

Reconciles the stored due-day snapshot of every booking step. Idempotent,
so a missed or repeated run is harmless.
"""

import dramatiq
from loguru import logger
from sqlalchemy.pool import NullPool

import jobs.broker  # noqa: F401  (binds actors to the Redis broker)
from jobs.async_runner import run_async
from solarflow.config.database import create_engine, create_session_maker
from solarflow.services.workflow.due_days_sync import DueDaysSyncService


@dramatiq.actor(max_retries=3, time_limit=600_000)  # 10 min timeout
def sync_due_days() -> None:
    """Recompute due days for all bookings and persist changed snapshots."""
    logger.info("Starting due days sync...")

    changed = run_async(_sync_due_days_async())

    logger.info(f"Due days sync complete: {changed} steps updated")


async def _sync_due_days_async() -> int:
    """Async implementation of due days sync."""
    # No pooling across worker event loops
    engine = create_engine(poolclass=NullPool)
    session_maker = create_session_maker(engine)
    try:
        async with session_maker() as session:
            service = DueDaysSyncService(session)
            return await service.sync_all()
    finally:
        await engine.dispose()
