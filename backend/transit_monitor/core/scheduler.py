"""APScheduler setup for the periodic simulation tick."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)


def create_scheduler(engine, interval_seconds: float) -> AsyncIOScheduler:
    """Create and configure the scheduler with the tick job."""
    scheduler = AsyncIOScheduler()

    # One tick at a time; a late tick is skipped rather than run concurrently
    scheduler.add_job(
        engine.poll,
        "interval",
        seconds=interval_seconds,
        id="simulation_tick",
        name="Advance buses, sample stops, derive insight",
        max_instances=1,
        coalesce=True,
    )

    return scheduler
