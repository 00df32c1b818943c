"""
Scheduler Module for College Vault.

Standalone Usage:
    python -m vault.infrastructure.scheduler.main
"""

import asyncio
import logging
import signal
from datetime import timezone

from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from vault.core.config import scheduler_logger, settings
from vault.core.db import dispose_db, init_db


logging.getLogger("apscheduler").setLevel(logging.INFO)


def _sync_database_url() -> str:
    """Convert the async DATABASE_URL to a synchronous one for APScheduler.

    Only the driver part of the scheme (before ://) changes, so the rest of
    the URL is preserved exactly, including any percent-encoded password.
    """
    scheme, rest = settings.DATABASE_URL.split("://", 1)
    for driver in ("+asyncpg", "+aiosqlite"):
        scheme = scheme.replace(driver, "")
    return f"{scheme}://{rest}"


scheduler = AsyncIOScheduler(
    jobstores={
        "cleanups": SQLAlchemyJobStore(
            url=_sync_database_url(),
            tablename="scheduler_cleanup_jobs",
        ),
    },
    timezone=timezone.utc,
)


def schedule_sweep_one_time_codes_job(interval_minutes: int = 60) -> None:
    """
    Schedule the sweep_one_time_codes job to run at the given interval.
    """
    from vault.infrastructure.scheduler.jobs import sweep_one_time_codes

    scheduler_logger.info(
        f"Scheduling 'sweep_one_time_codes' job to run every {interval_minutes} minutes"
    )
    scheduler.add_job(
        sweep_one_time_codes,
        trigger=IntervalTrigger(minutes=interval_minutes, timezone=timezone.utc),
        replace_existing=True,
        id="sweep_one_time_codes_job",
        jobstore="cleanups",
        misfire_grace_time=60 * 10,
    )
    scheduler_logger.info("'sweep_one_time_codes' job scheduled successfully.")


def initialize_scheduler() -> None:
    """
    Register every periodic job. Call after ``scheduler.start()``.
    """
    schedule_sweep_one_time_codes_job(
        interval_minutes=settings.OTC_SWEEP_INTERVAL_MINUTES
    )


async def main() -> None:
    """
    Entry point for running the scheduler as its own process.

    Ensures the tables exist, starts the scheduler, and runs until SIGINT
    or SIGTERM.
    """
    shutdown_event = asyncio.Event()

    def handle_shutdown(signum, frame):
        scheduler_logger.info(f"Received signal {signum}, initiating shutdown...")
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    scheduler_logger.info("Starting standalone scheduler...")

    try:
        await init_db()

        scheduler_logger.info("Starting scheduler...")
        scheduler.start()
        scheduler_logger.info("Scheduler started successfully. Waiting for jobs...")
        initialize_scheduler()
        await shutdown_event.wait()

    except Exception as e:
        scheduler_logger.exception(f"Scheduler error: {e}")
        raise

    finally:
        scheduler_logger.info("Shutting down scheduler...")

        if scheduler.running:
            scheduler.shutdown(wait=True)
            scheduler_logger.info("Scheduler stopped successfully.")

        await dispose_db()
        scheduler_logger.info("Scheduler shutdown complete.")


if __name__ == "__main__":
    asyncio.run(main())
