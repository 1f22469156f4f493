"""Scheduler setup for the daily rate refresh."""

from __future__ import annotations

import atexit
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from flask import Flask

from currency_api.services.refresh import RefreshCoordinator, get_coordinator

logger = logging.getLogger(__name__)

SCHEDULER_EXT_KEY = "apscheduler"
REFRESH_JOB_ID = "refresh_rates"


def _run_refresh(coordinator: RefreshCoordinator, reason: str = "schedule") -> None:
    outcome = coordinator.trigger(reason)
    logger.info("Scheduled refresh finished with status %s", outcome.status.value)


def run_startup_refresh(app: Flask) -> None:
    """Make the one immediate startup attempt, falling back to the cache."""

    coordinator = get_coordinator(app)
    if coordinator is None:
        logger.warning("No refresh coordinator configured; skipping startup refresh.")
        return

    outcome = coordinator.trigger("startup")
    if outcome.installed:
        logger.info("Initial exchange rates loaded successfully")
        return

    logger.warning("Initial fetch failed (will retry on schedule): %s", outcome.error)
    if app.config.get("CACHE_WARM_START", True):
        coordinator.warm_from_cache()


def init_scheduler(app: Flask) -> BackgroundScheduler | None:
    """Start APScheduler with the cron-driven refresh job if enabled.

    With ``REFRESH_ON_STARTUP`` a one-off job runs the startup attempt on the
    scheduler thread right away. With the scheduler disabled, the startup
    attempt runs inline.
    """

    startup = bool(app.config.get("REFRESH_ON_STARTUP", True))

    if not app.config.get("SCHEDULER_ENABLED", True):
        logger.info("Scheduler disabled via configuration.")
        if startup:
            run_startup_refresh(app)
        return None

    if app.extensions.get(SCHEDULER_EXT_KEY):
        return app.extensions[SCHEDULER_EXT_KEY]

    coordinator = get_coordinator(app)
    if coordinator is None:
        logger.warning("No refresh coordinator configured; scheduler not started.")
        return None

    scheduler = BackgroundScheduler(timezone=app.config.get("SCHEDULER_TIMEZONE", "UTC"))
    cron_expr = app.config.get("RATES_REFRESH_CRON", "0 15 * * *")
    trigger = CronTrigger.from_crontab(cron_expr, timezone=scheduler.timezone)
    scheduler.add_job(
        _run_refresh,
        trigger=trigger,
        args=[coordinator],
        id=REFRESH_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    if startup:
        scheduler.add_job(
            run_startup_refresh,
            args=[app],
            id=f"{REFRESH_JOB_ID}_startup",
        )
    scheduler.start()

    app.extensions[SCHEDULER_EXT_KEY] = scheduler
    atexit.register(shutdown_scheduler, app)

    logger.info("Rate update scheduler started with cron '%s'", cron_expr)
    return scheduler


def shutdown_scheduler(app: Flask) -> None:
    """Stop the scheduler without waiting; an in-flight fetch is abandoned."""

    scheduler = app.extensions.get(SCHEDULER_EXT_KEY)
    if scheduler and getattr(scheduler, "running", False):
        logger.info("Shutting down rate update scheduler")
        scheduler.shutdown(wait=False)
