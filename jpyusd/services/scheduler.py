"""Optional scheduler that periodically refreshes the current rate."""

from __future__ import annotations

import logging
from typing import cast

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from flask import Flask

logger = logging.getLogger(__name__)

SCHEDULER_EXT_KEY = "apscheduler"
REFRESH_JOB_ID = "refresh_rates"


def _run_refresh(app: Flask) -> None:
    from jpyusd.services.orchestrator import Orchestrator  # Local import to avoid circular

    orchestrator = cast(Orchestrator | None, app.extensions.get("fx_orchestrator"))
    if orchestrator is None:
        logger.warning("No orchestrator configured; skipping scheduled refresh.")
        return

    state = orchestrator.refresh().result()
    if state.error:
        logger.error("Scheduled refresh failed: %s", state.error)
    else:
        logger.info(
            "Scheduled refresh completed using %s (%s)",
            state.provider,
            state.source.value if state.source else "unknown",
        )


def init_scheduler(app: Flask) -> BackgroundScheduler | None:
    """Start an APScheduler cron job calling `Orchestrator.refresh` if enabled."""

    if not app.config.get("SCHEDULER_ENABLED", False):
        logger.info("Scheduler disabled via configuration.")
        return None

    if app.extensions.get(SCHEDULER_EXT_KEY):
        return app.extensions[SCHEDULER_EXT_KEY]

    scheduler = BackgroundScheduler(timezone=app.config.get("SCHEDULER_TIMEZONE", "UTC"))
    cron_expr = app.config.get("RATES_REFRESH_CRON", "0 */1 * * *")
    scheduler.add_job(
        _run_refresh,
        trigger=CronTrigger.from_crontab(cron_expr),
        args=[app],
        id=REFRESH_JOB_ID,
        replace_existing=True,
    )
    scheduler.start()
    app.extensions[SCHEDULER_EXT_KEY] = scheduler

    logger.info("APScheduler started with cron '%s'", cron_expr)
    return scheduler


def shutdown_scheduler(app: Flask) -> None:
    scheduler = app.extensions.get(SCHEDULER_EXT_KEY)
    if scheduler and getattr(scheduler, "running", False):
        scheduler.shutdown(wait=False)
