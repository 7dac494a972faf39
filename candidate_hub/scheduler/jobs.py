"""APScheduler helpers for repeating client-side jobs.

Used by the sync client for its periodic pull and for the random candidate
generation timer.  Adding a job whose id is already scheduled is a no-op and
removing a job that was never added is safe.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


def create_scheduler() -> BackgroundScheduler:
    """Return a daemon background scheduler."""
    return BackgroundScheduler(daemon=True)


def schedule_interval(
    scheduler: BackgroundScheduler,
    func: Callable[[], Any],
    seconds: float,
    job_id: str,
    *,
    run_now: bool = False,
) -> bool:
    """Add *func* as an interval job.

    Returns False without touching the scheduler when *job_id* already
    exists.  ``run_now`` fires the first run immediately instead of after
    one interval.
    """
    if scheduler.get_job(job_id) is not None:
        return False

    options: dict[str, Any] = {}
    if run_now:
        options["next_run_time"] = datetime.now(timezone.utc)

    scheduler.add_job(
        func,
        IntervalTrigger(seconds=seconds),
        id=job_id,
        max_instances=1,
        coalesce=True,
        **options,
    )
    logger.info("job_scheduled", extra={"job_id": job_id, "interval_seconds": seconds})
    return True


def cancel_job(scheduler: BackgroundScheduler, job_id: str) -> bool:
    """Remove *job_id*; returns False if it was not scheduled."""
    try:
        scheduler.remove_job(job_id)
    except JobLookupError:
        return False
    logger.info("job_cancelled", extra={"job_id": job_id})
    return True


def ensure_started(scheduler: BackgroundScheduler) -> None:
    if not scheduler.running:
        scheduler.start()


def shutdown_scheduler(scheduler: BackgroundScheduler) -> None:
    """Shutdown the scheduler if it is running."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")
