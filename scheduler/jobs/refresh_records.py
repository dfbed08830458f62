"""Scheduler job that keeps the record snapshot warm between requests."""

from __future__ import annotations

import logging

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.xmedia.service import RefreshController

REFRESH_JOB_ID = "xmedia_refresh"


def refresh_records_job(controller: RefreshController) -> int:
    """Force one refresh and return the number of records now served."""
    records = controller.get_records(force_refresh=True)
    logging.info("Scheduled refresh finished: outcome=%s items=%d", controller.last_outcome, len(records))
    return len(records)


def schedule_refresh(
    scheduler: BaseScheduler,
    controller: RefreshController,
    interval_seconds: int,
) -> bool:
    """Register the interval refresh job; a non-positive interval disables it."""
    if interval_seconds <= 0:
        logging.info("Scheduled refresh disabled")
        return False
    scheduler.add_job(
        refresh_records_job,
        trigger=IntervalTrigger(seconds=interval_seconds),
        args=(controller,),
        id=REFRESH_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=30,
    )
    logging.info("Scheduled refresh every %ds", interval_seconds)
    return True
