"""Cron trigger for the scheduled job application cycle."""
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from coldapply.pipeline import CycleMode, CycleRunner

logger = logging.getLogger(__name__)

JOB_ID = "job_application_cycle"


def build_scheduler(runner: CycleRunner, cron: str, timezone: str) -> AsyncIOScheduler:
    """
    Register the scheduled cycle on a cron expression.

    ``max_instances=1`` plus ``coalesce`` keeps a slow run from overlapping the
    next trigger, since the JSON documents are not safe for concurrent writers.
    """
    scheduler = AsyncIOScheduler(timezone=timezone)
    scheduler.add_job(
        runner.run_cycle,
        CronTrigger.from_crontab(cron, timezone=timezone),
        args=[CycleMode.SCHEDULED],
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=None,
    )
    return scheduler


def start_scheduler(runner: CycleRunner, cron: str, timezone: str) -> AsyncIOScheduler:
    """Start the scheduler on the running event loop."""
    scheduler = build_scheduler(runner, cron, timezone)
    scheduler.start()
    logger.info("Scheduler active: job application cycle runs at '%s' (%s)", cron, timezone)
    return scheduler
