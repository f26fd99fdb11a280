"""
ColdApply service entry point.

Usage:
    coldapply                   # verify setup, startup cycle, then stay resident on the schedule
    coldapply --once            # verify setup, startup cycle, exit
    coldapply --skip-startup    # verify setup, schedule only
    coldapply --stats           # print history / queue counts and exit

Required environment (or .env): GROQ_API_KEY, SMTP_HOST, SMTP_USER, SMTP_PASS.
Exits with code 1 if configuration is missing, the resume file is absent or
the SMTP login fails.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from coldapply.agents.job_finder import find_jobs
from coldapply.config import Settings, get_settings
from coldapply.pipeline import CycleMode, CycleRunner
from coldapply.scheduler import start_scheduler
from coldapply.services.mailer import SmtpMailer
from coldapply.services.queue_processor import QueueProcessor
from coldapply.services.resume_reader import read_resume
from coldapply.services.storage import JobStore
from coldapply.utils.logger import setup_logger

logger = logging.getLogger("coldapply.cli")


class SetupError(Exception):
    """Startup configuration is unusable; the process must not start."""


def load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]).upper() for err in e.errors()]
        raise SetupError(f"Missing or invalid configuration: {', '.join(missing)}") from e


def verify_setup(settings: Settings, store: JobStore, mailer: SmtpMailer) -> None:
    """
    Check everything the service needs before any cycle runs.

    Raises:
        SetupError: On a missing resume file or a failed SMTP login.
    """
    logger.info("Verifying setup...")

    if not settings.resume_file.exists():
        raise SetupError(f"Resume file not found at: {settings.resume_file}")
    logger.info("Resume file found: %s", settings.resume_file)

    try:
        mailer.verify()
    except Exception as e:
        raise SetupError(f"SMTP connection failed: {e}") from e
    logger.info("SMTP connection verified (%s:%d)", settings.smtp_host, settings.smtp_port)

    if store.init():
        logger.info("Data store created in %s", store.data_dir)
    stats = store.stats()
    logger.info("Jobs database: %d jobs tracked, %d pending in queue", stats.total, store.queue_size())
    logger.info("All checks passed")


def build_runner(settings: Settings, store: JobStore, mailer: SmtpMailer) -> CycleRunner:
    processor = QueueProcessor(
        store,
        mailer.send,
        interval_seconds=settings.email_interval_seconds,
        max_per_run=settings.max_emails_per_run,
        max_attempts=settings.max_send_attempts,
    )
    return CycleRunner(
        store,
        processor,
        discover=find_jobs,
        read_profile=lambda: read_resume(settings.resume_file),
    )


async def serve(settings: Settings, runner: CycleRunner, run_startup: bool, once: bool) -> None:
    if run_startup:
        logger.info("Running initial startup sequence")
        await runner.run_cycle(CycleMode.STARTUP)
    if once:
        return

    scheduler = start_scheduler(runner, settings.schedule_cron, settings.schedule_timezone)
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


def print_stats(store: JobStore) -> None:
    stats = store.stats()
    print(f"All time:  total {stats.total} | sent {stats.sent} | "
          f"failed {stats.failed} | abandoned {stats.abandoned}")
    queue = store.load_queue()
    print(f"Queue:     {len(queue)} jobs pending")
    for i, listing in enumerate(queue, 1):
        retry = f"  [failed {listing.attempts}x]" if listing.attempts else ""
        print(f"  {i:>3}. [score {listing.score}] {listing.role} at {listing.company}{retry}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Discover jobs and send rate-limited cold outreach emails.",
    )
    parser.add_argument("--once", action="store_true",
                        help="Run the startup cycle and exit instead of staying resident")
    parser.add_argument("--skip-startup", action="store_true",
                        help="Do not run the startup cycle; only wait for scheduled runs")
    parser.add_argument("--stats", action="store_true",
                        help="Print history and queue counts, then exit")
    args = parser.parse_args(argv)

    setup_logger()
    try:
        settings = load_settings()
    except SetupError as e:
        logger.error(str(e))
        sys.exit(1)

    setup_logger(settings.log_level, settings.log_file)
    store = JobStore(settings.data_dir)

    if args.stats:
        print_stats(store)
        return

    mailer = SmtpMailer(settings)
    try:
        verify_setup(settings, store, mailer)
    except SetupError as e:
        logger.error(str(e))
        sys.exit(1)

    runner = build_runner(settings, store, mailer)
    try:
        asyncio.run(serve(settings, runner, run_startup=not args.skip_startup, once=args.once))
    except KeyboardInterrupt:
        logger.info("Stopped.")


if __name__ == "__main__":
    main()
