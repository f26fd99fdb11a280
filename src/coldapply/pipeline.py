"""
Job application cycle: drain queue → discover → filter → rank → enqueue → drain.

Two entry points:

  startup    Runs once at boot. Clears whatever was left in the queue with no
             per-run cap, then discovers a fresh batch and sends all of it.
  scheduled  Runs on the cron trigger. Sends up to one bounded batch from the
             queue; only if that did not use the whole batch does it discover
             new jobs and send another bounded batch.

Collaborators (resume reader, discovery, mail transport) are injected so the
cycle can run against fakes.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, Iterable

from coldapply.models.job import JobListing
from coldapply.services.dedup import contacted_companies, filter_new_listings
from coldapply.services.queue_processor import QueueProcessor
from coldapply.services.ranking import extract_skills, rank_jobs
from coldapply.services.storage import JobStore

logger = logging.getLogger(__name__)

ReadProfile = Callable[[], str]
Discover = Callable[[str, list, list], Awaitable[list[JobListing]]]


class CycleMode(str, Enum):
    SCHEDULED = "scheduled"
    STARTUP = "startup"


class CycleRunner:
    def __init__(
        self,
        store: JobStore,
        processor: QueueProcessor,
        discover: Discover,
        read_profile: ReadProfile,
    ):
        self.store = store
        self.processor = processor
        self.discover = discover
        self.read_profile = read_profile

    async def run_cycle(self, mode: CycleMode = CycleMode.SCHEDULED) -> None:
        """Run one cycle. Never raises; failures are logged and the cycle is dropped."""
        logger.info("Starting %s job application cycle (max %d emails per run)",
                    mode.value, self.processor.max_per_run)
        try:
            if mode == CycleMode.STARTUP:
                await self.run_startup()
            else:
                await self.run_scheduled()
        except Exception:
            logger.exception("Fatal error in %s cycle", mode.value)
            return
        self._log_stats()

    async def run_scheduled(self) -> None:
        pending = self.store.queue_size()
        if pending:
            logger.info("Processing existing queue (%d jobs pending)", pending)
            sent = await self.processor.process(bounded=True)
            if sent >= self.processor.max_per_run:
                logger.info("Sent %d jobs from queue, max limit reached. "
                            "New jobs will be generated in a later cycle.", sent)
                return

        added = await self.enqueue_new_jobs()
        if not added:
            return

        logger.info("Processing newly added jobs")
        await self.processor.process(bounded=True)

    async def run_startup(self) -> None:
        pending = self.store.queue_size()
        if pending:
            logger.info("Clearing existing queue (%d jobs)", pending)
            await self.processor.process(bounded=False)
            remaining = self.store.queue_size()
            if remaining:
                logger.warning("%d jobs failed to send (will retry later)", remaining)
            else:
                logger.info("Queue completely cleared")
        else:
            logger.info("Queue is already empty")

        added = await self.enqueue_new_jobs()
        if not added:
            return

        logger.info("Processing all newly added jobs")
        await self.processor.process(bounded=False)
        remaining = self.store.queue_size()
        if remaining:
            logger.warning("%d jobs remain in queue (failed to send, will retry on next scheduled run)",
                           remaining)
        else:
            logger.info("All jobs processed successfully")

    async def enqueue_new_jobs(self) -> int:
        """
        Discover, drop already-contacted targets, rank and append to the queue.

        Returns the number of listings added. A resume that cannot be read
        propagates; an empty discovery result is not an error.
        """
        logger.info("Generating new job listings")
        resume_text = self.read_profile()
        skills = extract_skills(resume_text)
        logger.info("Extracted skills: %s", ", ".join(skills))

        listings = await self.discover(resume_text, skills, contacted_companies(self.store))
        if not listings:
            logger.warning("No new jobs found. Skipping this cycle.")
            return 0

        fresh = filter_new_listings(self.store, listings)
        if not fresh:
            logger.warning("All jobs already contacted. Skipping this cycle.")
            return 0

        ranked = rank_jobs(fresh, skills)
        _log_rankings(ranked)
        self.store.append_to_queue(ranked)
        return len(ranked)

    def _log_stats(self) -> None:
        stats = self.store.stats()
        logger.info("All time: total %d | sent %d | failed %d | abandoned %d",
                    stats.total, stats.sent, stats.failed, stats.abandoned)
        logger.info("Queue: %d jobs pending", self.store.queue_size())


def _log_rankings(listings: Iterable[JobListing]) -> None:
    logger.info("Job rankings:")
    for i, listing in enumerate(listings, 1):
        logger.info(
            "  %d. [score %d] %s at %s (%s)%s",
            i, listing.score, listing.role, listing.company,
            listing.work_type.value if listing.work_type else "unknown",
            "  +decision maker" if listing.decision_maker_email else "",
        )
