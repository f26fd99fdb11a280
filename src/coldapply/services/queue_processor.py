"""
Rate-limited dispatch of the pending queue.

Design:
  - Sends are strictly sequential, in queue order, with a fixed pause between
    consecutive items (success or failure alike). 12 per run at 5 minutes
    apart keeps the sender under 12 emails an hour.
  - History and queue are persisted after EACH item, so a crash mid-run
    leaves both documents consistent up to the last finished send.
  - A failed item stays in the queue (ahead of the ones not yet tried) and is
    retried on the next run. Its company is still marked contacted.
  - Optionally, an item that has failed ``max_attempts`` times is taken out of
    the queue and recorded as abandoned.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, Sequence

from coldapply.models.job import JobListing
from coldapply.services.storage import JobStore

logger = logging.getLogger(__name__)

MAX_EMAILS_PER_RUN = 12
EMAIL_INTERVAL_SECONDS = 5 * 60

SendMail = Callable[[Sequence[str], str, str], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]


class QueueProcessor:
    def __init__(
        self,
        store: JobStore,
        send_mail: SendMail,
        interval_seconds: float = EMAIL_INTERVAL_SECONDS,
        max_per_run: int = MAX_EMAILS_PER_RUN,
        max_attempts: Optional[int] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.store = store
        self.send_mail = send_mail
        self.interval_seconds = interval_seconds
        self.max_per_run = max_per_run
        self.max_attempts = max_attempts
        self.sleep = sleep

    async def process(self, bounded: bool = True) -> int:
        """
        Send queued listings and return how many were sent successfully.

        Bounded runs take the first ``max_per_run`` entries; unbounded runs
        take the whole queue. An empty queue returns 0 and writes nothing.
        """
        queue = self.store.load_queue()
        if not queue:
            logger.info("Queue is empty. No pending jobs to process.")
            return 0

        batch = queue[: self.max_per_run] if bounded else queue
        total_delay = (len(batch) - 1) * self.interval_seconds
        eta = datetime.now() + timedelta(seconds=total_delay)
        if bounded:
            logger.info(
                "Processing %d of %d queued jobs (max %d per run)",
                len(batch), len(queue), self.max_per_run,
            )
        else:
            logger.info("Clearing entire queue: processing all %d jobs", len(batch))
        logger.info("Estimated time: ~%d minutes, expected completion %s",
                    round(total_delay / 60), eta.strftime("%Y-%m-%d %H:%M"))

        sent = failed = 0
        # Entries that failed this run stay in the queue ahead of the current one
        retained = 0

        for i, listing in enumerate(batch, 1):
            logger.info(
                "[%d/%d] score %d | %s at %s (%s)",
                i, len(batch), listing.score, listing.role, listing.company,
                listing.work_type.value if listing.work_type else "unknown",
            )
            if listing.decision_maker_email:
                logger.info("  Decision maker: %s <%s>",
                            listing.decision_maker_name or "Unknown", listing.decision_maker_email)

            try:
                await self._send(listing)
            except Exception as e:
                failed += 1
                if self._fail(listing, retained, str(e)):
                    retained += 1
            else:
                self.store.record_sent(listing)
                self.store.remove_queue_at(retained)
                sent += 1
                logger.info("Removed from queue: %s", listing.company)

            if i < len(batch):
                logger.info("Waiting %ds before next email...", self.interval_seconds)
                await self.sleep(self.interval_seconds)

        logger.info("Queue processing stats: sent %d | failed %d", sent, failed)
        return sent

    async def _send(self, listing: JobListing) -> None:
        recipients = listing.recipients()
        if not recipients:
            raise ValueError("No valid recipients")
        body = listing.rendered_body()
        if not body.strip():
            raise ValueError("No email body generated")
        await self.send_mail(recipients, listing.rendered_subject(), body)

    def _fail(self, listing: JobListing, position: int, error: str) -> bool:
        """Record a failed send. Returns True if the entry stays queued."""
        listing = listing.model_copy(update={"attempts": listing.attempts + 1})
        logger.warning("Failed %s (attempt %d): %s", listing.company, listing.attempts, error)

        if self.max_attempts is not None and listing.attempts >= self.max_attempts:
            self.store.record_abandoned(listing, error)
            self.store.remove_queue_at(position)
            logger.warning("Gave up on %s after %d attempts", listing.company, listing.attempts)
            return False

        self.store.record_failed(listing, error)
        self.store.replace_queue_at(position, listing)
        logger.info("Kept in queue for retry: %s", listing.company)
        return True
