"""
Simple JSON file storage for the outreach history and the pending queue.

Two documents live in the data directory:

  jobs.json       {"jobs": [...], "sentEmails": [...], "sentCompanies": [...]}
  job_queue.json  [JobListing, ...]  (front of the list = next to send)

This is intentionally simple: no database, no locking. Every mutation loads
the whole document, changes it in memory and writes it back, so only one
process may use a data directory at a time. Files are human-readable and can
be inspected/edited directly.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from coldapply.models.history import HistoryDocument, JobStats
from coldapply.models.job import HistoryRecord, JobListing, SendStatus

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "jobs.json"
QUEUE_FILENAME = "job_queue.json"


class JobStore:
    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)
        self.history_path = self.data_dir / HISTORY_FILENAME
        self.queue_path = self.data_dir / QUEUE_FILENAME

    # ── Bootstrap ─────────────────────────────────────────────────────────────

    def init(self) -> bool:
        """
        Create the data directory and empty documents if they are missing.

        Returns True if anything was created.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        created = False
        if not self.history_path.exists():
            self.save_history(HistoryDocument())
            created = True
        if not self.queue_path.exists():
            self.save_queue([])
            created = True
        return created

    # ── History ───────────────────────────────────────────────────────────────

    def load_history(self) -> HistoryDocument:
        data = self._read(self.history_path)
        if not isinstance(data, dict):
            return HistoryDocument()

        # Dedup sets must survive a bad record, so validate records one by one
        history = HistoryDocument(
            sent_emails=_string_list(data.get("sentEmails")),
            sent_companies=_string_list(data.get("sentCompanies")),
        )
        jobs = data.get("jobs")
        for item in jobs if isinstance(jobs, list) else []:
            try:
                history.jobs.append(HistoryRecord.model_validate(item))
            except ValidationError as e:
                logger.warning("Dropping malformed history record %r: %s", item, e)
        return history

    def save_history(self, history: HistoryDocument) -> None:
        self._write(self.history_path, history.to_document())

    def record_sent(self, listing: JobListing) -> HistoryRecord:
        """Append a ``sent`` record and mark both emails and the company contacted."""
        history = self.load_history()
        record = HistoryRecord(
            **listing.model_dump(),
            status=SendStatus.SENT,
            sent_at=datetime.now(timezone.utc),
        )
        history.jobs.append(record)
        for email in listing.recipients():
            history.add_email(email)
        history.add_company(listing.company)
        self.save_history(history)
        logger.info("Saved to history: %s (%s)", listing.company, ", ".join(listing.recipients()))
        return record

    def record_failed(self, listing: JobListing, error: str) -> HistoryRecord:
        """
        Append a ``failed`` record.

        The company is marked contacted so discovery never proposes it again,
        but the emails are not, leaving them free for the queued retry.
        """
        return self._record_failure(listing, error, SendStatus.FAILED)

    def record_abandoned(self, listing: JobListing, error: str) -> HistoryRecord:
        return self._record_failure(listing, error, SendStatus.ABANDONED)

    def _record_failure(self, listing: JobListing, error: str, status: SendStatus) -> HistoryRecord:
        history = self.load_history()
        record = HistoryRecord(
            **listing.model_dump(),
            status=status,
            failed_at=datetime.now(timezone.utc),
            error_message=error,
        )
        history.jobs.append(record)
        history.add_company(listing.company)
        self.save_history(history)
        logger.info("Saved %s job: %s", status.value, listing.company)
        return record

    def stats(self) -> JobStats:
        return self.load_history().stats()

    # ── Queue ─────────────────────────────────────────────────────────────────

    def load_queue(self) -> list[JobListing]:
        data = self._read(self.queue_path)
        if not isinstance(data, list):
            return []
        queue: list[JobListing] = []
        for item in data:
            try:
                queue.append(JobListing.model_validate(item))
            except ValidationError as e:
                logger.warning("Dropping malformed queue entry %r: %s", item, e)
        return queue

    def save_queue(self, queue: Iterable[JobListing]) -> None:
        self._write(self.queue_path, [listing.to_document() for listing in queue])

    def append_to_queue(self, listings: Iterable[JobListing]) -> int:
        """Append listings to the back of the queue. Returns the new queue size."""
        listings = list(listings)
        queue = self.load_queue()
        queue.extend(listings)
        self.save_queue(queue)
        logger.info("Added %d jobs to queue (total in queue: %d)", len(listings), len(queue))
        return len(queue)

    def remove_queue_at(self, index: int) -> Optional[JobListing]:
        queue = self.load_queue()
        if not 0 <= index < len(queue):
            return None
        removed = queue.pop(index)
        self.save_queue(queue)
        return removed

    def remove_queue_front(self) -> Optional[JobListing]:
        return self.remove_queue_at(0)

    def replace_queue_at(self, index: int, listing: JobListing) -> bool:
        queue = self.load_queue()
        if not 0 <= index < len(queue):
            return False
        queue[index] = listing
        self.save_queue(queue)
        return True

    def queue_size(self) -> int:
        return len(self.load_queue())

    # ── File helpers ──────────────────────────────────────────────────────────

    def _read(self, path: Path):
        # Absent or corrupt documents read as empty; first run needs no setup
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read %s, treating as empty: %s", path, e)
            return None

    def _write(self, path: Path, data) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str) and v]
