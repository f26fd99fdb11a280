"""
Already-contacted lookups over the history dedup sets.

Matching is exact after lower-casing; nothing else is normalised.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from coldapply.models.history import HistoryDocument
from coldapply.models.job import JobListing
from coldapply.services.storage import JobStore

logger = logging.getLogger(__name__)


def is_email_contacted(store: JobStore, email: str) -> bool:
    return _email_in(store.load_history(), email)


def is_company_contacted(store: JobStore, company: str) -> bool:
    return _company_in(store.load_history(), company)


def contacted_companies(store: JobStore) -> list[str]:
    return list(store.load_history().sent_companies)


def filter_new_listings(store: JobStore, listings: Iterable[JobListing]) -> list[JobListing]:
    """
    Drop listings whose HR email or company has already been contacted.

    The history is read once for the whole batch. Listings are not checked
    against each other, only against what has been attempted before.
    """
    history = store.load_history()
    fresh: list[JobListing] = []
    for listing in listings:
        if listing.hr_email and _email_in(history, listing.hr_email):
            logger.info("Email already sent: %s", listing.hr_email)
            continue
        if _company_in(history, listing.company):
            logger.info("Company already contacted: %s", listing.company)
            continue
        fresh.append(listing)
    return fresh


def _email_in(history: HistoryDocument, email: Optional[str]) -> bool:
    return bool(email) and email.lower() in history.sent_emails


def _company_in(history: HistoryDocument, company: Optional[str]) -> bool:
    return bool(company) and company.lower() in history.sent_companies
