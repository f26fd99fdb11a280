"""
Resume skill extraction and job scoring.

The score only decides queue order (highest first); it never excludes a
listing. Points:

  work type       remote 100, hybrid 50, onsite 10
  company type    "foreign"/"international" +40, "startup" +30 (both may apply)
  famous          +25
  skills          +15 per resume skill found in role + snippet + requirements
  funding         "series b"/"series c" +20, otherwise "series a" +15
"""
from __future__ import annotations

import re
from typing import Iterable

from coldapply.models.job import JobListing, WorkType

_SKILL_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"Node\.?js", r"TypeScript", r"JavaScript", r"Python", r"Go(?:lang)?",
        r"Docker", r"Kubernetes", r"AWS", r"GCP", r"Azure", r"Cloudflare",
        r"PostgreSQL", r"MongoDB", r"Redis", r"MySQL", r"Kafka", r"RabbitMQ",
        r"GraphQL", r"REST", r"gRPC", r"WebSocket",
        r"React", r"Next\.?js", r"Vue", r"Svelte",
        r"CI/CD", r"Terraform", r"Linux", r"Nginx",
        r"Microservices", r"Distributed Systems", r"System Design",
    )
]

WORK_TYPE_POINTS = {
    WorkType.REMOTE: 100,
    WorkType.HYBRID: 50,
    WorkType.ONSITE: 10,
}
FOREIGN_POINTS = 40
STARTUP_POINTS = 30
FAMOUS_POINTS = 25
SKILL_POINTS = 15
LATE_FUNDING_POINTS = 20
SERIES_A_POINTS = 15


def extract_skills(resume_text: str) -> list[str]:
    """Return the lower-cased skills mentioned in the resume, in first-seen order."""
    skills: list[str] = []
    for pattern in _SKILL_PATTERNS:
        for match in pattern.findall(resume_text):
            skill = match.lower()
            if skill not in skills:
                skills.append(skill)
    return skills


def score_job(listing: JobListing, skills: Iterable[str]) -> int:
    score = WORK_TYPE_POINTS.get(listing.work_type, 0)

    company_type = listing.company_type.lower()
    if "foreign" in company_type or "international" in company_type:
        score += FOREIGN_POINTS
    if "startup" in company_type:
        score += STARTUP_POINTS
    if listing.is_famous:
        score += FAMOUS_POINTS

    # One scan of the joined text per skill, so each skill counts at most once
    description = f"{listing.role} {listing.snippet} {listing.requirements}".lower()
    score += SKILL_POINTS * sum(1 for skill in skills if skill.lower() in description)

    funding = (listing.funding_stage or "").lower()
    if "series b" in funding or "series c" in funding:
        score += LATE_FUNDING_POINTS
    elif "series a" in funding:
        score += SERIES_A_POINTS

    return score


def rank_jobs(listings: Iterable[JobListing], skills: Iterable[str]) -> list[JobListing]:
    """Attach a score to every listing and return them best first (stable)."""
    skills = list(skills)
    scored = [listing.model_copy(update={"score": score_job(listing, skills)}) for listing in listings]
    return sorted(scored, key=lambda listing: listing.score, reverse=True)
