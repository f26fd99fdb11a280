"""
LLM-powered job discovery and outreach copywriting.

Given the applicant's resume text, asks Groq for recently posted roles that
match the resume's stack and, for each, a ready-to-send cold email.

Design:
  - One LLM call per cycle; subject and body come back with each listing,
    so sending needs no further model calls.
  - Companies already contacted are listed in the prompt as exclusions. The
    dedup filter still runs afterwards, since the model does not always obey.
  - Discovery is best effort: any failure (API error, non-JSON answer) is
    logged and returns an empty list.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Iterable, Optional

from groq import AsyncGroq
from pydantic import ValidationError

from coldapply.config import get_settings
from coldapply.models.job import JobListing

logger = logging.getLogger(__name__)

RESUME_PROMPT_CHARS = 8_000

_SYSTEM_PROMPT = """\
You are a job search assistant for a software engineer. You find real, recently
posted job openings and write short, specific cold emails for each one.
Always respond with a valid JSON array only. No prose, no markdown, no code fences.
"""

_USER_TEMPLATE = """\
Find Backend, Systems, Platform or Infrastructure Engineer openings posted in the
last 24-48 hours that match the applicant's actual tech stack.

The job MUST match at least 2 of these skills:
{skills}

Do not return jobs whose main language is not in the applicant's stack.
{exclusions}
Priority order: fully remote first, then hybrid, then on-site.
Prefer well-known international and Indian startups, well-funded (Series A/B/C)
companies and companies with strong open-source engineering culture.

For each job return an object with these fields:
  company            Company name
  role               Exact job title
  snippet            1-2 line description
  requirements       Key technical requirements
  workType           One of "remote", "hybrid", "onsite"
  companyType        One of "foreign_startup", "indian_startup", "enterprise"
  isFamous           true if the company is well known
  fundingStage       e.g. "Series A", "Series B", "Public", or null
  location           Office location or "Remote"
  hrEmail            Hiring contact (jobs@, hiring@, careers@, talent@, hr@ ...)
  decisionMakerEmail CTO / VP Engineering / Engineering Manager email, or null
  decisionMakerName  Name and title of that person, or null
  emailSubject       Bold, direct subject line
  emailBody          Cold email under 150 words. Start with a generic "Hi," (never a
                     name), tie the applicant's experience to this role, end with a
                     clear call to action. Use \\n for line breaks.

Return at least 10 NEW jobs, each emailBody unique to its company and role.

--- APPLICANT RESUME ---
{resume_text}
"""

_EXCLUSION_TEMPLATE = """
STRICT EXCLUSION: these companies were already contacted. Do NOT return any job from them:
{companies}
"""


def build_prompt(resume_text: str, skills: Iterable[str], excluded_companies: Iterable[str]) -> str:
    skills = list(skills)
    excluded = list(excluded_companies)
    exclusions = _EXCLUSION_TEMPLATE.format(companies=", ".join(excluded)) if excluded else ""
    return _USER_TEMPLATE.format(
        skills=", ".join(skills) if skills else "(see resume)",
        exclusions=exclusions,
        resume_text=resume_text[:RESUME_PROMPT_CHARS],
    )


def parse_listings(raw: str) -> list[JobListing]:
    """
    Pull the JSON array out of a model response and validate each item.

    Items that fail validation (e.g. no company) are skipped.

    Raises:
        ValueError: If the response contains no parseable JSON array.
    """
    raw = re.sub(r"^```(?:json)?\s*", "", raw.strip())
    raw = re.sub(r"\s*```$", "", raw)

    match = re.search(r"\[[\s\S]*\]", raw)
    if not match:
        raise ValueError(f"No JSON array in response: {raw[:200]!r}")
    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"Model returned invalid JSON: {e}") from e

    listings: list[JobListing] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            listings.append(JobListing.model_validate(item))
        except ValidationError as e:
            logger.debug("Skipping invalid listing %r: %s", item, e)
    return listings


async def find_jobs(
    resume_text: str,
    skills: Iterable[str],
    excluded_companies: Iterable[str] = (),
    client: Optional[AsyncGroq] = None,
    model: Optional[str] = None,
) -> list[JobListing]:
    """
    Ask the LLM for new job listings with pre-written outreach emails.

    Returns an empty list on any failure.
    """
    skills = list(skills)
    try:
        if client is None or model is None:
            settings = get_settings()
            client = client or AsyncGroq(api_key=settings.groq_api_key)
            model = model or settings.groq_model

        logger.info("Searching for jobs matching skills: %s", ", ".join(skills))
        response = await client.chat.completions.create(
            model=model,
            max_tokens=8_000,
            temperature=0.7,
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(resume_text, skills, excluded_companies)},
            ],
        )
        raw = response.choices[0].message.content or ""
        logger.debug("Raw discovery response: %s", raw)
        listings = parse_listings(raw)
    except Exception as e:
        logger.error("Failed to find jobs: %s", e)
        return []

    logger.info("Discovery returned %d jobs", len(listings))
    return listings
