"""
Job listing and history record models.

On disk every document uses the camelCase keys the LLM is asked to return
(``hrEmail``, ``decisionMakerEmail``, ...). Attributes stay snake_case; both
spellings are accepted on input.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class WorkType(str, Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"


class SendStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    ABANDONED = "abandoned"


class JobListing(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    company: str
    role: str = ""
    snippet: str = ""
    requirements: str = ""
    work_type: Optional[WorkType] = None
    company_type: str = ""
    is_famous: bool = False
    funding_stage: Optional[str] = None
    location: Optional[str] = None

    # Contacts
    hr_email: Optional[str] = None
    decision_maker_email: Optional[str] = None
    decision_maker_name: Optional[str] = None

    # Pre-generated outreach copy
    email_subject: str = ""
    email_body: str = ""

    # Attached before enqueue / updated by the queue processor
    score: int = 0
    attempts: int = 0

    @field_validator("company")
    @classmethod
    def _company_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("company must not be empty")
        return value

    @field_validator("work_type", mode="before")
    @classmethod
    def _lenient_work_type(cls, value):
        # Anything the LLM invents outside the enum scores as "unset"
        if isinstance(value, str):
            value = value.strip().lower()
            return value if value in {w.value for w in WorkType} else None
        return value

    @field_validator("role", "snippet", "requirements", "company_type", "email_subject", "email_body",
                     mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("is_famous", mode="before")
    @classmethod
    def _none_to_false(cls, value):
        return False if value is None else value

    @field_validator("hr_email", "decision_maker_email", mode="before")
    @classmethod
    def _blank_email_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def recipients(self) -> list[str]:
        """HR email first, then the decision maker's, skipping missing ones."""
        return [e for e in (self.hr_email, self.decision_maker_email) if e]

    def rendered_subject(self) -> str:
        return self.email_subject or f"Application for {self.role} at {self.company}"

    def rendered_body(self) -> str:
        """Email body with literal ``\\n`` escapes turned into real newlines."""
        return self.email_body.replace("\\n", "\n")

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class HistoryRecord(JobListing):
    status: SendStatus
    sent_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
