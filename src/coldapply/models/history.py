from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from coldapply.models.job import HistoryRecord, SendStatus


class HistoryDocument(BaseModel):
    """Everything ever attempted, plus the two append-only dedup sets."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    jobs: list[HistoryRecord] = []
    sent_emails: list[str] = []
    sent_companies: list[str] = []

    def add_email(self, email: str) -> None:
        email = email.strip().lower()
        if email and email not in self.sent_emails:
            self.sent_emails.append(email)

    def add_company(self, company: str) -> None:
        company = company.strip().lower()
        if company and company not in self.sent_companies:
            self.sent_companies.append(company)

    def stats(self) -> "JobStats":
        return JobStats(
            total=len(self.jobs),
            sent=sum(1 for j in self.jobs if j.status == SendStatus.SENT),
            failed=sum(1 for j in self.jobs if j.status == SendStatus.FAILED),
            abandoned=sum(1 for j in self.jobs if j.status == SendStatus.ABANDONED),
        )

    def to_document(self) -> dict:
        return {
            "jobs": [j.to_document() for j in self.jobs],
            "sentEmails": list(self.sent_emails),
            "sentCompanies": list(self.sent_companies),
        }


class JobStats(BaseModel):
    total: int = 0
    sent: int = 0
    failed: int = 0
    abandoned: int = 0
