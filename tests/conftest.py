import pytest

from coldapply.models.job import JobListing
from coldapply.services.storage import JobStore


def make_listing(company: str, **overrides) -> JobListing:
    slug = company.lower().replace(" ", "")
    data = {
        "company": company,
        "role": "Backend Engineer",
        "snippet": "Build APIs",
        "requirements": "Node.js, Redis",
        "workType": "remote",
        "companyType": "foreign_startup",
        "hrEmail": f"jobs@{slug}.com",
        "emailSubject": f"Hello {company}",
        "emailBody": "Hi,\\n\\nI would love to help.\\n\\nBest,\\nA",
    }
    data.update(overrides)
    return JobListing.model_validate(data)


class FakeMailer:
    """Records sends; raises for any company listed in ``fail_for``."""

    def __init__(self, fail_for=()):
        self.fail_for = {c.lower() for c in fail_for}
        self.calls = []

    async def send(self, recipients, subject, body):
        self.calls.append((list(recipients), subject, body))
        if any(r.split("@")[1].split(".")[0] in self.fail_for for r in recipients):
            raise RuntimeError("550 mailbox unavailable")


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def store(tmp_path):
    return JobStore(tmp_path / "data")


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def sleep():
    return RecordingSleep()
