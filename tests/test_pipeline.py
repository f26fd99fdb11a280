import asyncio

import pytest

from coldapply.pipeline import CycleMode, CycleRunner
from coldapply.services.queue_processor import QueueProcessor

from conftest import FakeMailer, make_listing

RESUME = "Backend engineer: Node.js, Redis, Docker"


class FakeDiscovery:
    def __init__(self, listings=None, error=None):
        self.listings = listings or []
        self.error = error
        self.calls = []

    async def __call__(self, resume_text, skills, excluded):
        self.calls.append((resume_text, list(skills), list(excluded)))
        if self.error:
            raise self.error
        return list(self.listings)


def _runner(store, mailer, sleep, discovery, max_per_run=12, read_profile=lambda: RESUME):
    processor = QueueProcessor(store, mailer.send, sleep=sleep, max_per_run=max_per_run)
    return CycleRunner(store, processor, discover=discovery, read_profile=read_profile)


def test_scheduled_discovers_ranks_and_sends(store, mailer, sleep):
    discovery = FakeDiscovery([
        make_listing("Onsite Co", workType="onsite"),
        make_listing("Remote Co", workType="remote"),
    ])
    asyncio.run(_runner(store, mailer, sleep, discovery).run_cycle(CycleMode.SCHEDULED))

    resume_text, skills, excluded = discovery.calls[0]
    assert resume_text == RESUME
    assert skills == ["node.js", "docker", "redis"]
    assert excluded == []
    assert [call[0][0] for call in mailer.calls] == ["jobs@remoteco.com", "jobs@onsiteco.com"]
    assert store.queue_size() == 0
    assert store.stats().sent == 2


def test_contacted_company_is_filtered_before_enqueue(store, mailer, sleep):
    store.record_sent(make_listing("Acme"))
    discovery = FakeDiscovery([make_listing("ACME")])
    processor_calls = []

    runner = _runner(store, mailer, sleep, discovery)
    original = runner.processor.process

    async def tracking_process(bounded=True):
        processor_calls.append(bounded)
        return await original(bounded)

    runner.processor.process = tracking_process
    asyncio.run(runner.run_cycle(CycleMode.SCHEDULED))

    assert discovery.calls[0][2] == ["acme"]
    assert store.queue_size() == 0
    assert mailer.calls == []
    assert processor_calls == []


def test_scheduled_stops_when_queue_uses_whole_batch(store, mailer, sleep):
    store.append_to_queue([make_listing(f"Company {i}") for i in range(3)])
    discovery = FakeDiscovery([make_listing("New Co")])

    asyncio.run(_runner(store, mailer, sleep, discovery, max_per_run=2).run_cycle(CycleMode.SCHEDULED))

    assert discovery.calls == []
    assert len(mailer.calls) == 2
    assert [j.company for j in store.load_queue()] == ["Company 2"]


def test_scheduled_discovers_after_partial_drain(store, sleep):
    mailer = FakeMailer(fail_for=["company0"])
    store.append_to_queue([make_listing("Company 0"), make_listing("Company 1")])
    discovery = FakeDiscovery([make_listing("New Co")])

    asyncio.run(_runner(store, mailer, sleep, discovery, max_per_run=2).run_cycle(CycleMode.SCHEDULED))

    assert len(discovery.calls) == 1
    # Second bounded pass retries the failed entry first, then the new listing
    recipients = [call[0][0] for call in mailer.calls]
    assert recipients == ["jobs@company0.com", "jobs@company1.com", "jobs@company0.com", "jobs@newco.com"]
    assert [j.company for j in store.load_queue()] == ["Company 0"]


def test_startup_drains_backlog_then_new_jobs_unbounded(store, mailer, sleep):
    store.append_to_queue([make_listing(f"Old {i}") for i in range(3)])
    discovery = FakeDiscovery([make_listing(f"New {i}") for i in range(3)])

    asyncio.run(_runner(store, mailer, sleep, discovery, max_per_run=2).run_cycle(CycleMode.STARTUP))

    assert len(mailer.calls) == 6
    assert store.queue_size() == 0
    assert sleep.calls == [300, 300, 300, 300]


def test_empty_discovery_ends_cycle_quietly(store, mailer, sleep):
    asyncio.run(_runner(store, mailer, sleep, FakeDiscovery([])).run_cycle(CycleMode.SCHEDULED))
    assert mailer.calls == []
    assert store.queue_size() == 0


def test_discovery_exception_is_contained(store, mailer, sleep):
    discovery = FakeDiscovery(error=RuntimeError("rate limited"))
    asyncio.run(_runner(store, mailer, sleep, discovery).run_cycle(CycleMode.STARTUP))
    assert mailer.calls == []


def test_unreadable_resume_aborts_cycle_without_raising(store, mailer, sleep):
    def broken():
        raise FileNotFoundError("resume.pdf")

    discovery = FakeDiscovery([make_listing("Acme")])
    runner = _runner(store, mailer, sleep, discovery, read_profile=broken)
    asyncio.run(runner.run_cycle(CycleMode.SCHEDULED))

    assert discovery.calls == []
    assert store.queue_size() == 0


def test_unreadable_resume_propagates_from_enqueue(store, mailer, sleep):
    def broken():
        raise ValueError("no text")

    runner = _runner(store, mailer, sleep, FakeDiscovery([]), read_profile=broken)
    with pytest.raises(ValueError):
        asyncio.run(runner.enqueue_new_jobs())


def test_failed_company_never_rediscovered(store, sleep):
    discovery = FakeDiscovery([make_listing("Acme")])
    runner = _runner(store, FakeMailer(fail_for=["acme"]), sleep, discovery)
    asyncio.run(runner.run_cycle(CycleMode.SCHEDULED))
    asyncio.run(runner.run_cycle(CycleMode.SCHEDULED))

    # Only the original entry remains; the second discovery was filtered out
    assert [j.company for j in store.load_queue()] == ["Acme"]
    assert discovery.calls[1][2] == ["acme"]
