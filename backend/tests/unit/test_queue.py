"""Unit tests for GenerationQueue scheduling, retries and timeouts.

Total: 14 tests
"""

from __future__ import annotations

import asyncio
from collections import Counter, defaultdict
from types import SimpleNamespace

import pytest

from apiforge.core.generation.queue import GenerationQueue
from apiforge.exceptions import GenerationTimeout


def _project(name: str) -> SimpleNamespace:
    return SimpleNamespace(id=f"id-{name}", name=name)


class RecordingPipeline:
    """Pipeline stub that records attempts and concurrency.

    ``failures`` maps a project name to how many leading attempts fail;
    a negative count fails every attempt.
    """

    def __init__(self, *, delay: float = 0.0, failures: dict[str, int] | None = None) -> None:
        self.delay = delay
        self.failures = failures or {}
        self.started: list[str] = []
        self.attempts: Counter[str] = Counter()
        self.running = 0
        self.max_running = 0
        self.running_by_id: dict[str, int] = defaultdict(int)
        self.max_running_by_id: dict[str, int] = defaultdict(int)
        self.cancelled: list[str] = []
        self.compensated: list[tuple[str, BaseException]] = []

    async def generate(self, project) -> None:
        self.started.append(project.name)
        self.attempts[project.name] += 1
        self.running += 1
        self.running_by_id[project.id] += 1
        self.max_running = max(self.max_running, self.running)
        self.max_running_by_id[project.id] = max(
            self.max_running_by_id[project.id], self.running_by_id[project.id]
        )
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled.append(project.name)
            raise
        finally:
            self.running -= 1
            self.running_by_id[project.id] -= 1

        budget = self.failures.get(project.name, 0)
        if budget < 0 or self.attempts[project.name] <= budget:
            raise RuntimeError(f"attempt {self.attempts[project.name]} of {project.name} failed")

    async def compensate(self, project, error: BaseException) -> None:
        self.compensated.append((project.name, error))


def _queue(pipeline: RecordingPipeline, **overrides) -> GenerationQueue:
    options = {
        "concurrency": 2,
        "max_retries": 3,
        "attempt_timeout": 5,
        "drain_interval": 0.01,
        "retry_delay": 0,
    }
    options.update(overrides)
    return GenerationQueue(pipeline, **options)


async def _settle(queue: GenerationQueue) -> None:
    await asyncio.wait_for(queue.wait_idle(), timeout=5)


# ── Ordering ──────────────────────────────────────────────────────────────────


async def test_higher_priority_enqueued_later_runs_first():
    pipeline = RecordingPipeline()
    queue = _queue(pipeline, concurrency=1)

    queue.enqueue(_project("p1"), priority=1)
    queue.enqueue(_project("p2"), priority=5)
    await _settle(queue)

    assert pipeline.started == ["p2", "p1"]


async def test_details_list_items_by_priority_then_arrival():
    queue = _queue(RecordingPipeline(delay=1), concurrency=1)

    for name, priority in (("a", 1), ("b", 3), ("c", 1), ("d", 3)):
        queue.enqueue(_project(name), priority=priority)
    details = queue.get_queue_details()
    await queue.shutdown()

    assert [item["project_name"] for item in details["items"]] == ["b", "d", "a", "c"]
    assert details["queue_length"] == 4


# ── Concurrency ───────────────────────────────────────────────────────────────


async def test_in_flight_never_exceeds_concurrency():
    pipeline = RecordingPipeline(delay=0.02)
    queue = _queue(pipeline, concurrency=2)

    for index in range(10):
        queue.enqueue(_project(f"p{index}"))
    await _settle(queue)

    assert sorted(pipeline.started) == sorted(f"p{index}" for index in range(10))
    assert pipeline.max_running == 2


async def test_same_project_never_runs_twice_concurrently():
    pipeline = RecordingPipeline(delay=0.05)
    queue = _queue(pipeline, concurrency=2)
    project = _project("dup")

    queue.enqueue(project)
    queue.enqueue(project)
    await _settle(queue)

    assert pipeline.attempts["dup"] == 2
    assert pipeline.max_running_by_id[project.id] == 1


async def test_status_reports_in_flight_projects():
    queue = _queue(RecordingPipeline(delay=1), concurrency=1)

    queue.enqueue(_project("running"))
    queue.enqueue(_project("waiting"))
    await asyncio.sleep(0.05)
    status = queue.get_queue_status()
    await queue.shutdown()

    assert status["is_processing"] is True
    assert status["in_flight"] == ["id-running"]
    assert status["queue_length"] == 1
    assert queue.is_in_flight("id-running") is False


# ── Retries ───────────────────────────────────────────────────────────────────


async def test_failing_project_gets_max_retries_plus_one_attempts():
    pipeline = RecordingPipeline(failures={"broken": -1})
    queue = _queue(pipeline, max_retries=3)

    queue.enqueue(_project("broken"))
    await _settle(queue)

    assert pipeline.attempts["broken"] == 4
    assert queue.get_queue_status()["queue_length"] == 0


async def test_retry_eventually_succeeds():
    pipeline = RecordingPipeline(failures={"flaky": 2})
    queue = _queue(pipeline, max_retries=3)

    queue.enqueue(_project("flaky"))
    await _settle(queue)

    assert pipeline.attempts["flaky"] == 3


async def test_retry_goes_to_the_back_of_the_queue():
    pipeline = RecordingPipeline(failures={"flaky": 1})
    queue = _queue(pipeline, concurrency=1)

    queue.enqueue(_project("flaky"), priority=5)
    queue.enqueue(_project("steady"), priority=1)
    await _settle(queue)

    assert pipeline.started == ["flaky", "steady", "flaky"]


async def test_retry_delay_postpones_requeue():
    pipeline = RecordingPipeline(failures={"flaky": 1})
    queue = _queue(pipeline, retry_delay=0.1)

    queue.enqueue(_project("flaky"))
    await asyncio.sleep(0.03)
    assert pipeline.attempts["flaky"] == 1
    assert queue.get_queue_status()["queue_length"] == 0

    await _settle(queue)
    assert pipeline.attempts["flaky"] == 2


# ── Timeouts ──────────────────────────────────────────────────────────────────


async def test_timeout_cancels_attempt_and_compensates():
    pipeline = RecordingPipeline(delay=10)
    queue = _queue(pipeline, attempt_timeout=0.05, max_retries=0)

    queue.enqueue(_project("slow"))
    await _settle(queue)

    assert pipeline.cancelled == ["slow"]
    assert len(pipeline.compensated) == 1
    name, error = pipeline.compensated[0]
    assert name == "slow"
    assert isinstance(error, GenerationTimeout)
    assert pipeline.running == 0


# ── Maintenance ───────────────────────────────────────────────────────────────


async def test_clear_queue_drops_pending_but_not_in_flight():
    pipeline = RecordingPipeline(delay=0.05)
    queue = _queue(pipeline, concurrency=1)

    for name in ("first", "second", "third"):
        queue.enqueue(_project(name))
    await asyncio.sleep(0.01)
    dropped = queue.clear_queue()
    await _settle(queue)

    assert dropped == 2
    assert pipeline.started == ["first"]


async def test_shutdown_cancels_running_attempts():
    pipeline = RecordingPipeline(delay=10)
    queue = _queue(pipeline)

    queue.enqueue(_project("long"))
    await asyncio.sleep(0.01)
    await queue.shutdown()

    assert pipeline.cancelled == ["long"]
    assert queue.get_queue_status()["in_flight"] == []
    await _settle(queue)


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        GenerationQueue(RecordingPipeline(), concurrency=0)


async def test_is_queued_covers_pending_items_and_delayed_retries():
    pipeline = RecordingPipeline(delay=0.05, failures={"flaky": 1})
    queue = _queue(pipeline, concurrency=1, retry_delay=0.2)
    flaky, later = _project("flaky"), _project("later")

    queue.enqueue(flaky, priority=5)
    queue.enqueue(later)
    await asyncio.sleep(0.02)
    assert queue.is_in_flight(flaky.id)
    assert not queue.is_queued(flaky.id)
    assert queue.is_queued(later.id)

    # flaky fails at ~0.05s and waits for its retry timer while later runs.
    await asyncio.sleep(0.07)
    assert queue.is_queued(flaky.id)
    assert queue.get_queue_status()["queue_length"] == 0

    await _settle(queue)
    assert not queue.is_queued(flaky.id)
    assert not queue.is_queued(later.id)
