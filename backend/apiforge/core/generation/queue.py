"""Bounded-concurrency generation queue with priorities, retries and timeouts.

All state lives on the :class:`GenerationQueue` instance and is touched only
from the event loop thread, so no locking is needed. Scheduling works in
*drain passes*: a pass starts attempts until the queue is empty or the
concurrency bound is reached, and never awaits an attempt itself.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from apiforge.exceptions import GenerationTimeout

logger = logging.getLogger(__name__)


class Pipeline(Protocol):
    async def generate(self, project: Any) -> None: ...

    async def compensate(self, project: Any, error: BaseException) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class QueueItem:
    project: Any
    priority: int = 1
    enqueued_at: datetime = field(default_factory=_utcnow)
    retries: int = 0

    @property
    def project_id(self) -> str:
        return str(self.project.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "project_name": self.project.name,
            "priority": self.priority,
            "retries": self.retries,
            "enqueued_at": self.enqueued_at,
        }


class GenerationQueue:
    def __init__(
        self,
        pipeline: Pipeline,
        *,
        concurrency: int = 2,
        max_retries: int = 3,
        attempt_timeout: float = 5 * 60,
        drain_interval: float = 1.0,
        retry_delay: float = 0.0,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.pipeline = pipeline
        self.concurrency = concurrency
        self.max_retries = max_retries
        self.attempt_timeout = attempt_timeout
        self.drain_interval = drain_interval
        self.retry_delay = retry_delay

        self._items: list[QueueItem] = []
        self._in_flight: dict[str, asyncio.Task[None]] = {}
        self._closed = False
        self._draining = False
        self._drain_handle: asyncio.Handle | None = None
        self._retry_handles: dict[asyncio.TimerHandle, QueueItem] = {}
        self._idle = asyncio.Event()
        self._idle.set()

    # ── Public API ────────────────────────────────────────────────────────────

    def enqueue(self, project: Any, priority: int = 1) -> QueueItem:
        """Queue ``project`` for generation; higher priority runs first."""
        if self._closed:
            raise RuntimeError("generation queue is shut down")
        item = QueueItem(project=project, priority=priority)
        self._insert_by_priority(item)
        logger.info("queue: project %s added with priority %d", project.name, priority)
        self._schedule_drain()
        return item

    def get_queue_status(self) -> dict[str, Any]:
        return {
            "is_processing": bool(self._in_flight) or self._draining,
            "queue_length": len(self._items),
            "in_flight": sorted(self._in_flight),
            "concurrency": self.concurrency,
            "max_retries": self.max_retries,
        }

    def get_queue_details(self) -> dict[str, Any]:
        return {
            **self.get_queue_status(),
            "items": [item.to_dict() for item in self._items],
        }

    def clear_queue(self) -> int:
        """Drop every pending item; in-flight attempts are unaffected."""
        dropped = len(self._items)
        self._items.clear()
        for handle in self._retry_handles:
            handle.cancel()
        self._retry_handles.clear()
        self._update_idle()
        logger.info("queue: cleared %d pending item(s)", dropped)
        return dropped

    def is_in_flight(self, project_id: str) -> bool:
        return str(project_id) in self._in_flight

    def is_queued(self, project_id: str) -> bool:
        """True while ``project_id`` waits in the queue or for a delayed retry."""
        project_id = str(project_id)
        return any(item.project_id == project_id for item in self._items) or any(
            item.project_id == project_id for item in self._retry_handles.values()
        )

    async def wait_idle(self) -> None:
        """Wait until nothing is queued, retrying or running."""
        await self._idle.wait()

    async def shutdown(self) -> None:
        """Stop scheduling, drop pending items and cancel running attempts."""
        self._closed = True
        self._items.clear()
        if self._drain_handle is not None:
            self._drain_handle.cancel()
            self._drain_handle = None
        for handle in self._retry_handles:
            handle.cancel()
        self._retry_handles.clear()
        tasks = list(self._in_flight.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()
        self._update_idle()

    # ── Scheduling ────────────────────────────────────────────────────────────

    def _insert_by_priority(self, item: QueueItem) -> None:
        for index, existing in enumerate(self._items):
            if existing.priority < item.priority:
                self._items.insert(index, item)
                break
        else:
            self._items.append(item)
        self._idle.clear()

    def _schedule_drain(self, delay: float = 0.0) -> None:
        if self._draining or self._closed:
            return
        if self._drain_handle is not None:
            if delay > 0:
                return
            # A finished attempt frees a slot: do not wait for the delayed pass.
            self._drain_handle.cancel()
        loop = asyncio.get_running_loop()
        if delay > 0:
            self._drain_handle = loop.call_later(delay, self._drain)
        else:
            self._drain_handle = loop.call_soon(self._drain)

    def _drain(self) -> None:
        self._drain_handle = None
        if self._draining:
            return
        self._draining = True
        try:
            while self._items and len(self._in_flight) < self.concurrency:
                item = self._items.pop(0)
                if item.project_id in self._in_flight:
                    self._items.insert(0, item)
                    logger.debug("queue: project %s already in flight", item.project.name)
                    break
                self._in_flight[item.project_id] = asyncio.create_task(
                    self._run_attempt(item),
                    name=f"generate:{item.project.name}",
                )
        finally:
            self._draining = False

        if self._items:
            self._schedule_drain(self.drain_interval)
        self._update_idle()

    # ── Attempts ──────────────────────────────────────────────────────────────

    async def _run_attempt(self, item: QueueItem) -> None:
        project = item.project
        logger.info(
            "queue: processing project %s (attempt %d/%d)",
            project.name,
            item.retries + 1,
            self.max_retries + 1,
        )
        try:
            try:
                await asyncio.wait_for(self.pipeline.generate(project), timeout=self.attempt_timeout)
            except asyncio.TimeoutError:
                error = GenerationTimeout(project.name, self.attempt_timeout)
                logger.error("queue: %s", error)
                await self.pipeline.compensate(project, error)
                self._handle_failure(item, error)
            except Exception as exc:
                logger.error("queue: error generating project %s: %s", project.name, exc)
                self._handle_failure(item, exc)
            else:
                logger.info("queue: project %s generated successfully", project.name)
        finally:
            self._in_flight.pop(item.project_id, None)
            if self._items:
                self._schedule_drain()
            self._update_idle()

    def _handle_failure(self, item: QueueItem, error: BaseException) -> None:
        if item.retries >= self.max_retries:
            logger.error(
                "queue: project %s failed after %d attempts: %s",
                item.project.name,
                item.retries + 1,
                error,
            )
            return
        if self._closed:
            return

        item.retries += 1
        logger.info(
            "queue: retrying project %s (attempt %d/%d)",
            item.project.name,
            item.retries + 1,
            self.max_retries + 1,
        )
        if self.retry_delay > 0:
            loop = asyncio.get_running_loop()
            handle: asyncio.TimerHandle | None = None

            def _requeue() -> None:
                self._retry_handles.pop(handle, None)  # type: ignore[arg-type]
                self._requeue(item)

            handle = loop.call_later(self.retry_delay, _requeue)
            self._retry_handles[handle] = item
        else:
            self._requeue(item)

    def _requeue(self, item: QueueItem) -> None:
        if self._closed:
            return
        item.enqueued_at = _utcnow()
        self._items.append(item)
        self._idle.clear()
        self._schedule_drain()

    def _update_idle(self) -> None:
        if not self._items and not self._in_flight and not self._retry_handles:
            self._idle.set()
        else:
            self._idle.clear()
