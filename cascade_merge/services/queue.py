"""Bounded ingestion queue and its single consumer.

Webhook handlers only ever enqueue without blocking. One worker task drains
the queue and processes events strictly one after the other, which is what
keeps the per-repository working copies free of concurrent access.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from cascade_merge.config import DEFAULT_QUEUE_CAPACITY
from cascade_merge.models.webhook import MergeEvent
from cascade_merge.services.orchestrator import MergeOrchestrator

logger = logging.getLogger(__name__)


class IngestionQueue:
    def __init__(self, capacity: int = DEFAULT_QUEUE_CAPACITY):
        if capacity < 1:
            raise ValueError("queue capacity must be positive")
        self.capacity = capacity
        self._queue: asyncio.Queue[MergeEvent] = asyncio.Queue(maxsize=capacity)

    def __len__(self) -> int:
        return self._queue.qsize()

    def try_enqueue(self, event: MergeEvent) -> bool:
        """Queue an event; False when the queue is at capacity."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                f"Queue full ({self.capacity}), rejecting event for {event.repository_name}"
            )
            return False
        return True

    async def get(self) -> MergeEvent:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()


class MergeWorker:
    """The one consumer feeding queued events to the orchestrator."""

    def __init__(self, queue: IngestionQueue, orchestrator: MergeOrchestrator):
        self.queue = queue
        self.orchestrator = orchestrator
        self._task: asyncio.Task[None] | None = None

    async def run(self) -> None:
        while True:
            event = await self.queue.get()
            try:
                await self.orchestrator.handle(event)
            except Exception:
                logger.exception(f"Unexpected error processing event for {event.repository_name}")
            finally:
                self.queue.task_done()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="merge-worker")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
