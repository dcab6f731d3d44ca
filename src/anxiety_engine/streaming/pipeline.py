"""Async streaming pipeline that serializes physiology samples into sessions."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable

import structlog
from pydantic import BaseModel, ConfigDict

from anxiety_engine.scoring.models import PhysioSample

logger = structlog.get_logger(__name__)


class PhysioEvent(BaseModel):
    """A physiology sample addressed to one user's session."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    sample: PhysioSample


Consumer = Callable[[PhysioEvent], Awaitable[None]]


class StreamPipeline:
    """In-process async pipeline that buffers physiology samples and hands
    them, one at a time and in arrival order, to registered consumers.

    A single consumer loop keeps session updates serialized, so baseline
    updates for a user are applied in the order samples were published.
    """

    def __init__(self, maxsize: int = 10_000) -> None:
        self._queue: asyncio.Queue[PhysioEvent] = asyncio.Queue(maxsize=maxsize)
        self._consumers: list[Consumer] = []
        self._running = False
        self._processed_total = 0

    # ── Configuration ─────────────────────────────────────────

    def add_consumer(self, fn: Consumer) -> None:
        """Register an async callback that receives every event."""
        self._consumers.append(fn)

    # ── Producer side ─────────────────────────────────────────

    async def publish(self, event: PhysioEvent) -> None:
        """Enqueue an event for downstream processing."""
        await self._queue.put(event)

    async def publish_batch(self, events: list[PhysioEvent]) -> None:
        for e in events:
            await self._queue.put(e)

    # ── Consumer loop ─────────────────────────────────────────

    async def start(self) -> None:
        """Start the consumer loop (run as a background task)."""
        self._running = True
        logger.info("stream_pipeline.started", consumers=len(self._consumers))

        last_stats_time = time.monotonic()

        while self._running:
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            for consumer in self._consumers:
                try:
                    await consumer(event)
                except Exception as exc:
                    logger.error(
                        "stream_pipeline.consumer_error",
                        consumer=consumer.__qualname__,
                        user_id=event.user_id,
                        error=str(exc),
                    )

            self._processed_total += 1
            self._queue.task_done()

            # Periodic stats every 60 seconds
            now = time.monotonic()
            if now - last_stats_time >= 60:
                logger.info(
                    "stream_pipeline.stats",
                    processed_total=self._processed_total,
                    queue_pending=self._queue.qsize(),
                )
                last_stats_time = now

    async def stop(self) -> None:
        """Gracefully stop the consumer loop."""
        self._running = False
        logger.info("stream_pipeline.stopped", processed_total=self._processed_total)

    async def drain(self) -> None:
        """Wait until every published event has been processed."""
        await self._queue.join()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def processed_total(self) -> int:
        return self._processed_total
