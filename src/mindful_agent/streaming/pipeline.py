"""Async sample pipeline connecting the health source → agent."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable

import structlog

from mindful_agent.models import HeartRateSample

logger = structlog.get_logger(__name__)

SampleConsumer = Callable[[HeartRateSample], Awaitable[None]]


class StreamPipeline:
    """In-process queue that decouples sample producers from the agent.

    Samples arrive asynchronously from the health source; a single
    consumer loop hands them one at a time to each registered consumer,
    which keeps signal-state mutations on one logical timeline.
    """

    def __init__(self, maxsize: int = 1_000) -> None:
        self._queue: asyncio.Queue[HeartRateSample] = asyncio.Queue(maxsize=maxsize)
        self._consumers: list[SampleConsumer] = []
        self._running = False
        self._processed_total = 0

    # ── Configuration ─────────────────────────────────────────

    def add_consumer(self, fn: SampleConsumer) -> None:
        """Register an async callback that receives every sample."""
        self._consumers.append(fn)

    # ── Producer side ─────────────────────────────────────────

    async def publish(self, sample: HeartRateSample) -> None:
        await self._queue.put(sample)

    async def publish_batch(self, samples: list[HeartRateSample]) -> None:
        for s in samples:
            await self._queue.put(s)

    # ── Consumer loop ─────────────────────────────────────────

    async def start(self) -> None:
        """Start the consumer loop (run as a background task)."""
        self._running = True
        logger.info("stream_pipeline.started", consumers=len(self._consumers))
        last_stats_time = time.monotonic()

        while self._running:
            try:
                sample = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            for consumer in self._consumers:
                try:
                    await consumer(sample)
                except Exception as exc:
                    logger.error(
                        "stream_pipeline.consumer_error",
                        consumer=getattr(consumer, "__qualname__", repr(consumer)),
                        error=str(exc),
                    )

            self._processed_total += 1
            self._queue.task_done()

            now = time.monotonic()
            if now - last_stats_time >= 60:
                logger.info(
                    "stream_pipeline.stats",
                    processed_total=self._processed_total,
                    queue_pending=self._queue.qsize(),
                )
                last_stats_time = now

    async def drain(self) -> None:
        """Wait until every queued sample has been consumed."""
        await self._queue.join()

    async def stop(self) -> None:
        """Gracefully stop the consumer loop."""
        self._running = False
        logger.info("stream_pipeline.stopped", processed_total=self._processed_total)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def processed_total(self) -> int:
        return self._processed_total
