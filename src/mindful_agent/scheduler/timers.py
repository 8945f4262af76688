"""Fire-and-forget delayed callbacks on the running event loop."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class TaskScheduler:
    """Track delayed coroutines so they can be awaited or cancelled together.

    Used for the staggered haptic sub-pulses and the deferred post-trigger
    insight analysis.  Nothing here blocks the caller.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def schedule(
        self,
        delay: float,
        fn: Callable[[], Awaitable[object]],
        *,
        name: str = "deferred",
    ) -> asyncio.Task:
        """Run ``fn()`` after ``delay`` seconds; errors are logged, not raised."""

        async def _runner() -> None:
            if delay > 0:
                await asyncio.sleep(delay)
            try:
                await fn()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("timers.callback_error", name=name)

        task = asyncio.get_running_loop().create_task(_runner(), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def join(self) -> None:
        """Wait for every currently scheduled callback to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("timers.cancelled", count=len(tasks))
