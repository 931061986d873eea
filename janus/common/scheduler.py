"""
Fixed-Cadence Tick Loop

Provides ScheduledLoop, which fires an async callback every `interval`
seconds on the monotonic clock.

Ticks never overlap: the callback is awaited before the next tick is
considered, and ticks that came due while it was running are skipped
rather than queued. A long-running callback therefore delays the loop
instead of starting a second execution.

Usage:
    async def tick():
        ...

    loop = ScheduledLoop(3.0, tick, name="dispatcher")
    await loop.run()          # on the current task
    # or
    await loop.start()        # in a background task
    loop.stop()
"""

import asyncio
import time
from typing import Callable, Awaitable

from .logging_setup import get_service_logger

logger = get_service_logger("scheduler")


class ScheduledLoop:
    """
    Interval scheduler that never runs its callback concurrently.

    Attributes:
        interval: The interval in seconds between executions
        callback: Async function to call each interval
    """

    def __init__(
        self,
        interval_seconds: float,
        callback: Callable[[], Awaitable[None]],
        name: str = "unnamed",
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.interval = interval_seconds
        self.callback = callback
        self.name = name

        self._next_run: float = 0
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the loop in a background task."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self.run())

    def stop(self) -> None:
        """Stop the loop; an in-flight callback is cancelled."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None

    async def run(self) -> None:
        """Tick until stop() is called or the task is cancelled."""
        self._running = True
        self._next_run = time.monotonic() + self.interval

        try:
            while self._running:
                sleep_duration = self._next_run - time.monotonic()
                if sleep_duration > 0:
                    await asyncio.sleep(sleep_duration)

                if not self._running:
                    break

                try:
                    await self.callback()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(f"Scheduled callback '{self.name}' error: {e}")

                # Skip missed intervals (don't queue up missed executions)
                now = time.monotonic()
                skipped = 0
                while self._next_run <= now:
                    self._next_run += self.interval
                    skipped += 1

                # First skip is expected (the one we just executed)
                if skipped > 1:
                    logger.debug(f"Scheduler '{self.name}' skipped {skipped - 1} intervals")
        finally:
            self._running = False

