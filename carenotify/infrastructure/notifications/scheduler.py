"""One-shot in-process timers used to defer quiet-hours emails.

Scheduled callbacks live only as long as the event loop; nothing is persisted
and a failed attempt is never retried.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable

from carenotify.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


class DelayedEmailScheduler:
    """Run a coroutine callback once at a given time on the running loop."""

    def __init__(self, clock: Callable[[], datetime] = now_in_app_timezone) -> None:
        self._clock = clock
        self._handles: set[asyncio.TimerHandle] = set()
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._handles)

    def schedule(self, run_at: datetime, callback: Callable[[], Awaitable[Any]]) -> None:
        loop = asyncio.get_running_loop()
        delay = max(0.0, (run_at - self._clock()).total_seconds())

        def _fire() -> None:
            self._handles.discard(handle)
            task = loop.create_task(callback())
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        handle = loop.call_later(delay, _fire)
        self._handles.add(handle)
        logger.info("Email scheduled to run in %.0f seconds", delay)

    @property
    def running(self) -> int:
        return len(self._tasks)

    async def cancel_all(self) -> int:
        """Cancel pending timers and running callbacks, then wait for them to stop."""

        for handle in self._handles:
            handle.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        cancelled = len(self._handles) + len(tasks)
        self._handles.clear()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        if cancelled:
            logger.info("Cancelled %s deferred email(s) on shutdown", cancelled)
        return cancelled


__all__ = ["DelayedEmailScheduler"]
