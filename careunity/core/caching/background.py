"""Tracking for fire-and-forget cache refreshes."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Holds references to background tasks until they finish.

    Failures are logged when a task completes; they never reach the request
    that scheduled the work. drain() waits for everything outstanding, which
    is what tests and shutdown paths use.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task[Any]:
        """Schedule a coroutine on the running loop and track it."""
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self.track(task)
        return task

    def track(self, task: asyncio.Task[Any]) -> None:
        """Track an already running task."""
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Background refresh %s failed: %s", task.get_name(), exc)

    async def drain(self) -> None:
        """Wait until every tracked task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def __len__(self) -> int:
        return len(self._tasks)
