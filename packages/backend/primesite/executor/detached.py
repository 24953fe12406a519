"""Fire-and-forget tasks.

A detached task is started by a caller that never awaits it. The registry
keeps a strong reference until it finishes and logs any failure.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional

logger = logging.getLogger(__name__)


class DetachedTasks:
    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable, *, name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)

        def _done_callback(done_task: asyncio.Task) -> None:
            self._tasks.discard(done_task)
            if done_task.cancelled():
                return
            exc = done_task.exception()
            if exc:
                logger.error(
                    "Detached task %s failed: %s",
                    done_task.get_name(),
                    exc,
                    exc_info=exc,
                )

        task.add_done_callback(_done_callback)
        return task

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for every task spawned so far, including ones spawned while draining."""
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while True:
            current = [task for task in self._tasks if not task.done()]
            if not current:
                return
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                logger.warning("Detached tasks still running at drain timeout: %d", len(current))
                return
            await asyncio.wait(current, timeout=remaining)


_detached: Optional[DetachedTasks] = None


def get_detached_tasks() -> DetachedTasks:
    global _detached
    if _detached is None:
        _detached = DetachedTasks()
    return _detached


def reset_detached_tasks() -> None:
    global _detached
    _detached = None


__all__ = ["DetachedTasks", "get_detached_tasks", "reset_detached_tasks"]
