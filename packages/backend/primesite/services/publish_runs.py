from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Optional

from ..executor.detached import DetachedTasks, get_detached_tasks
from .publish import PublishKind, PublishOutcome, PublishRun

logger = logging.getLogger(__name__)

RunFactory = Callable[[PublishRun], Awaitable[PublishOutcome]]


class PublishRunRegistry:
    """In-process index of publish runs started through the API."""

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        detached: Optional[DetachedTasks] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.detached = detached if detached is not None else get_detached_tasks()
        self._clock = clock
        self._runs: dict[str, PublishRun] = {}

    def start(self, kind: PublishKind, site_id: str, factory: RunFactory) -> PublishRun:
        self.expire()
        run = PublishRun(site_id=site_id, kind=kind)
        self._runs[run.id] = run
        self.detached.spawn(factory(run), name=f"publish-run:{run.id}")
        return run

    def get(self, run_id: str) -> Optional[PublishRun]:
        self.expire()
        return self._runs.get(run_id)

    def detach(self, run_id: str) -> bool:
        run = self._runs.get(run_id)
        if run is None:
            return False
        run.detach()
        return True

    def expire(self) -> int:
        now = self._clock()
        expired = [
            run_id
            for run_id, run in self._runs.items()
            if run.finished_at is not None and now - run.finished_at >= self.ttl_seconds
        ]
        for run_id in expired:
            del self._runs[run_id]
        if expired:
            logger.debug("Expired %d publish runs", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._runs)


__all__ = ["PublishRunRegistry", "RunFactory"]
