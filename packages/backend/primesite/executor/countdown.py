from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

TickCallback = Callable[[int], None]
Sleep = Callable[[float], Awaitable[None]]


class CountdownTimer:
    """Purely cosmetic countdown: ``ticks`` steps of ``interval`` seconds.

    ``run`` returns the number of ticks completed and nothing else.
    """

    def __init__(self, ticks: int, interval: float = 1.0, sleep: Optional[Sleep] = None) -> None:
        self.ticks = max(0, ticks)
        self.interval = interval
        self._sleep = sleep or asyncio.sleep

    async def run(self, on_tick: Optional[TickCallback] = None) -> int:
        completed = 0
        for remaining in range(self.ticks, 0, -1):
            if on_tick is not None:
                on_tick(remaining)
            await self._sleep(self.interval)
            completed += 1
        if on_tick is not None:
            on_tick(0)
        return completed


__all__ = ["CountdownTimer"]
