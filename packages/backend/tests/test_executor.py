import asyncio
import logging

from primesite.executor.countdown import CountdownTimer
from primesite.executor.detached import DetachedTasks


def test_countdown_reports_ticks_and_returns_count() -> None:
    slept = []
    ticks = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    count = asyncio.run(CountdownTimer(3, interval=1.0, sleep=fake_sleep).run(ticks.append))

    assert count == 3
    assert ticks == [3, 2, 1, 0]
    assert slept == [1.0, 1.0, 1.0]


def test_zero_tick_countdown_finishes_immediately() -> None:
    assert asyncio.run(CountdownTimer(0).run()) == 0


def test_detached_failure_is_logged_not_raised(caplog) -> None:
    tasks = DetachedTasks()

    async def boom():
        raise RuntimeError("remote down")

    async def _run():
        tasks.spawn(boom(), name="mirror")
        await tasks.drain()

    with caplog.at_level(logging.ERROR, logger="primesite.executor.detached"):
        asyncio.run(_run())

    assert "Detached task mirror failed: remote down" in caplog.text
    assert tasks.pending == 0


def test_drain_waits_for_nested_spawns() -> None:
    tasks = DetachedTasks()
    finished = []

    async def child():
        await asyncio.sleep(0.01)
        finished.append("child")

    async def parent():
        await asyncio.sleep(0.01)
        tasks.spawn(child())
        finished.append("parent")

    async def _run():
        tasks.spawn(parent())
        assert tasks.pending == 1
        await tasks.drain()

    asyncio.run(_run())

    assert finished == ["parent", "child"]


def test_drain_timeout_returns_with_work_outstanding() -> None:
    tasks = DetachedTasks()

    async def _run():
        tasks.spawn(asyncio.Event().wait())
        await tasks.drain(timeout=0.01)
        return tasks.pending

    assert asyncio.run(_run()) == 1
