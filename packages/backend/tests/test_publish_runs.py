import asyncio

from primesite.services.publish import PublishKind, PublishOutcome
from primesite.services.publish_runs import PublishRunRegistry


def test_registry_tracks_and_expires_runs(detached) -> None:
    now = [100.0]
    registry = PublishRunRegistry(ttl_seconds=60, detached=detached, clock=lambda: now[0])

    async def work(run):
        run.finish(PublishOutcome(url="https://tony.vercel.app"))
        run.finished_at = now[0]
        return run.outcome

    async def _run():
        run = registry.start(PublishKind.CLAIM, "site-1", work)
        await detached.drain()
        return run

    run = asyncio.run(_run())

    assert registry.get(run.id) is run
    assert run.snapshot()["deployedUrl"] == "https://tony.vercel.app"
    assert run.snapshot()["phase"] == "success"
    now[0] += 61
    assert registry.get(run.id) is None


def test_detach_unknown_run_returns_false(detached) -> None:
    registry = PublishRunRegistry(detached=detached)

    assert registry.detach("missing") is False


def test_unfinished_runs_never_expire(detached) -> None:
    now = [0.0]
    registry = PublishRunRegistry(ttl_seconds=1, detached=detached, clock=lambda: now[0])

    async def work(run):
        await asyncio.sleep(0)
        return PublishOutcome()

    async def _run():
        run = registry.start(PublishKind.REPUBLISH, "site-1", work)
        now[0] = 1000.0
        assert registry.get(run.id) is run
        assert registry.detach(run.id) is True
        await detached.drain()
        return run

    run = asyncio.run(_run())

    assert run.is_alive is False
