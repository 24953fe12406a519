import asyncio

from primesite.auth import AuthContext
from primesite.services.dual_write import DualWriteCoordinator
from primesite.services.reconciliation import ReconciliationResolver

USER = AuthContext(user_id="user-1")


def _seed(fake_remote, local_store, remote_sites=(), local_sites=()):
    for site in remote_sites:
        fake_remote.records[site.id] = site

    async def _put():
        for site in local_sites:
            await local_store.put(site)

    asyncio.run(_put())


def test_newer_remote_copy_wins_and_refreshes_local(coordinator, fake_remote, local_store, detached, make_site) -> None:
    remote = make_site("x", last_saved=200, shop_name="Remote Name")
    local = make_site("x", last_saved=100, shop_name="Local Name")
    _seed(fake_remote, local_store, [remote], [local])

    async def _run():
        merged = await ReconciliationResolver(coordinator).load_all(USER)
        await detached.drain()
        return merged, await local_store.get("x")

    merged, refreshed = asyncio.run(_run())

    assert [(site.id, site.data.shop_name) for site in merged] == [("x", "Remote Name")]
    assert refreshed.last_saved == 200
    assert fake_remote.upserts == []


def test_newer_local_copy_replaces_remote_in_place(coordinator, fake_remote, local_store, detached, make_site) -> None:
    _seed(
        fake_remote,
        local_store,
        [make_site("a", last_saved=500), make_site("b", last_saved=100, shop_name="Stale")],
        [make_site("b", last_saved=900, shop_name="Fresh")],
    )

    async def _run():
        merged = await ReconciliationResolver(coordinator).load_all(USER)
        await detached.drain()
        return merged

    merged = asyncio.run(_run())

    assert [(site.id, site.data.shop_name) for site in merged] == [("a", "Tony's Barber Shop"), ("b", "Fresh")]
    assert [(user, site.id, site.last_saved) for user, site in fake_remote.upserts] == [("user-1", "b", 900)]


def test_local_only_sites_are_appended_and_synced(coordinator, fake_remote, local_store, detached, make_site) -> None:
    _seed(
        fake_remote,
        local_store,
        [make_site("r1", last_saved=300), make_site("r2", last_saved=200)],
        [make_site("l1", last_saved=50)],
    )

    async def _run():
        merged = await ReconciliationResolver(coordinator).load_all(USER)
        await detached.drain()
        return merged

    merged = asyncio.run(_run())

    assert [site.id for site in merged] == ["r1", "r2", "l1"]
    assert [site.id for _, site in fake_remote.upserts] == ["l1"]
    assert fake_remote.records["l1"].last_saved == 50


def test_remote_failure_degrades_to_local(coordinator, fake_remote, local_store, make_site) -> None:
    fake_remote.fail_list = True
    _seed(fake_remote, local_store, [], [make_site("l1", last_saved=10)])

    merged = asyncio.run(ReconciliationResolver(coordinator).load_all(USER))

    assert [site.id for site in merged] == ["l1"]


def test_local_failure_degrades_to_remote(failing_local, fake_remote, detached, make_site) -> None:
    fake_remote.records["r1"] = make_site("r1", last_saved=10)
    coordinator = DualWriteCoordinator(local=failing_local, remote=fake_remote, detached=detached)

    merged = asyncio.run(ReconciliationResolver(coordinator).load_all(USER))

    assert [site.id for site in merged] == ["r1"]


def test_both_stores_failing_yields_empty_list(failing_local, fake_remote, detached) -> None:
    fake_remote.fail_list = True
    coordinator = DualWriteCoordinator(local=failing_local, remote=fake_remote, detached=detached)

    assert asyncio.run(ReconciliationResolver(coordinator).load_all(USER)) == []


def test_anonymous_load_skips_remote(coordinator, fake_remote, local_store, detached, make_site) -> None:
    _seed(fake_remote, local_store, [make_site("r1", last_saved=10)], [make_site("l1", last_saved=5)])

    async def _run():
        merged = await ReconciliationResolver(coordinator).load_all(AuthContext.anonymous())
        await detached.drain()
        return merged

    merged = asyncio.run(_run())

    assert [site.id for site in merged] == ["l1"]
    assert fake_remote.list_calls == 0
    assert fake_remote.upserts == []


def test_dashboard_load_on_shared_device_keeps_other_accounts_sites(local_store, remote_store, detached, make_site) -> None:
    coordinator = DualWriteCoordinator(local=local_store, remote=remote_store, detached=detached)
    alice = AuthContext(user_id="alice")
    bob = AuthContext(user_id="bob")

    async def _run():
        await coordinator.save(make_site("alice-site", last_saved=100), alice)
        await detached.drain()
        merged = await ReconciliationResolver(coordinator).load_all(bob)
        await detached.drain()
        return (
            merged,
            await remote_store.list_for_user("alice"),
            await remote_store.list_for_user("bob"),
        )

    merged, alice_sites, bob_sites = asyncio.run(_run())

    assert [site.id for site in merged] == ["alice-site"]
    assert [site.id for site in alice_sites] == ["alice-site"]
    assert bob_sites == []
