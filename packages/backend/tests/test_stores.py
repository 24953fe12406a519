import asyncio

import pytest

from primesite.db.models import UserProfile
from primesite.db.utils import store_session
from primesite.exceptions import RemoteStoreError
from primesite.schemas.site import DeploymentStatus


def test_local_store_put_get_and_list(local_store, make_site) -> None:
    async def _run():
        await local_store.put(make_site("a", last_saved=100))
        await local_store.put(make_site("b", last_saved=300))
        await local_store.put(make_site("a", last_saved=200).with_status(DeploymentStatus.DEPLOYING))
        return await local_store.get("a"), await local_store.get("missing"), await local_store.list_all()

    site_a, missing, listed = asyncio.run(_run())

    assert site_a.last_saved == 200
    assert site_a.deployment_status is DeploymentStatus.DEPLOYING
    assert site_a.data.hero.image_url.startswith("data:")
    assert missing is None
    assert [site.id for site in listed] == ["b", "a"]


def test_remote_store_scopes_by_user_and_orders_newest_first(remote_store, make_site) -> None:
    async def _run():
        await remote_store.upsert("user-1", make_site("old", last_saved=100))
        await remote_store.upsert("user-1", make_site("new", last_saved=500))
        await remote_store.upsert("user-2", make_site("other", last_saved=900))
        return await remote_store.list_for_user("user-1")

    sites = asyncio.run(_run())

    assert [site.id for site in sites] == ["new", "old"]


def test_remote_store_never_holds_inline_images(remote_store, make_site) -> None:
    site = make_site("a", last_saved=10, about="https://cdn.example/about.jpg")

    async def _run():
        await remote_store.upsert("user-1", site)
        return await remote_store.list_for_user("user-1")

    (stored,) = asyncio.run(_run())

    assert stored.data.hero.image_url == ""
    assert stored.data.gallery == ("",)
    assert stored.data.about.image_url == "https://cdn.example/about.jpg"
    assert stored.form_inputs.shop_name == "Tony's Barber Shop"
    assert stored.last_saved == 10


def test_remote_store_loads_profile(remote_store, remote_database) -> None:
    with store_session(remote_database, RemoteStoreError, "seed profile", commit=True) as db:
        db.add(UserProfile(id="user-1", email="tony@example.com", stripe_customer_id="cus_1"))

    profile = asyncio.run(remote_store.get_profile("user-1"))

    assert profile.stripe_customer_id == "cus_1"
    assert asyncio.run(remote_store.get_profile("nobody")) is None


def test_remote_upsert_refuses_to_change_owner(remote_store, make_site) -> None:
    asyncio.run(remote_store.upsert("user-1", make_site("shared", last_saved=100)))

    with pytest.raises(RemoteStoreError, match="belongs to another account"):
        asyncio.run(remote_store.upsert("user-2", make_site("shared", last_saved=200)))

    owned = asyncio.run(remote_store.list_for_user("user-1"))
    assert [(site.id, site.last_saved) for site in owned] == [("shared", 100)]
    assert asyncio.run(remote_store.list_for_user("user-2")) == []
