import asyncio
import logging

import pytest

from primesite.api.deps import reset_run_registry
from primesite.config import refresh_settings
from primesite.db.database import Database, reset_database
from primesite.db.migrations import init_db, init_drafts_db
from primesite.exceptions import LocalStoreError, RemoteStoreError
from primesite.executor.detached import DetachedTasks, reset_detached_tasks
from primesite.schemas.site import (
    AboutSection,
    ContactInfo,
    HeroSection,
    ServiceItem,
    ShopInputs,
    SiteInstance,
    WebsiteData,
)
from primesite.services.deployment import DeploymentResult
from primesite.services.dual_write import DualWriteCoordinator
from primesite.services.payments import PaymentVerification
from primesite.stores.local_drafts import LocalDraftStore
from primesite.stores.remote_records import RemoteRecordStore

PNG_DATA_URL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/"
    "5+hHgAHggJ/P9i2ZQAAAABJRU5ErkJggg=="
)

_SCRUBBED_ENV = (
    "VERCEL_TOKEN",
    "VERCEL_TEAM_ID",
    "VERCEL_ORG_ID",
    "STRIPE_SECRET_KEY",
    "GCS_BUCKET_NAME",
    "STORAGE_ACCESS_KEY_ID",
    "STORAGE_SECRET_ACCESS_KEY",
    "FB_ACCESS_TOKEN",
    "FB_PIXEL_ID",
    "CORS_ALLOW_ORIGINS",
    "LOG_DIR",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    for key in _SCRUBBED_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'remote.db'}")
    monkeypatch.setenv("LOCAL_DRAFTS_URL", f"sqlite:///{tmp_path / 'drafts.db'}")
    monkeypatch.setenv("SESSION_FILE", str(tmp_path / "session.json"))
    monkeypatch.setenv("PUBLISH_TICK_SECONDS", "0")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    reset_database()
    reset_detached_tasks()
    reset_run_registry()
    settings = refresh_settings()
    yield settings
    reset_database()
    reset_detached_tasks()
    reset_run_registry()
    logging.getLogger("primesite").handlers.clear()


def build_site(
    site_id: str = "site-1",
    *,
    last_saved: int = 0,
    shop_name: str = "Tony's Barber Shop",
    hero: str = PNG_DATA_URL,
    about: str = PNG_DATA_URL,
    gallery: tuple = (PNG_DATA_URL,),
) -> SiteInstance:
    data = WebsiteData(
        shop_name=shop_name,
        area="Brooklyn, NY",
        phone="555-0100",
        hero=HeroSection(heading="Sharp cuts", tagline="Since 1998", image_url=hero),
        about=AboutSection(heading="About us", description=("Family run.",), image_url=about),
        services=(ServiceItem(title="Fade", description="Clean fade", icon="razor"),),
        gallery=gallery,
        contact=ContactInfo(address="1 Main St", email="tony@example.com"),
    )
    return SiteInstance(
        id=site_id,
        data=data,
        last_saved=last_saved,
        form_inputs=ShopInputs(shop_name=shop_name, area="Brooklyn, NY", phone="555-0100"),
    )


@pytest.fixture()
def make_site():
    return build_site


@pytest.fixture()
def png_data_url():
    return PNG_DATA_URL


@pytest.fixture()
def drafts_database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'drafts-store.db'}")
    init_drafts_db(database)
    return database


@pytest.fixture()
def remote_database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'remote-store.db'}")
    init_db(database)
    return database


@pytest.fixture()
def local_store(drafts_database):
    return LocalDraftStore(drafts_database)


@pytest.fixture()
def remote_store(remote_database):
    return RemoteRecordStore(remote_database)


@pytest.fixture()
def detached():
    return DetachedTasks()


class FakeRemoteStore:
    """In-memory remote store with switchable failure and hanging writes."""

    def __init__(self):
        self.records = {}
        self.upserts = []
        self.list_calls = 0
        self.fail_list = False
        self.fail_upsert = False
        self.hang_upsert = False
        self.profiles = {}

    async def upsert(self, user_id, site):
        self.upserts.append((user_id, site))
        if self.hang_upsert:
            await asyncio.Event().wait()
        if self.fail_upsert:
            raise RemoteStoreError("remote unavailable")
        self.records[site.id] = site.remote_projection()

    async def list_for_user(self, user_id):
        self.list_calls += 1
        if self.fail_list:
            raise RemoteStoreError("remote unavailable")
        return sorted(self.records.values(), key=lambda site: site.last_saved, reverse=True)

    async def get_profile(self, user_id):
        return self.profiles.get(user_id)


class FailingLocalStore:
    def __init__(self):
        self.attempts = 0

    async def put(self, site):
        self.attempts += 1
        raise LocalStoreError("disk full")

    async def get(self, site_id):
        raise LocalStoreError("disk full")

    async def list_all(self):
        raise LocalStoreError("disk full")


class FakeStorage:
    """Records uploads and the peak number running at once."""

    def __init__(self, delay: float = 0.01):
        self.delay = delay
        self.calls = []
        self.fail_on = set()
        self.in_flight = 0
        self.max_in_flight = 0

    async def upload(self, site_id, filename, payload):
        self.calls.append((site_id, filename))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if filename in self.fail_on:
                raise RuntimeError("bucket rejected write")
            return f"https://storage.googleapis.com/bucket/{site_id}/{filename}"
        finally:
            self.in_flight -= 1


class FakeDeployment:
    def __init__(self, url: str = "https://tonys-barber-shop.vercel.app", delay: float = 0.0):
        self.url = url
        self.delay = delay
        self.calls = []
        self.error = None

    async def deploy(self, project_name_seed, files):
        self.calls.append((project_name_seed, dict(files)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return DeploymentResult(
            url=self.url,
            deployment_id="dpl_123",
            project_name="tonys-barber-shop",
            inspector_url="https://vercel.com/inspect/dpl_123",
        )

    async def buy_domain(self, domain):
        self.calls.append(("buy", domain))
        return "order_42"

    async def attach_domain(self, project_name, domain):
        self.calls.append(("attach", project_name, domain))
        return True


class FakePayments:
    def __init__(self, verification=None, test_mode: bool = False):
        self.verification = verification or PaymentVerification(
            verified=True,
            customer_email="Buyer@Example.com",
            metadata={"siteId": "site-1"},
        )
        self.is_test_mode = test_mode
        self.verify_calls = []

    async def verify_session(self, session_id):
        self.verify_calls.append(session_id)
        return self.verification


class FakeTracker:
    def __init__(self, error=None):
        self.error = error
        self.events = []

    async def track_purchase(self, **kwargs):
        self.events.append(kwargs)
        if self.error is not None:
            raise self.error
        return True


@pytest.fixture()
def fake_remote():
    return FakeRemoteStore()


@pytest.fixture()
def failing_local():
    return FailingLocalStore()


@pytest.fixture()
def fake_storage():
    return FakeStorage()


@pytest.fixture()
def fake_deployment():
    return FakeDeployment()


@pytest.fixture()
def fake_payments():
    return FakePayments()


@pytest.fixture()
def fake_tracker():
    return FakeTracker()


@pytest.fixture()
def coordinator(local_store, fake_remote, detached):
    return DualWriteCoordinator(local=local_store, remote=fake_remote, detached=detached)


