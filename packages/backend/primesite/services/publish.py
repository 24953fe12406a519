"""Payment-gated publish sequencing.

A publish attempt runs the real work (verify, upload, render, deploy,
persist) alongside a cosmetic countdown and releases the outcome once both
have finished. Progress is reported on a ``PublishRun`` that observers poll.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional
from uuid import uuid4

from ..auth import AuthContext
from ..config import Settings, get_settings
from ..exceptions import PaymentNotVerifiedError
from ..executor.countdown import CountdownTimer, Sleep
from ..executor.detached import DetachedTasks
from ..renderer.site_html import DEFAULT_STYLESHEET, render_site_html
from ..schemas.site import DeploymentStatus, SiteInstance
from ..utils.html import strip_inline_images, substitute_placeholders
from .analytics import PurchaseTracker
from .deployment import DeploymentClient
from .dual_write import DualWriteCoordinator
from .image_upload import ImageUploadPipeline, UploadMode
from .payments import PaymentClient, PaymentVerification

logger = logging.getLogger(__name__)


class PublishPhase(str, enum.Enum):
    PUBLISHING = "publishing"
    COUNTDOWN = "countdown"
    SUCCESS = "success"
    ERROR = "error"


class PublishKind(str, enum.Enum):
    CLAIM = "claim"
    REPUBLISH = "republish"


@dataclass
class PublishOutcome:
    url: Optional[str] = None
    site: Optional[SiteInstance] = None
    project_name: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.url is not None


@dataclass
class PublishRun:
    site_id: str
    kind: PublishKind
    id: str = field(default_factory=lambda: uuid4().hex)
    phase: PublishPhase = PublishPhase.PUBLISHING
    countdown: Optional[int] = None
    outcome: Optional[PublishOutcome] = None
    finished_at: Optional[float] = None
    _alive: bool = True

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    def detach(self) -> None:
        """Stop reporting progress. The underlying work keeps running."""
        self._alive = False

    def tick(self, remaining: int) -> None:
        if self._alive:
            self.countdown = remaining

    def set_phase(self, phase: PublishPhase) -> None:
        if self._alive:
            self.phase = phase

    def finish(self, outcome: PublishOutcome) -> None:
        self.finished_at = time.monotonic()
        if not self._alive:
            return
        self.outcome = outcome
        self.phase = PublishPhase.SUCCESS if outcome.error is None else PublishPhase.ERROR

    def snapshot(self) -> dict[str, Any]:
        outcome = self.outcome
        return {
            "runId": self.id,
            "siteId": self.site_id,
            "kind": self.kind.value,
            "phase": self.phase.value,
            "countdown": self.countdown,
            "alive": self._alive,
            "deployedUrl": outcome.url if outcome else None,
            "error": outcome.error if outcome else None,
            "site": outcome.site.to_payload() if outcome and outcome.site else None,
        }


class PublishSequencer:
    def __init__(
        self,
        coordinator: DualWriteCoordinator,
        uploads: ImageUploadPipeline,
        deployment: DeploymentClient,
        payments: PaymentClient,
        tracker: PurchaseTracker,
        *,
        detached: Optional[DetachedTasks] = None,
        settings: Optional[Settings] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.coordinator = coordinator
        self.uploads = uploads
        self.deployment = deployment
        self.payments = payments
        self.tracker = tracker
        self.detached = detached if detached is not None else coordinator.detached
        self.settings = settings or get_settings()
        self._sleep = sleep

    async def claim(
        self,
        site: SiteInstance,
        checkout_session_id: str,
        auth: AuthContext,
        run: Optional[PublishRun] = None,
    ) -> PublishOutcome:
        """First publish after checkout. Works for signed-out visitors too."""
        run = run or PublishRun(site_id=site.id, kind=PublishKind.CLAIM)

        async def work() -> PublishOutcome:
            verification = await self.payments.verify_session(checkout_session_id)
            if not verification.verified:
                raise PaymentNotVerifiedError(verification.reason or "unknown")
            outcome = await self._deploy_and_persist(site, auth, UploadMode.PARALLEL)
            self.detached.spawn(
                self._track_purchase(verification, checkout_session_id),
                name=f"purchase-tracking:{site.id}",
            )
            return outcome

        return await self._execute(run, self.settings.publish_countdown_ticks, work)

    async def republish(
        self,
        site: SiteInstance,
        auth: AuthContext,
        run: Optional[PublishRun] = None,
    ) -> PublishOutcome:
        run = run or PublishRun(site_id=site.id, kind=PublishKind.REPUBLISH)
        if not auth.is_authenticated:
            outcome = PublishOutcome(error="Sign in required to republish")
            run.finish(outcome)
            return outcome

        async def work() -> PublishOutcome:
            deploying = await self.coordinator.save(site.with_status(DeploymentStatus.DEPLOYING), auth)
            return await self._deploy_and_persist(deploying, auth, UploadMode.SEQUENTIAL)

        return await self._execute(run, self.settings.republish_countdown_ticks, work)

    async def _execute(
        self,
        run: PublishRun,
        ticks: int,
        work: Callable[[], Awaitable[PublishOutcome]],
    ) -> PublishOutcome:
        logger.info(
            "Publish started",
            extra={"data": {"run_id": run.id, "site_id": run.site_id, "kind": run.kind.value}},
        )
        try:
            outcome = await self._fork_join(run, ticks, work)
        except Exception as exc:
            logger.warning(
                "Publish failed",
                exc_info=exc,
                extra={"data": {"run_id": run.id, "site_id": run.site_id}},
            )
            outcome = PublishOutcome(error=str(exc))
        run.finish(outcome)
        if outcome.error is None:
            logger.info("Publish finished", extra={"data": {"run_id": run.id, "url": outcome.url}})
        return outcome

    async def _fork_join(
        self,
        run: PublishRun,
        ticks: int,
        work: Callable[[], Awaitable[PublishOutcome]],
    ) -> PublishOutcome:
        timer = CountdownTimer(ticks, self.settings.publish_tick_seconds, sleep=self._sleep)
        timer_task = asyncio.ensure_future(timer.run(run.tick))

        async def tracked_work() -> PublishOutcome:
            outcome = await work()
            if not timer_task.done():
                run.set_phase(PublishPhase.COUNTDOWN)
            return outcome

        try:
            _, outcome = await asyncio.gather(timer_task, tracked_work())
        except Exception:
            timer_task.cancel()
            raise
        return outcome

    async def _deploy_and_persist(
        self,
        site: SiteInstance,
        auth: AuthContext,
        mode: UploadMode,
    ) -> PublishOutcome:
        try:
            urls = await self.uploads.upload_pending(site.id, site.data, mode)
            resolved = site.data.with_image_urls(urls)
            html = render_site_html(resolved)
            html = substitute_placeholders(html, urls)
            html = strip_inline_images(html)
            result = await self.deployment.deploy(
                resolved.shop_name,
                {"index.html": html, "styles.css": DEFAULT_STYLESHEET},
            )
            saved = await self.coordinator.save(site.deployed(result.url, resolved), auth)
        except Exception:
            self._mark_failed(site, auth)
            raise
        return PublishOutcome(url=result.url, site=saved, project_name=result.project_name)

    def _mark_failed(self, site: SiteInstance, auth: AuthContext) -> None:
        self.detached.spawn(self._save_failed(site, auth), name=f"mark-failed:{site.id}")

    async def _save_failed(self, site: SiteInstance, auth: AuthContext) -> None:
        try:
            await self.coordinator.save(site.with_status(DeploymentStatus.FAILED), auth)
        except Exception as exc:
            logger.warning("Could not record failed deployment for %s: %s", site.id, exc)

    async def _track_purchase(self, verification: PaymentVerification, checkout_session_id: str) -> None:
        try:
            await self.tracker.track_purchase(
                event_id=f"purchase_{checkout_session_id}",
                customer_email=verification.customer_email,
            )
        except Exception as exc:
            logger.warning("Purchase tracking failed: %s", exc)


__all__ = [
    "PublishKind",
    "PublishOutcome",
    "PublishPhase",
    "PublishRun",
    "PublishSequencer",
]
