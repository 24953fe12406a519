from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..auth import AuthContext
from ..exceptions import PaymentError, PaymentNotVerifiedError
from ..utils.time import now_ms
from .deployment import DeploymentClient
from .dual_write import DualWriteCoordinator
from .payments import PaymentClient

logger = logging.getLogger(__name__)


@dataclass
class DomainPurchase:
    domain: str
    order_id: str
    project_name: str
    site_id: Optional[str] = None
    attached: bool = False
    test_mode: bool = False


class DomainService:
    """Completes a paid domain checkout: buy, attach, record on the site."""

    def __init__(
        self,
        payments: PaymentClient,
        deployment: DeploymentClient,
        coordinator: DualWriteCoordinator,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.payments = payments
        self.deployment = deployment
        self.coordinator = coordinator
        self._clock = clock

    async def purchase(self, session_id: str, auth: AuthContext) -> DomainPurchase:
        verification = await self.payments.verify_session(session_id)
        if not verification.verified:
            raise PaymentNotVerifiedError(verification.reason or "unknown")

        domain = verification.metadata.get("domain")
        project_name = verification.metadata.get("projectName")
        site_id = verification.metadata.get("siteId")
        if not domain or not project_name:
            raise PaymentError("Missing domain or projectName in session metadata")

        if self.payments.is_test_mode:
            logger.info("Test mode: skipping real purchase for %s", domain)
            purchase = DomainPurchase(
                domain=domain,
                order_id=f"test_order_{self._clock()}",
                project_name=project_name,
                site_id=site_id,
                test_mode=True,
            )
        else:
            order_id = await self.deployment.buy_domain(domain)
            attached = await self.deployment.attach_domain(project_name, domain)
            purchase = DomainPurchase(
                domain=domain,
                order_id=order_id or f"order_{self._clock()}",
                project_name=project_name,
                site_id=site_id,
                attached=attached,
            )

        if site_id:
            await self._record_on_site(purchase, auth)
        return purchase

    async def _record_on_site(self, purchase: DomainPurchase, auth: AuthContext) -> None:
        site = await self.coordinator.local.get(purchase.site_id)
        if site is None:
            logger.info("Site %s not in local drafts; domain not recorded", purchase.site_id)
            return
        await self.coordinator.save(site.with_domain(purchase.domain, purchase.order_id), auth)


__all__ = ["DomainPurchase", "DomainService"]
