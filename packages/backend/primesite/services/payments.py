from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ..config import Settings, get_settings
from ..exceptions import ConfigurationError, PaymentError

logger = logging.getLogger(__name__)


@dataclass
class PaymentVerification:
    verified: bool
    reason: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)
    client_reference_id: Optional[str] = None


class PaymentClient:
    """Stripe Checkout and Billing Portal over the form-encoded REST API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.base_url = self.settings.stripe_api_base.rstrip("/")
        self._transport = transport

    @property
    def is_test_mode(self) -> bool:
        return (self.settings.stripe_secret_key or "").startswith("sk_test_")

    def _headers(self) -> dict[str, str]:
        key = self.settings.stripe_secret_key
        if not key:
            raise ConfigurationError("missing STRIPE_SECRET_KEY")
        return {"Authorization": f"Bearer {key}"}

    async def _request(self, method: str, path: str, data: Optional[dict[str, str]] = None) -> dict[str, Any]:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.settings.stripe_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, data=data, headers=headers)
        except httpx.HTTPError as exc:
            raise PaymentError(f"Stripe request failed: {exc}") from exc
        if response.status_code >= 400:
            logger.error("Stripe error %s on %s: %s", response.status_code, path, response.text)
            raise PaymentError(f"Stripe API error {response.status_code}", status_code=response.status_code)
        return response.json()

    async def create_hosting_checkout(self, site_id: str, origin: Optional[str] = None) -> str:
        origin = (origin or self.settings.default_origin).rstrip("/")
        params = {
            "mode": "subscription",
            "success_url": f"{origin}?stripe_session={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{origin}?stripe_cancelled=true",
            "line_items[0][price_data][currency]": "usd",
            "line_items[0][price_data][product_data][name]": self.settings.hosting_product_name,
            "line_items[0][price_data][unit_amount]": str(self.settings.hosting_price_cents),
            "line_items[0][price_data][recurring][interval]": "month",
            "line_items[0][quantity]": "1",
            "client_reference_id": site_id,
            "metadata[type]": "site_hosting",
            "metadata[siteId]": site_id,
        }
        session = await self._request("POST", "/v1/checkout/sessions", data=params)
        return session["url"]

    async def create_domain_checkout(
        self,
        domain: str,
        provider_price: float,
        site_id: str,
        project_name: str,
        origin: Optional[str] = None,
    ) -> str:
        origin = (origin or self.settings.default_origin).rstrip("/")
        price_cents = round((provider_price + self.settings.domain_markup_usd) * 100)
        params = {
            "mode": "payment",
            "success_url": f"{origin}?domain_payment=success&session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{origin}?domain_payment=cancelled",
            "line_items[0][price_data][currency]": "usd",
            "line_items[0][price_data][product_data][name]": f"Domain Registration - {domain}",
            "line_items[0][price_data][unit_amount]": str(price_cents),
            "line_items[0][quantity]": "1",
            "metadata[type]": "domain_purchase",
            "metadata[domain]": domain,
            "metadata[projectName]": project_name,
            "metadata[siteId]": site_id,
        }
        session = await self._request("POST", "/v1/checkout/sessions", data=params)
        return session["url"]

    async def create_billing_portal(self, customer_id: str, origin: Optional[str] = None) -> str:
        origin = (origin or self.settings.default_origin).rstrip("/")
        session = await self._request(
            "POST",
            "/v1/billing_portal/sessions",
            data={"customer": customer_id, "return_url": origin},
        )
        return session["url"]

    async def verify_session(self, session_id: str) -> PaymentVerification:
        """Check whether a checkout session is paid.

        A rejected lookup is reported as unverified rather than raised, so the
        caller always gets a reason to surface.
        """
        if not session_id:
            return PaymentVerification(verified=False, reason="Missing sessionId")
        try:
            session = await self._request("GET", f"/v1/checkout/sessions/{session_id}")
        except PaymentError as exc:
            if exc.status_code is None:
                raise
            return PaymentVerification(verified=False, reason="Invalid session")

        metadata = {str(key): str(value) for key, value in (session.get("metadata") or {}).items()}
        details = session.get("customer_details") or {}
        status = session.get("payment_status")
        if status != "paid":
            return PaymentVerification(
                verified=False,
                reason=f"Payment status: {status}",
                metadata=metadata,
                client_reference_id=session.get("client_reference_id"),
            )
        return PaymentVerification(
            verified=True,
            customer_email=details.get("email"),
            metadata=metadata,
            client_reference_id=session.get("client_reference_id"),
        )


__all__ = ["PaymentClient", "PaymentVerification"]
