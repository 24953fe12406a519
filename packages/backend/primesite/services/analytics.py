from __future__ import annotations

import hashlib
import logging
import time
from typing import Optional

import httpx

from ..config import Settings, get_settings
from ..exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def hash_email(email: str) -> str:
    return hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()


class PurchaseTracker:
    """Sends purchase conversions to the Facebook Conversions API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.settings.fb_access_token and self.settings.fb_pixel_id)

    def build_event(
        self,
        *,
        event_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        client_user_agent: Optional[str] = None,
    ) -> dict:
        now = int(time.time())
        user_data: dict = {}
        if customer_email:
            user_data["em"] = [hash_email(customer_email)]
        if client_user_agent:
            user_data["client_user_agent"] = client_user_agent
        return {
            "event_name": "Purchase",
            "event_time": now,
            "event_id": event_id or f"purchase_{now * 1000}",
            "action_source": "website",
            "event_source_url": self.settings.purchase_event_source_url,
            "user_data": user_data,
            "custom_data": {
                "currency": self.settings.purchase_currency,
                "value": self.settings.purchase_value,
            },
        }

    async def track_purchase(
        self,
        *,
        event_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        client_user_agent: Optional[str] = None,
    ) -> bool:
        if not self.enabled:
            logger.info("Purchase tracking skipped: FB_ACCESS_TOKEN or FB_PIXEL_ID not set")
            return False
        event = self.build_event(
            event_id=event_id,
            customer_email=customer_email,
            client_user_agent=client_user_agent,
        )
        url = f"{self.settings.fb_api_base.rstrip('/')}/{self.settings.fb_pixel_id}/events"
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json={"data": [event], "access_token": self.settings.fb_access_token},
                )
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"Purchase event failed: {exc}", provider="facebook") from exc
        if response.status_code >= 400:
            raise ExternalServiceError(
                f"Purchase event rejected: {response.text}",
                provider="facebook",
                status_code=response.status_code,
            )
        logger.info("Purchase event sent", extra={"data": {"event_id": event["event_id"]}})
        return True


__all__ = ["PurchaseTracker", "hash_email"]
