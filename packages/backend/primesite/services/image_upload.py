from __future__ import annotations

import asyncio
import enum
import logging
from typing import Optional, Protocol

from ..exceptions import ImageUploadError
from ..schemas.site import ImageSlot, WebsiteData, is_durable_url, is_inline_payload

logger = logging.getLogger(__name__)


class ImageUploader(Protocol):
    async def upload(self, site_id: str, filename: str, payload: str) -> str: ...


class UploadMode(str, enum.Enum):
    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"


class ImageUploadPipeline:
    """Replaces inline image payloads with durably hosted URLs.

    Already durable slots pass through untouched, so a re-run after a
    successful upload performs no uploads.
    """

    def __init__(self, storage: Optional[ImageUploader] = None) -> None:
        if storage is None:
            from .object_storage import ObjectStorage

            storage = ObjectStorage()
        self.storage = storage

    async def upload_pending(
        self,
        site_id: str,
        data: WebsiteData,
        mode: UploadMode = UploadMode.PARALLEL,
    ) -> dict[str, str]:
        urls: dict[str, str] = {}
        pending: list[tuple[ImageSlot, str]] = []
        for slot, value in data.image_slots():
            if is_inline_payload(value):
                pending.append((slot, value))
            elif is_durable_url(value):
                urls[slot.key] = value

        if not pending:
            return urls

        logger.info(
            "Uploading images",
            extra={"data": {"site_id": site_id, "count": len(pending), "mode": mode.value}},
        )
        if mode is UploadMode.PARALLEL:
            results = await asyncio.gather(*(self._upload_one(site_id, slot, value) for slot, value in pending))
            for (slot, _), url in zip(pending, results):
                urls[slot.key] = url
        else:
            for slot, value in pending:
                urls[slot.key] = await self._upload_one(site_id, slot, value)
        return urls

    async def _upload_one(self, site_id: str, slot: ImageSlot, payload: str) -> str:
        try:
            return await self.storage.upload(site_id, slot.filename, payload)
        except Exception as exc:
            raise ImageUploadError(slot.key, exc) from exc


__all__ = ["ImageUploadPipeline", "ImageUploader", "UploadMode"]
