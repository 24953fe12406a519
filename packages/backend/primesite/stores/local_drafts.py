from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..db.database import Database, get_drafts_database
from ..db.models import LocalDraft
from ..db.utils import store_session
from ..exceptions import LocalStoreError
from ..schemas.site import SiteInstance

logger = logging.getLogger(__name__)


class LocalDraftStore:
    """Device-local key-value store of full site records, keyed by site id."""

    def __init__(self, database: Optional[Database] = None) -> None:
        self.database = database or get_drafts_database()

    def put_sync(self, site: SiteInstance) -> None:
        with store_session(self.database, LocalStoreError, f"write local draft {site.id}", commit=True) as db:
            record = db.get(LocalDraft, site.id)
            if record is None:
                record = LocalDraft(id=site.id)
                db.add(record)
            record.payload = site.to_payload()
            record.last_saved = site.last_saved

    def get_sync(self, site_id: str) -> Optional[SiteInstance]:
        with store_session(self.database, LocalStoreError, f"read local draft {site_id}") as db:
            record = db.get(LocalDraft, site_id)
            payload = record.payload if record is not None else None
        if payload is None:
            return None
        return SiteInstance.from_payload(payload)

    def list_sync(self) -> list[SiteInstance]:
        with store_session(self.database, LocalStoreError, "list local drafts") as db:
            payloads = [
                record.payload
                for record in db.query(LocalDraft).order_by(LocalDraft.last_saved.desc()).all()
            ]
        sites: list[SiteInstance] = []
        for payload in payloads:
            try:
                sites.append(SiteInstance.from_payload(payload))
            except ValueError as exc:
                logger.warning("Skipping unreadable local draft: %s", exc)
        return sites

    async def put(self, site: SiteInstance) -> None:
        await asyncio.to_thread(self.put_sync, site)

    async def get(self, site_id: str) -> Optional[SiteInstance]:
        return await asyncio.to_thread(self.get_sync, site_id)

    async def list_all(self) -> list[SiteInstance]:
        return await asyncio.to_thread(self.list_sync)


__all__ = ["LocalDraftStore"]
