from __future__ import annotations

import logging
from typing import Optional

from ..auth import AuthContext
from ..schemas.site import SiteInstance
from .dual_write import DualWriteCoordinator

logger = logging.getLogger(__name__)


class ReconciliationResolver:
    """Merges remote and local site sets by last-write-wins on ``lastSaved``.

    Output keeps the remote order with local-only sites appended. Whichever
    store holds the stale copy is re-synchronised in the background. Never
    raises: an unreachable store contributes an empty list.
    """

    def __init__(self, coordinator: Optional[DualWriteCoordinator] = None) -> None:
        self.coordinator = coordinator or DualWriteCoordinator()

    async def load_all(self, auth: AuthContext) -> list[SiteInstance]:
        remote_sites = await self._fetch_remote(auth)
        local_sites = await self._fetch_local()

        merged = list(remote_sites)
        positions = {site.id: index for index, site in enumerate(merged)}
        for local in local_sites:
            index = positions.get(local.id)
            if index is None:
                positions[local.id] = len(merged)
                merged.append(local)
                self.coordinator.mirror(local, auth)
                continue
            remote = merged[index]
            if local.last_saved > remote.last_saved:
                merged[index] = local
                self.coordinator.mirror(local, auth)
            elif remote.last_saved > local.last_saved:
                self._refresh_local(remote)
        return merged

    async def _fetch_remote(self, auth: AuthContext) -> list[SiteInstance]:
        if not auth.user_id:
            return []
        try:
            return await self.coordinator.remote.list_for_user(auth.user_id)
        except Exception as exc:
            logger.warning("Remote site fetch failed for %s: %s", auth.user_id, exc)
            return []

    async def _fetch_local(self) -> list[SiteInstance]:
        try:
            return await self.coordinator.local.list_all()
        except Exception as exc:
            logger.warning("Local draft fetch failed: %s", exc)
            return []

    def _refresh_local(self, site: SiteInstance) -> None:
        self.coordinator.detached.spawn(self._write_local(site), name=f"local-refresh:{site.id}")

    async def _write_local(self, site: SiteInstance) -> None:
        try:
            await self.coordinator.local.put(site)
        except Exception as exc:
            logger.warning("Local refresh failed for site %s: %s", site.id, exc)


__all__ = ["ReconciliationResolver"]
