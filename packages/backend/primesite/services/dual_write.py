from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from ..auth import AuthContext
from ..exceptions import LocalStoreError
from ..executor.detached import DetachedTasks, get_detached_tasks
from ..schemas.site import SiteInstance
from ..stores.local_drafts import LocalDraftStore
from ..stores.remote_records import RemoteRecordStore
from ..utils.time import monotonic_stamp, now_ms

logger = logging.getLogger(__name__)


class DualWriteCoordinator:
    """Writes every site mutation locally first, then mirrors it remotely.

    Only the local write can fail the caller. The remote mirror runs as a
    detached task and its failures are logged.
    """

    def __init__(
        self,
        local: Optional[LocalDraftStore] = None,
        remote: Optional[RemoteRecordStore] = None,
        detached: Optional[DetachedTasks] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.local = local or LocalDraftStore()
        self.remote = remote or RemoteRecordStore()
        self.detached = detached if detached is not None else get_detached_tasks()
        self._clock = clock

    async def save(self, site: SiteInstance, auth: AuthContext) -> SiteInstance:
        stamped = site.stamped(monotonic_stamp(site.last_saved or None, self._clock()))
        try:
            await self.local.put(stamped)
        except LocalStoreError:
            raise
        except Exception as exc:
            raise LocalStoreError(f"Failed to write local draft {site.id}: {exc}") from exc
        if auth.is_authenticated:
            self.mirror(stamped, auth)
        return stamped

    def mirror(self, site: SiteInstance, auth: AuthContext) -> Optional[asyncio.Task]:
        """Best-effort remote upsert of ``site`` as-is, without restamping."""
        if not auth.user_id:
            return None
        return self.detached.spawn(
            self._mirror_remote(auth.user_id, site),
            name=f"remote-mirror:{site.id}",
        )

    async def _mirror_remote(self, user_id: str, site: SiteInstance) -> None:
        try:
            await self.remote.upsert(user_id, site)
        except Exception as exc:
            logger.warning(
                "Remote mirror failed for site %s: %s",
                site.id,
                exc,
                extra={"data": {"site_id": site.id, "user_id": user_id}},
            )
            return
        logger.debug("Remote mirror stored site %s (lastSaved=%s)", site.id, site.last_saved)


__all__ = ["DualWriteCoordinator"]
