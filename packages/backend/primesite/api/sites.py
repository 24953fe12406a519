from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..auth import AuthContext
from ..exceptions import LocalStoreError
from ..schemas.site import SaveStatus, SiteInstance
from ..services.dual_write import DualWriteCoordinator
from ..services.reconciliation import ReconciliationResolver
from .deps import get_auth, get_coordinator, get_resolver

router = APIRouter(prefix="/api/sites", tags=["sites"])
logger = logging.getLogger(__name__)


@router.get("")
async def list_sites(
    auth: AuthContext = Depends(get_auth),
    resolver: ReconciliationResolver = Depends(get_resolver),
):
    """Dashboard view: remote and local drafts merged by last save."""
    sites = await resolver.load_all(auth)
    return {"sites": [site.to_payload() for site in sites]}


@router.get("/{site_id}")
async def get_site(
    site_id: str,
    coordinator: DualWriteCoordinator = Depends(get_coordinator),
):
    try:
        site = await coordinator.local.get(site_id)
    except LocalStoreError as exc:
        raise HTTPException(status_code=503, detail=exc.message) from exc
    if site is None:
        raise HTTPException(status_code=404, detail="Site not found")
    return site.to_payload()


@router.put("/{site_id}")
async def save_site(
    site_id: str,
    site: SiteInstance,
    auth: AuthContext = Depends(get_auth),
    coordinator: DualWriteCoordinator = Depends(get_coordinator),
):
    if site.id != site_id:
        raise HTTPException(status_code=400, detail="Site id in body does not match URL")
    try:
        saved = await coordinator.save(site, auth)
    except LocalStoreError as exc:
        logger.error("Local save failed for %s (trace_id=%s): %s", site_id, exc.trace_id, exc.message)
        raise HTTPException(
            status_code=503,
            detail={"saveStatus": SaveStatus.ERROR.value, "message": exc.message},
        ) from exc
    return {"saveStatus": SaveStatus.SAVED.value, "site": saved.to_payload()}
