from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..auth import AuthContext
from ..exceptions import LocalStoreError
from ..schemas.api import ClaimRequest
from ..services.dual_write import DualWriteCoordinator
from ..services.publish import PublishKind, PublishSequencer
from ..services.publish_runs import PublishRunRegistry
from .deps import get_auth, get_coordinator, get_publish_sequencer, get_run_registry, require_fields

router = APIRouter(prefix="/api/publish", tags=["publish"])


async def _load_local_site(coordinator: DualWriteCoordinator, site_id: str):
    try:
        site = await coordinator.local.get(site_id)
    except LocalStoreError as exc:
        raise HTTPException(status_code=503, detail=exc.message) from exc
    if site is None:
        raise HTTPException(status_code=404, detail="Site not found")
    return site


@router.post("/claim", status_code=202)
async def claim(
    payload: ClaimRequest,
    auth: AuthContext = Depends(get_auth),
    coordinator: DualWriteCoordinator = Depends(get_coordinator),
    sequencer: PublishSequencer = Depends(get_publish_sequencer),
    registry: PublishRunRegistry = Depends(get_run_registry),
):
    """Start the paid first publish. Poll the returned run for progress."""
    require_fields([] if payload.checkout_session_id else ["checkoutSessionId"])
    if payload.site is not None:
        site = payload.site
    elif payload.site_id:
        site = await _load_local_site(coordinator, payload.site_id)
    else:
        raise HTTPException(status_code=400, detail="Missing required fields: site or siteId")

    session_id = payload.checkout_session_id
    run = registry.start(
        PublishKind.CLAIM,
        site.id,
        lambda run: sequencer.claim(site, session_id, auth, run),
    )
    return run.snapshot()


@router.post("/republish/{site_id}", status_code=202)
async def republish(
    site_id: str,
    auth: AuthContext = Depends(get_auth),
    coordinator: DualWriteCoordinator = Depends(get_coordinator),
    sequencer: PublishSequencer = Depends(get_publish_sequencer),
    registry: PublishRunRegistry = Depends(get_run_registry),
):
    if not auth.is_authenticated:
        raise HTTPException(status_code=401, detail="Sign in required to republish")
    site = await _load_local_site(coordinator, site_id)
    run = registry.start(
        PublishKind.REPUBLISH,
        site.id,
        lambda run: sequencer.republish(site, auth, run),
    )
    return run.snapshot()


@router.get("/runs/{run_id}")
def get_run(run_id: str, registry: PublishRunRegistry = Depends(get_run_registry)):
    run = registry.get(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Run not found")
    return run.snapshot()


@router.delete("/runs/{run_id}")
def detach_run(run_id: str, registry: PublishRunRegistry = Depends(get_run_registry)):
    """Stop observing a run. The publish itself keeps going."""
    if not registry.detach(run_id):
        raise HTTPException(status_code=404, detail="Run not found")
    return {"success": True, "runId": run_id}
