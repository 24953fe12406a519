from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..auth import AuthContext
from ..exceptions import TrackedError
from ..schemas.api import DomainCheckRequest, SessionRequest
from ..services.deployment import DeploymentClient
from ..services.domains import DomainService
from .deps import get_auth, get_deployment_client, get_domain_service, raise_http_error

router = APIRouter(prefix="/api/domains", tags=["domains"])


@router.post("/check")
async def check_domain(
    payload: DomainCheckRequest,
    deployment: DeploymentClient = Depends(get_deployment_client),
):
    if not payload.domain:
        raise HTTPException(status_code=400, detail="Missing domain")
    try:
        availability = await deployment.check_domain(payload.domain)
    except TrackedError as exc:
        raise_http_error(exc)
    if not availability.available:
        return {"available": False}
    return {
        "available": True,
        "price": availability.price,
        "renewalPrice": availability.renewal_price,
    }


@router.post("/purchase")
async def purchase_domain(
    payload: SessionRequest,
    auth: AuthContext = Depends(get_auth),
    service: DomainService = Depends(get_domain_service),
):
    if not payload.session_id:
        raise HTTPException(status_code=400, detail="Missing sessionId")
    try:
        purchase = await service.purchase(payload.session_id, auth)
    except TrackedError as exc:
        raise_http_error(exc)
    return {
        "success": True,
        "domain": purchase.domain,
        "orderId": purchase.order_id,
        "attached": purchase.attached,
        "testMode": purchase.test_mode,
    }
