from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..auth import AuthContext
from ..exceptions import TrackedError
from ..schemas.api import CheckoutRequest, DomainCheckoutRequest, PortalRequest, SessionRequest, missing_fields
from ..services.dual_write import DualWriteCoordinator
from ..services.payments import PaymentClient
from .deps import get_auth, get_coordinator, get_origin, get_payment_client, raise_http_error, require_fields

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("/checkout")
async def create_checkout(
    payload: CheckoutRequest,
    origin: str = Depends(get_origin),
    payments: PaymentClient = Depends(get_payment_client),
):
    require_fields(missing_fields(payload, "site_id"))
    try:
        url = await payments.create_hosting_checkout(payload.site_id, origin)
    except TrackedError as exc:
        raise_http_error(exc)
    return {"url": url}


@router.post("/domain-checkout")
async def create_domain_checkout(
    payload: DomainCheckoutRequest,
    origin: str = Depends(get_origin),
    payments: PaymentClient = Depends(get_payment_client),
):
    require_fields(missing_fields(payload, "domain", "vercel_price", "site_id", "project_name"))
    try:
        url = await payments.create_domain_checkout(
            payload.domain,
            payload.vercel_price,
            payload.site_id,
            payload.project_name,
            origin,
        )
    except TrackedError as exc:
        raise_http_error(exc)
    return {"url": url}


@router.post("/portal")
async def create_portal(
    payload: PortalRequest,
    origin: str = Depends(get_origin),
    auth: AuthContext = Depends(get_auth),
    payments: PaymentClient = Depends(get_payment_client),
    coordinator: DualWriteCoordinator = Depends(get_coordinator),
):
    customer_id = payload.customer_id
    if not customer_id and auth.user_id:
        try:
            profile = await coordinator.remote.get_profile(auth.user_id)
        except TrackedError as exc:
            raise_http_error(exc)
        customer_id = profile.stripe_customer_id if profile is not None else None
    if not customer_id:
        raise HTTPException(status_code=400, detail="Missing customerId")
    try:
        url = await payments.create_billing_portal(customer_id, origin)
    except TrackedError as exc:
        raise_http_error(exc)
    return {"url": url}


@router.post("/verify")
async def verify_session(
    payload: SessionRequest,
    payments: PaymentClient = Depends(get_payment_client),
):
    if not payload.session_id:
        raise HTTPException(status_code=400, detail="Missing sessionId")
    try:
        verification = await payments.verify_session(payload.session_id)
    except TrackedError as exc:
        raise_http_error(exc)
    return {
        "verified": verification.verified,
        "reason": verification.reason,
        "customerEmail": verification.customer_email,
    }
