"""Shared FastAPI dependencies and error translation for the API routers."""

from __future__ import annotations

import logging
from typing import NoReturn, Optional

from fastapi import Depends, Header, HTTPException, Request

from ..auth import AuthContext
from ..config import get_settings
from ..exceptions import (
    ConfigurationError,
    ExternalServiceError,
    PaymentNotVerifiedError,
    TrackedError,
)
from ..services.analytics import PurchaseTracker
from ..services.deployment import DeploymentClient
from ..services.domains import DomainService
from ..services.dual_write import DualWriteCoordinator
from ..services.image_upload import ImageUploadPipeline
from ..services.object_storage import ObjectStorage
from ..services.payments import PaymentClient
from ..services.publish import PublishSequencer
from ..services.publish_runs import PublishRunRegistry
from ..services.reconciliation import ReconciliationResolver

logger = logging.getLogger(__name__)

_run_registry: Optional[PublishRunRegistry] = None


def get_auth(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
) -> AuthContext:
    return AuthContext(user_id=x_user_id or None, email=x_user_email or None)


def get_origin(request: Request) -> str:
    origin = request.headers.get("origin")
    if origin:
        return origin
    referer = request.headers.get("referer")
    if referer:
        return referer.rstrip("/")
    return get_settings().default_origin


def get_coordinator() -> DualWriteCoordinator:
    return DualWriteCoordinator()


def get_resolver(coordinator: DualWriteCoordinator = Depends(get_coordinator)) -> ReconciliationResolver:
    return ReconciliationResolver(coordinator)


def get_object_storage() -> ObjectStorage:
    return ObjectStorage()


def get_upload_pipeline(storage: ObjectStorage = Depends(get_object_storage)) -> ImageUploadPipeline:
    return ImageUploadPipeline(storage)


def get_deployment_client() -> DeploymentClient:
    return DeploymentClient()


def get_payment_client() -> PaymentClient:
    return PaymentClient()


def get_purchase_tracker() -> PurchaseTracker:
    return PurchaseTracker()


def get_publish_sequencer(
    coordinator: DualWriteCoordinator = Depends(get_coordinator),
    uploads: ImageUploadPipeline = Depends(get_upload_pipeline),
    deployment: DeploymentClient = Depends(get_deployment_client),
    payments: PaymentClient = Depends(get_payment_client),
    tracker: PurchaseTracker = Depends(get_purchase_tracker),
) -> PublishSequencer:
    return PublishSequencer(coordinator, uploads, deployment, payments, tracker)


def get_domain_service(
    payments: PaymentClient = Depends(get_payment_client),
    deployment: DeploymentClient = Depends(get_deployment_client),
    coordinator: DualWriteCoordinator = Depends(get_coordinator),
) -> DomainService:
    return DomainService(payments, deployment, coordinator)


def get_run_registry() -> PublishRunRegistry:
    global _run_registry
    if _run_registry is None:
        _run_registry = PublishRunRegistry(ttl_seconds=get_settings().publish_run_ttl_seconds)
    return _run_registry


def reset_run_registry() -> None:
    global _run_registry
    _run_registry = None


def require_fields(missing: list[str]) -> None:
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing required fields: {', '.join(missing)}")


def raise_http_error(exc: Exception) -> NoReturn:
    """Translate a service exception into the matching HTTP error."""
    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error (trace_id=%s): %s", exc.trace_id, exc.message)
        raise HTTPException(status_code=500, detail=f"Server configuration error: {exc.message}") from exc
    if isinstance(exc, PaymentNotVerifiedError):
        raise HTTPException(status_code=400, detail=exc.message) from exc
    if isinstance(exc, ExternalServiceError):
        logger.warning("%s error (trace_id=%s): %s", exc.provider, exc.trace_id, exc.message)
        status = 400 if exc.status_code is not None and exc.status_code < 500 else 502
        raise HTTPException(status_code=status, detail=exc.message) from exc
    if isinstance(exc, TrackedError):
        raise HTTPException(status_code=500, detail=exc.with_trace()) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    raise exc


__all__ = [
    "get_auth",
    "get_coordinator",
    "get_deployment_client",
    "get_domain_service",
    "get_object_storage",
    "get_origin",
    "get_payment_client",
    "get_publish_sequencer",
    "get_purchase_tracker",
    "get_resolver",
    "get_run_registry",
    "get_upload_pipeline",
    "raise_http_error",
    "require_fields",
    "reset_run_registry",
]
