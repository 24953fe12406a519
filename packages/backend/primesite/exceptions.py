from __future__ import annotations

from typing import Optional
from uuid import uuid4


def new_trace_id() -> str:
    return uuid4().hex


class TrackedError(Exception):
    def __init__(self, message: str, *, error_type: str, trace_id: str | None = None) -> None:
        self.error_type = error_type
        self.trace_id = trace_id or new_trace_id()
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    def with_trace(self) -> str:
        return f"{self.args[0]} (trace_id={self.trace_id})"


class ConfigurationError(TrackedError):
    def __init__(self, message: str, *, trace_id: str | None = None) -> None:
        super().__init__(message, error_type="config", trace_id=trace_id)


class LocalStoreError(TrackedError):
    def __init__(self, message: str, *, trace_id: str | None = None) -> None:
        super().__init__(message, error_type="local_store", trace_id=trace_id)


class RemoteStoreError(TrackedError):
    def __init__(self, message: str, *, trace_id: str | None = None) -> None:
        super().__init__(message, error_type="remote_store", trace_id=trace_id)


class ExternalServiceError(TrackedError):
    """A collaborator (payments, hosting, storage, analytics) rejected a call."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: Optional[int] = None,
        error_type: str = "external",
        trace_id: str | None = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(message, error_type=error_type, trace_id=trace_id)


class PaymentError(ExternalServiceError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, trace_id: str | None = None) -> None:
        super().__init__(message, provider="stripe", status_code=status_code, error_type="payment", trace_id=trace_id)


class PaymentNotVerifiedError(PaymentError):
    def __init__(self, reason: str, *, trace_id: str | None = None) -> None:
        self.reason = reason
        super().__init__(f"Payment not verified: {reason}", trace_id=trace_id)


class DeploymentError(ExternalServiceError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, trace_id: str | None = None) -> None:
        super().__init__(
            message,
            provider="vercel",
            status_code=status_code,
            error_type="deployment",
            trace_id=trace_id,
        )


class StorageError(ExternalServiceError):
    def __init__(self, message: str, *, trace_id: str | None = None) -> None:
        super().__init__(message, provider="object_storage", error_type="storage", trace_id=trace_id)


class ImageUploadError(StorageError):
    def __init__(self, slot_key: str, cause: BaseException | str, *, trace_id: str | None = None) -> None:
        self.slot_key = slot_key
        super().__init__(f"Image upload failed for {slot_key}: {cause}", trace_id=trace_id)


__all__ = [
    "new_trace_id",
    "TrackedError",
    "ConfigurationError",
    "LocalStoreError",
    "RemoteStoreError",
    "ExternalServiceError",
    "PaymentError",
    "PaymentNotVerifiedError",
    "DeploymentError",
    "StorageError",
    "ImageUploadError",
]
