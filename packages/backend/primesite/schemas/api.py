from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .site import SiteInstance


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClaimRequest(_ApiModel):
    checkout_session_id: Optional[str] = None
    site: Optional[SiteInstance] = None
    site_id: Optional[str] = None


class CheckoutRequest(_ApiModel):
    site_id: Optional[str] = None


class DomainCheckoutRequest(_ApiModel):
    domain: Optional[str] = None
    vercel_price: Optional[float] = None
    site_id: Optional[str] = None
    project_name: Optional[str] = None


class PortalRequest(_ApiModel):
    customer_id: Optional[str] = None


class SessionRequest(_ApiModel):
    session_id: Optional[str] = None


class DomainCheckRequest(_ApiModel):
    domain: Optional[str] = None


class ImageUploadRequest(_ApiModel):
    site_id: Optional[str] = None
    filename: Optional[str] = None
    base64: Optional[str] = None


class SignedUrlsRequest(_ApiModel):
    site_id: Optional[str] = None
    filenames: list[str] = []


def missing_fields(model: BaseModel, *names: str) -> list[str]:
    """Camel-case names of required body fields that are empty."""
    missing = []
    for name in names:
        value = getattr(model, name)
        if value is None or value == "" or value == []:
            missing.append(to_camel(name))
    return missing


__all__ = [
    "CheckoutRequest",
    "ClaimRequest",
    "DomainCheckRequest",
    "DomainCheckoutRequest",
    "ImageUploadRequest",
    "PortalRequest",
    "SessionRequest",
    "SignedUrlsRequest",
    "missing_fields",
]
