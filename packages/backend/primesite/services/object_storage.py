from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from ..config import Settings, get_settings
from ..exceptions import ConfigurationError, StorageError

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=31536000"

_DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[A-Za-z0-9.+/-]+);base64,(?P<data>.+)$", re.DOTALL)

_MIME_BY_PIL_FORMAT = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}


def _safe_name(name: str) -> str:
    value = re.sub(r"[^a-zA-Z0-9._-]+", "-", (name or "file").strip())
    return value or "file"


def _mime_from_extension(filename: str) -> str:
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return "image/png" if extension == "png" else "image/jpeg"


def decode_image_payload(payload: str, filename: str) -> tuple[bytes, str]:
    """Decode a ``data:`` URL or raw base64 string into bytes plus content type."""
    if not payload:
        raise ValueError("image data is required")
    data = payload.strip()
    content_type: Optional[str] = None
    if data.startswith("data:"):
        match = _DATA_URL_PATTERN.match(data)
        if not match:
            raise ValueError("Invalid base64 data URL format")
        content_type = match.group("mime")
        data = match.group("data")
    data = re.sub(r"\s+", "", data)
    if not data:
        raise ValueError("image data is required")
    data += "=" * (-len(data) % 4)
    try:
        raw = base64.b64decode(data, validate=True)
    except binascii.Error as exc:
        raise ValueError("invalid base64 image data") from exc
    if content_type is None:
        content_type = _sniff_content_type(raw) or _mime_from_extension(filename)
    return raw, content_type


def _sniff_content_type(raw: bytes) -> Optional[str]:
    try:
        with Image.open(io.BytesIO(raw)) as image:
            return _MIME_BY_PIL_FORMAT.get(image.format or "")
    except (UnidentifiedImageError, OSError):
        return None


@dataclass
class SignedUpload:
    filename: str
    signed_url: str
    public_url: str


class ObjectStorage:
    """S3-compatible bucket client (GCS interoperability by default)."""

    def __init__(self, settings: Optional[Settings] = None, client: Any = None) -> None:
        self.settings = settings or get_settings()
        self.bucket = (self.settings.storage_bucket or "").strip()
        self.public_base_url = self.settings.storage_public_base_url.rstrip("/")
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _build_client(self) -> Any:
        settings = self.settings
        if not settings.storage_access_key_id or not settings.storage_secret_access_key:
            raise ConfigurationError("Missing object storage credentials")
        return boto3.client(
            "s3",
            endpoint_url=settings.storage_endpoint_url,
            aws_access_key_id=settings.storage_access_key_id,
            aws_secret_access_key=settings.storage_secret_access_key,
            region_name=settings.storage_region,
        )

    def _require_bucket(self) -> str:
        if not self.bucket:
            raise ConfigurationError("Missing bucket name (GCS_BUCKET_NAME)")
        return self.bucket

    def key_for(self, site_id: str, filename: str) -> str:
        return f"{_safe_name(site_id)}/{_safe_name(filename)}"

    def public_url(self, site_id: str, filename: str) -> str:
        return f"{self.public_base_url}/{self._require_bucket()}/{self.key_for(site_id, filename)}"

    def upload_sync(self, site_id: str, filename: str, payload: str) -> str:
        bucket = self._require_bucket()
        client = self.client
        raw, content_type = decode_image_payload(payload, filename)
        key = self.key_for(site_id, filename)
        try:
            client.put_object(
                Bucket=bucket,
                Key=key,
                Body=raw,
                ContentType=content_type,
                CacheControl=CACHE_CONTROL,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to store {key}: {exc}") from exc
        url = self.public_url(site_id, filename)
        logger.info(
            "Stored image",
            extra={"data": {"key": key, "bytes": len(raw), "content_type": content_type}},
        )
        return url

    def signed_upload_urls_sync(self, site_id: str, filenames: list[str]) -> list[SignedUpload]:
        bucket = self._require_bucket()
        client = self.client
        uploads: list[SignedUpload] = []
        for filename in filenames:
            key = self.key_for(site_id, filename)
            try:
                signed = client.generate_presigned_url(
                    "put_object",
                    Params={"Bucket": bucket, "Key": key, "ContentType": "image/jpeg"},
                    ExpiresIn=self.settings.signed_url_ttl_seconds,
                )
            except (BotoCoreError, ClientError) as exc:
                raise StorageError(f"Failed to sign upload URL for {key}: {exc}") from exc
            uploads.append(
                SignedUpload(filename=filename, signed_url=signed, public_url=self.public_url(site_id, filename))
            )
        return uploads

    async def upload(self, site_id: str, filename: str, payload: str) -> str:
        return await asyncio.to_thread(self.upload_sync, site_id, filename, payload)

    async def signed_upload_urls(self, site_id: str, filenames: list[str]) -> list[SignedUpload]:
        return await asyncio.to_thread(self.signed_upload_urls_sync, site_id, filenames)


__all__ = ["CACHE_CONTROL", "ObjectStorage", "SignedUpload", "decode_image_payload"]
