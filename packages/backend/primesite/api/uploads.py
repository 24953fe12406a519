from __future__ import annotations

from fastapi import APIRouter, Depends

from ..exceptions import TrackedError
from ..schemas.api import ImageUploadRequest, SignedUrlsRequest, missing_fields
from ..services.object_storage import ObjectStorage
from .deps import get_object_storage, raise_http_error, require_fields

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


@router.post("/image")
async def upload_image(
    payload: ImageUploadRequest,
    storage: ObjectStorage = Depends(get_object_storage),
):
    require_fields(missing_fields(payload, "site_id", "filename", "base64"))
    try:
        public_url = await storage.upload(payload.site_id, payload.filename, payload.base64)
    except (TrackedError, ValueError) as exc:
        raise_http_error(exc)
    return {"publicUrl": public_url}


@router.post("/signed-urls")
async def signed_urls(
    payload: SignedUrlsRequest,
    storage: ObjectStorage = Depends(get_object_storage),
):
    require_fields(missing_fields(payload, "site_id", "filenames"))
    try:
        uploads = await storage.signed_upload_urls(payload.site_id, payload.filenames)
    except TrackedError as exc:
        raise_http_error(exc)
    return {
        "urls": [
            {"filename": item.filename, "signedUrl": item.signed_url, "publicUrl": item.public_url}
            for item in uploads
        ]
    }
