"""Signed cover-image uploads to Cloudinary."""

import hashlib
import logging
import time
from typing import Callable, Optional

import httpx
from fastapi import HTTPException, status

from voyager.core.config import settings
from voyager.schemas.media import UploadedImage

logger = logging.getLogger("voyager.media")


def sign_upload_params(params: dict[str, str], api_secret: str) -> str:
    """Cloudinary signature: SHA-1 of the sorted `k=v&...` string followed by the API secret."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryUploader:
    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.transport = transport
        self.clock = clock

    async def upload(self, filename: str, content: bytes, content_type: str | None = None) -> UploadedImage:
        cloud_name = settings.CLOUDINARY_CLOUD_NAME
        api_key = settings.CLOUDINARY_API_KEY
        api_secret = settings.CLOUDINARY_API_SECRET
        if not all([cloud_name, api_key, api_secret]):
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Cloudinary credentials not configured",
            )

        params = {"folder": settings.CLOUDINARY_FOLDER, "timestamp": str(round(self.clock()))}
        form = {**params, "api_key": api_key, "signature": sign_upload_params(params, api_secret)}
        files = {"file": (filename or "upload", content, content_type or "application/octet-stream")}

        async with httpx.AsyncClient(timeout=60, transport=self.transport) as client:
            resp = await client.post(
                f"https://api.cloudinary.com/v1_1/{cloud_name}/image/upload",
                data=form,
                files=files,
            )

        if resp.status_code != 200:
            try:
                message = resp.json().get("error", {}).get("message") or "Upload failed"
            except ValueError:
                message = "Upload failed"
            logger.error("Cloudinary upload failed (%s): %s", resp.status_code, message)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)

        result = resp.json()
        return UploadedImage(url=result["secure_url"], public_id=result["public_id"])
