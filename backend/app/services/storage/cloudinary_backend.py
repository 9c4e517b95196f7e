"""
Blogstack Backend — Cloudinary Storage Backend
=================================================

What:  Stores uploaded images in a Cloudinary media library.
How:   cloudinary.uploader.upload into "<cloudinary_folder>/<field>-<suffix>",
       with an incoming "limit" transformation so stored images never exceed
       cloudinary_max_dimension on either side. The SDK is blocking, so calls
       run in Starlette's threadpool; uploads are retried with tenacity.
When:  STORAGE_BACKEND=cloudinary (requires CLOUDINARY_CLOUD_NAME,
       CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET).

URL format:
    https://res.cloudinary.com/<cloud>/image/upload/v1700000000/blog-app/coverImage-1700000000000-123456789.jpg
    Deletion recovers the public id "blog-app/coverImage-1700000000000-123456789".
"""

import io
import logging
import re
from pathlib import PurePosixPath
from typing import Optional

import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import GeneralError, RateLimited
from starlette.concurrency import run_in_threadpool
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import FileStorageError
from app.services.storage.base import StorageBackend

logger = logging.getLogger(__name__)

ALLOWED_FORMATS = ["jpg", "jpeg", "png", "gif"]

# "/upload/" followed by an optional "v<digits>/" version segment
_UPLOAD_SEGMENT = re.compile(r"/upload/(?:v\d+/)?")


class CloudinaryStorage(StorageBackend):
    """Cloudinary-hosted image store."""

    name = "cloudinary"

    def __init__(self):
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        self.folder = settings.cloudinary_folder.strip("/")
        self.max_dimension = settings.cloudinary_max_dimension
        logger.info("CloudinaryStorage initialized with folder=%s", self.folder)

    def public_id_for(self, filename: str) -> str:
        stem = PurePosixPath(filename).stem
        return f"{self.folder}/{stem}" if self.folder else stem

    @staticmethod
    def public_id_from_url(url: str) -> Optional[str]:
        match = _UPLOAD_SEGMENT.search(url)
        if not match:
            return None
        remainder = url[match.end():]
        public_id = str(PurePosixPath(remainder).with_suffix(""))
        return public_id or None

    async def save(self, content: bytes, filename: str, field: str, content_type: str) -> str:
        public_id = self.public_id_for(filename)
        try:
            result = await self._upload_with_retry(content, public_id)
        except CloudinaryError as e:
            logger.error("Cloudinary upload failed for %s: %s", public_id, str(e))
            raise FileStorageError(
                message="Failed to upload image to storage. Please try again.",
                context={"backend": self.name, "public_id": public_id, "error": str(e)},
            )

        url = result["secure_url"]
        logger.info("File uploaded to Cloudinary: %s (%d bytes, field=%s)", public_id, len(content), field)
        return url

    @retry(
        retry=retry_if_exception_type((GeneralError, RateLimited)),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _upload_with_retry(self, content: bytes, public_id: str) -> dict:
        return await run_in_threadpool(
            cloudinary.uploader.upload,
            io.BytesIO(content),
            public_id=public_id,
            resource_type="image",
            allowed_formats=ALLOWED_FORMATS,
            transformation=[
                {"width": self.max_dimension, "height": self.max_dimension, "crop": "limit"}
            ],
            overwrite=False,
        )

    async def delete(self, url: str) -> None:
        public_id = self.public_id_from_url(url)
        if public_id is None:
            logger.warning("CloudinaryStorage asked to delete a non-Cloudinary URL: %s", url)
            return
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.destroy, public_id, resource_type="image"
            )
        except CloudinaryError as e:
            logger.error("Error deleting file from Cloudinary %s: %s", public_id, str(e))
            raise FileStorageError(
                message="Failed to delete stored image.",
                context={"backend": self.name, "public_id": public_id, "error": str(e)},
            )
        # "not found" means it is already gone
        logger.info("Cloudinary destroy %s: %s", public_id, result.get("result"))

    async def health_check(self) -> bool:
        try:
            await run_in_threadpool(cloudinary.api.ping)
            return True
        except CloudinaryError as e:
            logger.warning("Cloudinary health check failed: %s", str(e))
            return False
