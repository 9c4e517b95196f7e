"""
Blogstack Backend — AWS S3 Storage Backend
=============================================

What:  Stores uploaded images as objects in an S3 bucket.
How:   boto3 `put_object` under "<s3_key_prefix>/<filename>"; the returned URL is
       the virtual-hosted object URL. boto3 is blocking, so every call runs in
       Starlette's threadpool; uploads are retried with tenacity.
When:  STORAGE_BACKEND=s3 (requires AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY,
       AWS_BUCKET_NAME, AWS_REGION).

URL format:
    https://<bucket>.s3.<region>.amazonaws.com/blog-images/coverImage-1700000000000-123456789.jpg
    Deletion recovers the object key as everything after ".com/".
"""

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
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


class S3Storage(StorageBackend):
    """S3 bucket image store."""

    name = "s3"

    def __init__(self, client: Optional[Any] = None):
        """
        Args:
            client: Pre-built boto3 S3 client (tests pass a stub). Built from
                    settings when omitted.
        """
        self.bucket = settings.aws_bucket_name
        self.region = settings.aws_region
        self.key_prefix = settings.s3_key_prefix.strip("/")
        self.client = client or boto3.client(
            "s3",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )
        logger.info("S3Storage initialized with bucket=%s region=%s", self.bucket, self.region)

    def key_for(self, filename: str) -> str:
        return f"{self.key_prefix}/{filename}" if self.key_prefix else filename

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    @staticmethod
    def key_from_url(url: str) -> Optional[str]:
        _, sep, key = url.partition(".com/")
        return key if sep and key else None

    async def save(self, content: bytes, filename: str, field: str, content_type: str) -> str:
        key = self.key_for(filename)
        try:
            await self._put_object_with_retry(key, content, field, content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed for key %s: %s", key, str(e))
            raise FileStorageError(
                message="Failed to upload image to storage. Please try again.",
                context={"backend": self.name, "key": key, "error": str(e)},
            )

        logger.info("File uploaded to S3: %s (%d bytes, field=%s)", key, len(content), field)
        return self.url_for(key)

    @retry(
        # Network-level failures only; ClientError (access denied, no such bucket) is final
        retry=retry_if_exception_type(BotoCoreError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _put_object_with_retry(
        self, key: str, content: bytes, field: str, content_type: str
    ) -> None:
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": content,
            "ContentType": content_type,
            "Metadata": {"fieldName": field},
        }
        if settings.s3_object_acl:
            params["ACL"] = settings.s3_object_acl
        await run_in_threadpool(self.client.put_object, **params)

    async def delete(self, url: str) -> None:
        key = self.key_from_url(url)
        if key is None:
            logger.warning("S3Storage asked to delete a URL without an object key: %s", url)
            return
        try:
            # delete_object succeeds for keys that no longer exist
            await run_in_threadpool(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("Error deleting file from S3 %s: %s", key, str(e))
            raise FileStorageError(
                message="Failed to delete stored image.",
                context={"backend": self.name, "key": key, "error": str(e)},
            )
        logger.info("File deleted successfully from S3: %s", key)

    async def health_check(self) -> bool:
        try:
            await run_in_threadpool(self.client.head_bucket, Bucket=self.bucket)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.warning("S3 health check failed: %s", str(e))
            return False
