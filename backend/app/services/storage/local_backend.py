"""
Blogstack Backend — Local Disk Storage Backend
=================================================

What:  Stores uploaded images on the server's filesystem.
How:   Async writes with aiofiles into STORAGE_ROOT; URLs are
       "<uploads_url_prefix>/<filename>" and served by GET /uploads/{path}.
When:  STORAGE_BACKEND=local (the default, used in development and tests).

Directory Structure:
    uploads/
    ├── coverImage-1700000000000-123456789.jpg
    └── contentImages-1700000000001-987654321.png
"""

import logging
import os
from pathlib import Path
from typing import Optional

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, ValidationError
from app.services.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class LocalStorage(StorageBackend):
    """Filesystem-backed image store rooted at `storage_root`."""

    name = "local"

    def __init__(self, storage_root: Optional[str] = None, url_prefix: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
            url_prefix:   Override the URL prefix images are served under.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.url_prefix = (url_prefix or settings.uploads_url_prefix).rstrip("/")
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("LocalStorage initialized with storage_root=%s", self.storage_root)

    def resolve(self, relative_path: str) -> Path:
        """
        Map a path relative to the storage root onto the filesystem.

        Raises:
            ValidationError: The path escapes the storage root (e.g. "../../etc/passwd").
        """
        full_path = (self.storage_root / relative_path).resolve()
        if full_path != self.storage_root and self.storage_root not in full_path.parents:
            raise ValidationError(message="Invalid file path", field="path")
        return full_path

    def path_for_url(self, url: str) -> Optional[Path]:
        """Filesystem path for a URL produced by save(); None for foreign URLs."""
        prefix = f"{self.url_prefix}/"
        if not url.startswith(prefix):
            return None
        return self.resolve(url[len(prefix):])

    async def save(self, content: bytes, filename: str, field: str, content_type: str) -> str:
        absolute_path = self.resolve(filename)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"backend": self.name, "path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes, field=%s)", filename, len(content), field)
        return f"{self.url_prefix}/{filename}"

    async def delete(self, url: str) -> None:
        path = self.path_for_url(url)
        if path is None:
            logger.warning("LocalStorage asked to delete foreign URL: %s", url)
            return
        try:
            if path.exists():
                os.remove(path)
                logger.info("Deleted file: %s", path.name)
            else:
                logger.debug("Delete: file already gone: %s", path.name)
        except OSError as e:
            raise FileStorageError(
                message="Failed to delete stored image.",
                context={"backend": self.name, "path": str(path), "os_error": str(e)},
            )

    async def health_check(self) -> bool:
        return self.storage_root.is_dir() and os.access(self.storage_root, os.W_OK)
