"""
Blogstack Backend — Storage Backends
======================================

What:  Interchangeable destinations for uploaded blog images.
How:   STORAGE_BACKEND picks one implementation; everything else talks to the
       StorageBackend interface.

Backend Inventory:
    - local_backend.py:      LocalStorage      (STORAGE_BACKEND=local)
    - s3_backend.py:         S3Storage         (STORAGE_BACKEND=s3)
    - cloudinary_backend.py: CloudinaryStorage (STORAGE_BACKEND=cloudinary)
"""

import logging
from typing import Optional

from app.config import settings
from app.services.storage.base import StorageBackend

logger = logging.getLogger(__name__)


def build_storage_backend(name: Optional[str] = None) -> StorageBackend:
    """
    Instantiate the backend named `name` (defaults to settings.storage_backend).

    Backend modules (and their SDKs) are imported on demand.
    """
    name = (name or settings.storage_backend).lower()
    missing = settings.missing_storage_settings() if name == settings.storage_backend else []
    if missing:
        logger.error(
            "Storage backend '%s' is missing configuration: %s", name, ", ".join(missing)
        )

    if name == "local":
        from app.services.storage.local_backend import LocalStorage
        return LocalStorage()
    if name == "s3":
        from app.services.storage.s3_backend import S3Storage
        return S3Storage()
    if name == "cloudinary":
        from app.services.storage.cloudinary_backend import CloudinaryStorage
        return CloudinaryStorage()
    raise ValueError(f"Unknown storage backend '{name}'")


__all__ = ["StorageBackend", "build_storage_backend"]
