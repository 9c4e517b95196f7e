"""
Blogstack Backend — Abstract Storage Backend Interface
=========================================================

What:  Abstract base class defining the contract for image storage backends.
How:   Concrete backends (local disk, S3, Cloudinary) inherit from
       StorageBackend and implement save(), delete() and health_check().
Who:   Called by FileService; selected once from settings.storage_backend.

The stored URL is the only handle the rest of the system keeps: it is
written to the blog row, returned to clients, and handed back to delete()
when the image is replaced or its post removed.
"""

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """
    Abstract interface for where uploaded blog images live.

    Contract:
        - save() receives validated bytes and a unique filename and returns a URL
          that clients can load directly (or via GET /uploads for local storage)
        - delete() accepts a URL previously returned by save() of the same backend;
          deleting something already gone is not an error
        - Implementation-specific errors are wrapped in FileStorageError
    """

    #: Value of STORAGE_BACKEND that selects this implementation
    name: str = ""

    @abstractmethod
    async def save(self, content: bytes, filename: str, field: str, content_type: str) -> str:
        """
        Persist one image.

        Args:
            content:      Raw image bytes (already validated by FileService)
            filename:     Unique filename, e.g. "coverImage-1700000000000-123456789.png"
            field:        Multipart field the image came from (coverImage / contentImages)
            content_type: Declared MIME type, forwarded as object metadata

        Returns:
            Public URL (or server-relative path) of the stored image.

        Raises:
            FileStorageError: The backend rejected or failed the write.
        """
        ...

    @abstractmethod
    async def delete(self, url: str) -> None:
        """
        Remove a previously stored image.

        Raises:
            FileStorageError: The backend failed for a reason other than
                the object being absent.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Lightweight reachability probe used by GET /health.

        Returns: True if the backend can currently accept writes, False otherwise.
        """
        ...
