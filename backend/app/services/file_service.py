"""
Blogstack Backend — Image Upload Service
===========================================

What:  Validates uploaded blog images and hands them to the configured storage backend.
How:   Checks counts, extension, declared MIME type, size and actual content
       (decoded with Pillow), generates a unique filename, then calls
       StorageBackend.save(). Cleanup of stored images goes through the same backend.
Who:   Called by BlogService when creating, updating and deleting posts.

Upload fields (multipart/form-data):
    coverImage     at most 1 file
    contentImages  at most MAX_CONTENT_IMAGES files (default 10)

Validation order (cheapest first):
    1. File counts per field
    2. Extension in {.jpg, .jpeg, .png, .gif}
    3. Declared Content-Type in the matching image/* set
    4. Non-empty and within MAX_FILE_SIZE
    5. Pillow can identify the bytes as JPEG, PNG or GIF

    Every file of a request is validated before any of them is stored, so
    a rejected request never leaves images behind.
"""

import io
import logging
import random
import time
from dataclasses import dataclass, field as dataclass_field
from pathlib import Path
from typing import Iterable, List, Optional

from PIL import Image, UnidentifiedImageError

from app.config import settings
from app.exceptions import FileStorageError, ValidationError
from app.services.storage import StorageBackend, build_storage_backend

logger = logging.getLogger(__name__)

COVER_FIELD = "coverImage"
CONTENT_FIELD = "contentImages"

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}

ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/pjpeg",
    "image/png",
    "image/gif",
}

# Pillow format names accepted after decoding
ALLOWED_IMAGE_FORMATS = {"JPEG", "PNG", "GIF"}

FILETYPES_MESSAGE = "File upload only supports the following filetypes: jpeg, jpg, png, gif"


@dataclass
class UploadedImage:
    """One file taken off a multipart request, fully read into memory."""
    field: str
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class StoredImages:
    """URLs produced by FileService.store_images (cover_url is None when no cover was sent)."""
    cover_url: Optional[str] = None
    content_urls: List[str] = dataclass_field(default_factory=list)

    @property
    def all_urls(self) -> List[str]:
        urls = [self.cover_url] if self.cover_url else []
        return urls + self.content_urls


class FileService:
    """
    Manages the lifecycle of uploaded blog images.

    Lifecycle:
        1. Route reads multipart files into UploadedImage objects
        2. store_images() validates the whole batch, then saves each file
        3. On a failed save, images already saved for the batch are deleted
        4. delete_images() removes images when a post drops or replaces them
    """

    def __init__(self, backend: Optional[StorageBackend] = None):
        """
        Args:
            backend: Storage backend override (used in tests). If None, the
                     backend named by settings.storage_backend is built on first use.
        """
        self._backend = backend

    @property
    def backend(self) -> StorageBackend:
        if self._backend is None:
            self._backend = build_storage_backend()
        return self._backend

    # ── Validation ────────────────────────────────────────────────────────

    def validate_counts(self, cover_count: int, content_count: int) -> None:
        if cover_count > 1 or content_count > settings.max_content_images:
            raise ValidationError(
                message="Too many files uploaded.",
                context={
                    "max_cover_images": 1,
                    "max_content_images": settings.max_content_images,
                    "received_cover_images": cover_count,
                    "received_content_images": content_count,
                },
            )

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=FILETYPES_MESSAGE,
                field="file",
                context={"filename": filename, "extension": ext},
            )
        return ext

    def validate_content_type(self, content_type: str, filename: str) -> None:
        mime = (content_type or "").split(";")[0].strip().lower()
        if mime not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=FILETYPES_MESSAGE,
                field="file",
                context={"filename": filename, "content_type": mime},
            )

    def validate_size(self, size: int, filename: str) -> None:
        if size == 0:
            raise ValidationError(
                message="Uploaded file is empty.",
                field="file",
                context={"filename": filename},
            )
        if size > settings.max_file_size:
            raise ValidationError(
                message=f"File size is too large. Maximum size is {settings.max_file_size_mb}MB.",
                field="file",
                context={"filename": filename, "size": size, "max_size": settings.max_file_size},
            )

    def validate_image_content(self, content: bytes, filename: str) -> str:
        """
        Decode the header with Pillow to confirm the bytes really are an allowed image.

        Returns: Detected Pillow format name (e.g. "PNG").
        Raises:  ValidationError when the content is not a JPEG, PNG or GIF.
        """
        try:
            with Image.open(io.BytesIO(content)) as image:
                image_format = image.format
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise ValidationError(
                message="Uploaded file is not a valid image.",
                field="file",
                context={"filename": filename, "error": str(e)},
            )

        if image_format not in ALLOWED_IMAGE_FORMATS:
            raise ValidationError(
                message=FILETYPES_MESSAGE,
                field="file",
                context={"filename": filename, "detected_format": image_format},
            )
        return image_format

    def validate_image(self, upload: UploadedImage) -> str:
        """Full per-file validation. Returns the normalized extension."""
        ext = self.validate_extension(upload.filename)
        self.validate_content_type(upload.content_type, upload.filename)
        self.validate_size(upload.size, upload.filename)
        self.validate_image_content(upload.content, upload.filename)
        return ext

    # ── Storage ───────────────────────────────────────────────────────────

    @staticmethod
    def generate_filename(field: str, extension: str) -> str:
        """
        Unique name "<field>-<epoch ms>-<random 9 digits><ext>".

        e.g. "coverImage-1700000000000-123456789.jpg"
        """
        suffix = f"{int(time.time() * 1000)}-{random.randint(0, 999_999_999)}"
        return f"{field}-{suffix}{extension}"

    async def store_images(
        self,
        cover: Optional[UploadedImage] = None,
        contents: Iterable[UploadedImage] = (),
    ) -> StoredImages:
        """
        Validate and store a request's images.

        Returns:
            StoredImages with the cover URL (if a cover was sent) and the
            content image URLs in upload order.

        Raises:
            ValidationError:  Any file breaks a rule (nothing is stored).
            FileStorageError: The backend failed (images stored so far are removed).
        """
        contents = list(contents)
        self.validate_counts(1 if cover else 0, len(contents))

        batch = ([cover] if cover else []) + contents
        extensions = [self.validate_image(upload) for upload in batch]

        stored = StoredImages()
        try:
            for upload, ext in zip(batch, extensions):
                url = await self.backend.save(
                    upload.content,
                    self.generate_filename(upload.field, ext),
                    upload.field,
                    upload.content_type,
                )
                if upload is cover:
                    stored.cover_url = url
                else:
                    stored.content_urls.append(url)
        except FileStorageError:
            await self.delete_images(stored.all_urls)
            raise

        if batch:
            logger.info(
                "Files uploaded successfully: coverImage=%s contentImages=%s",
                stored.cover_url or "none",
                stored.content_urls,
            )
        return stored

    async def delete_images(self, urls: Iterable[str]) -> None:
        """
        Remove stored images; failures are logged, not raised.

        When:    A post is deleted, its images are replaced, or a create/update
                 fails after its images were stored.
        """
        for url in urls:
            if not url:
                continue
            try:
                await self.backend.delete(url)
            except FileStorageError as e:
                logger.warning("Failed to delete image %s: %s | Context: %s", url, e.message, e.context)


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
