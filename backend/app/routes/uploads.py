"""
Blogstack Backend — Uploaded Image Route
===========================================

What:  GET /uploads/{path} serves images stored by the local storage backend.
Who:   Requested by <img> tags whose src is a "/uploads/<name>" URL.
When:  Only with STORAGE_BACKEND=local; S3 and Cloudinary URLs point at
       those services directly, so here every path is a 404.

Security:
    Paths are resolved under STORAGE_ROOT; anything that escapes it
    (e.g. "../../etc/passwd") is rejected with 400.
"""

import logging
import mimetypes

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.exceptions import NotFoundError
from app.schemas.blog import ErrorResponse
from app.services.file_service import file_service
from app.services.storage.local_backend import LocalStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])


@router.get(
    "/uploads/{file_path:path}",
    summary="Serve an uploaded image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid file path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_upload(file_path: str) -> FileResponse:
    backend = file_service.backend
    if not isinstance(backend, LocalStorage):
        raise NotFoundError(resource="file", resource_id=file_path)

    full_path = backend.resolve(file_path)
    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    media_type = mimetypes.guess_type(full_path.name)[0] or "application/octet-stream"
    return FileResponse(
        path=str(full_path),
        media_type=media_type,
        headers={"Cache-Control": "public, max-age=86400"},
    )
