"""
Blogstack Backend — Blog Route Handlers
==========================================

What:  CRUD endpoints for blog posts under /api/blogs.
How:   Extracts query/form/file data, delegates to BlogService, returns JSON.
Who:   Called by the browser client's home, detail, create and edit pages.

Access:
    GET    /api/blogs          public
    GET    /api/blogs/{id}     public
    POST   /api/blogs          token required
    PUT    /api/blogs/{id}     token required, author only
    DELETE /api/blogs/{id}     token required, author only

Write requests are multipart/form-data:
    title          text, required
    content        text, required
    coverImage     0..1 image file
    contentImages  0..10 image files
"""

import logging
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.blog import (
    BlogListResponse,
    BlogResponse,
    ErrorResponse,
    MessageResponse,
    PaginationParams,
)
from app.services.blog_service import blog_service
from app.services.file_service import (
    CONTENT_FIELD,
    COVER_FIELD,
    UploadedImage,
    file_service,
)

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/blogs", tags=["Blogs"])

_WRITE_ERRORS = {
    400: {"description": "Missing fields or rejected image", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    500: {"description": "Image storage failed", "model": ErrorResponse},
}


async def _read_uploads(
    covers: Optional[List[UploadFile]],
    contents: Optional[List[UploadFile]],
) -> Tuple[Optional[UploadedImage], List[UploadedImage]]:
    """
    Turn the multipart file fields into UploadedImage objects.

    Parts sent without a filename (an untouched file input) are ignored.
    Counts are checked before any file body is read.
    """
    covers = [f for f in covers or [] if f.filename]
    contents = [f for f in contents or [] if f.filename]
    file_service.validate_counts(len(covers), len(contents))

    async def read(upload: UploadFile, field: str) -> UploadedImage:
        try:
            data = await upload.read()
        finally:
            await upload.close()
        return UploadedImage(
            field=field,
            filename=upload.filename,
            content_type=upload.content_type or "",
            content=data,
        )

    cover = await read(covers[0], COVER_FIELD) if covers else None
    return cover, [await read(f, CONTENT_FIELD) for f in contents]


@router.get(
    "",
    response_model=BlogListResponse,
    responses={
        200: {"description": "One page of posts", "model": BlogListResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List blog posts",
    description=(
        "Returns posts newest first with their authors populated. `page` and "
        "`limit` fall back to 1 and the default page size when missing or invalid; "
        "`limit` is capped."
    ),
)
async def list_blogs(
    response: Response,
    page: Optional[str] = Query(default=None, description="1-based page number"),
    limit: Optional[str] = Query(default=None, description="Posts per page"),
    db: AsyncSession = Depends(get_db_session),
) -> BlogListResponse:
    params = PaginationParams.from_query(
        page,
        limit,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )
    result = await blog_service.list_blogs(db, params)

    response.headers["X-Total-Count"] = str(result.total_blogs)
    return result


@router.get(
    "/{blog_id}",
    response_model=BlogResponse,
    responses={
        200: {"description": "The post", "model": BlogResponse},
        404: {"description": "Blog not found", "model": ErrorResponse},
    },
    summary="Get a single blog post",
)
async def get_blog(
    blog_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> BlogResponse:
    """
    The id is taken as a plain string so a malformed id yields the same
    404 "Blog not found" as an unknown one (not a 422).
    """
    return await blog_service.get_blog(db, blog_id)


@router.post(
    "",
    status_code=201,
    response_model=BlogResponse,
    responses={201: {"description": "Post created", "model": BlogResponse}, **_WRITE_ERRORS},
    summary="Create a blog post",
)
async def create_blog(
    title: Optional[str] = Form(default=None),
    content: Optional[str] = Form(default=None),
    cover_image: Optional[List[UploadFile]] = File(default=None, alias=COVER_FIELD),
    content_images: Optional[List[UploadFile]] = File(default=None, alias=CONTENT_FIELD),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BlogResponse:
    """
    Create a post authored by the caller.

    Answers 201 Created rather than a plain 200; clients that only check
    for a 2xx status are unaffected.

    Error responses (handled by global exception handlers):
        HTTP 400: Missing title/content, too many files, bad type or size
        HTTP 401: No token / invalid token
        HTTP 500: Storage backend failure
    """
    cover, contents = await _read_uploads(cover_image, content_images)
    logger.info(
        "Create blog request from %s: cover=%s content_images=%d",
        user.id,
        bool(cover),
        len(contents),
    )
    return await blog_service.create_blog(db, user, title, content, cover, contents)


@router.put(
    "/{blog_id}",
    response_model=BlogResponse,
    responses={
        200: {"description": "Post updated", "model": BlogResponse},
        403: {"description": "Caller is not the author", "model": ErrorResponse},
        404: {"description": "Blog not found", "model": ErrorResponse},
        **_WRITE_ERRORS,
    },
    summary="Update a blog post",
    description=(
        "Replaces title and content. A new cover replaces the old one; a new set "
        "of content images replaces all old ones. Replaced files are deleted."
    ),
)
async def update_blog(
    blog_id: str,
    title: Optional[str] = Form(default=None),
    content: Optional[str] = Form(default=None),
    cover_image: Optional[List[UploadFile]] = File(default=None, alias=COVER_FIELD),
    content_images: Optional[List[UploadFile]] = File(default=None, alias=CONTENT_FIELD),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BlogResponse:
    """
    Only the author may update a post. Anyone else gets 403 "User not
    authorized", not 401: the caller is authenticated, just not allowed.
    """
    cover, contents = await _read_uploads(cover_image, content_images)
    return await blog_service.update_blog(db, user, blog_id, title, content, cover, contents)


@router.delete(
    "/{blog_id}",
    response_model=MessageResponse,
    responses={
        200: {"description": "Post removed", "model": MessageResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Caller is not the author", "model": ErrorResponse},
        404: {"description": "Blog not found", "model": ErrorResponse},
    },
    summary="Delete a blog post",
)
async def delete_blog(
    blog_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """Author only. Others get 403 rather than 401, like update."""
    return await blog_service.delete_blog(db, user, blog_id)
