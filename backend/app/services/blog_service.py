"""
Blogstack Backend — Blog Service (Business Logic)
====================================================

What:  Create, read, update, delete and paginate blog posts.
How:   Composes FileService (image validation + storage) with single-row
       SQLAlchemy operations on the `blogs` table.
Who:   Called by the /api/blogs route handlers.

Write Flow (POST /api/blogs):
    ┌────────────┐    ┌──────────────┐    ┌─────────────┐    ┌──────────┐
    │  Validate  │───▶│ Store images │───▶│ Insert row  │───▶│ Response │
    │  fields    │    │ (FileServ)   │    │ (commit)    │    │          │
    └────────────┘    └──────────────┘    └─────────────┘    └──────────┘
    If the insert fails, the images stored for it are deleted again.
    Writes commit here, before any image is deleted: a failed commit must
    never leave a row pointing at removed files.

Ownership:
    Only a post's author may update or delete it (PermissionDeniedError → 403).
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError, PermissionDeniedError, ValidationError
from app.models.blog import Blog
from app.models.user import User
from app.schemas.blog import (
    AuthorSummary,
    BlogListResponse,
    BlogResponse,
    MessageResponse,
    PaginationParams,
)
from app.services.file_service import UploadedImage, file_service

logger = logging.getLogger(__name__)

BLOG_NOT_FOUND = "Blog not found"


class BlogService:
    """
    Business logic layer for blog operations.

    Error Handling Strategy:
        Missing or malformed ids become NotFoundError. SQLAlchemy failures are
        wrapped in DatabaseError (internal details go to the log only).
        Validation, permission and storage errors propagate unchanged.
    """

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def validate_fields(title: Optional[str], content: Optional[str]) -> str:
        """
        Enforce required post fields.

        Returns: The trimmed title.
        Raises:  ValidationError listing every missing field.
        """
        errors = []
        clean_title = (title or "").strip()
        if not clean_title:
            errors.append({"field": "title", "msg": "Title is required"})
        if not (content or "").strip():
            errors.append({"field": "content", "msg": "Content is required"})
        if errors:
            raise ValidationError(message=errors[0]["msg"], errors=errors)
        return clean_title

    @staticmethod
    def to_response(blog: Blog) -> BlogResponse:
        author = blog.author
        return BlogResponse(
            id=blog.id,
            title=blog.title,
            content=blog.content,
            cover_image=blog.cover_image or "",
            content_images=list(blog.content_images or []),
            author=AuthorSummary(id=author.id, name=author.name, email=author.email),
            created_at=blog.created_at,
            updated_at=blog.updated_at,
        )

    @staticmethod
    def _parse_id(blog_id: str) -> UUID:
        try:
            return UUID(str(blog_id))
        except ValueError:
            raise NotFoundError(resource="blog", resource_id=str(blog_id), message=BLOG_NOT_FOUND)

    async def _load(self, db: AsyncSession, blog_id: str) -> Blog:
        blog_uuid = self._parse_id(blog_id)
        try:
            result = await db.execute(select(Blog).where(Blog.id == blog_uuid))
            blog = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching blog %s: %s", blog_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the blog. Please try again.",
                context={"blog_id": str(blog_id)},
            )

        if blog is None:
            raise NotFoundError(resource="blog", resource_id=str(blog_id), message=BLOG_NOT_FOUND)
        return blog

    @staticmethod
    def _ensure_author(blog: Blog, user: User) -> None:
        if blog.author_id != user.id:
            logger.warning("User %s tried to modify blog %s owned by %s", user.id, blog.id, blog.author_id)
            raise PermissionDeniedError(
                message="User not authorized",
                context={"blog_id": str(blog.id), "user_id": str(user.id)},
            )

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_blogs(self, db: AsyncSession, params: PaginationParams) -> BlogListResponse:
        """
        One page of posts, newest first, with their authors.

        Query plan:
            SELECT count(id) FROM blogs
            SELECT * FROM blogs ORDER BY created_at DESC, id DESC
            LIMIT :limit OFFSET :offset
            → idx_blogs_created_at

        A page past the last one is answered from the count alone; its
        offset may not even fit a 64-bit integer.
        """
        try:
            count_result = await db.execute(select(func.count(Blog.id)))
            total = count_result.scalar() or 0

            blogs: List[Blog] = []
            if params.offset < total:
                query = (
                    select(Blog)
                    .order_by(desc(Blog.created_at), desc(Blog.id))
                    .offset(params.offset)
                    .limit(params.limit)
                )
                result = await db.execute(query)
                blogs = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing blogs: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve blogs. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return BlogListResponse(
            blogs=[self.to_response(blog) for blog in blogs],
            current_page=params.page,
            total_pages=BlogListResponse.page_count(total, params.limit),
            total_blogs=total,
        )

    async def get_blog(self, db: AsyncSession, blog_id: str) -> BlogResponse:
        """
        Raises:
            NotFoundError: Unknown or malformed id (→ 404 "Blog not found").
        """
        return self.to_response(await self._load(db, blog_id))

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_blog(
        self,
        db: AsyncSession,
        author: User,
        title: Optional[str],
        content: Optional[str],
        cover: Optional[UploadedImage] = None,
        contents: Iterable[UploadedImage] = (),
    ) -> BlogResponse:
        """
        Create a post owned by `author`.

        Raises:
            ValidationError:  Missing title/content or a rejected image.
            FileStorageError: The storage backend failed.
            DatabaseError:    The insert failed (stored images are removed).
        """
        clean_title = self.validate_fields(title, content)
        stored = await file_service.store_images(cover, contents)

        blog = Blog(
            title=clean_title,
            content=content,
            cover_image=stored.cover_url or "",
            content_images=stored.content_urls,
            author=author,
        )
        try:
            db.add(blog)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Error creating blog: %s", str(e), exc_info=True)
            await file_service.delete_images(stored.all_urls)
            raise DatabaseError(
                message="Error creating blog",
                context={"error_type": type(e).__name__},
            )

        logger.info(
            "Blog %s created by %s (cover=%s, content_images=%d)",
            blog.id,
            author.id,
            bool(stored.cover_url),
            len(stored.content_urls),
        )
        return self.to_response(blog)

    async def update_blog(
        self,
        db: AsyncSession,
        user: User,
        blog_id: str,
        title: Optional[str],
        content: Optional[str],
        cover: Optional[UploadedImage] = None,
        contents: Iterable[UploadedImage] = (),
    ) -> BlogResponse:
        """
        Replace a post's title and content, and optionally its images.

        Image rules:
            - a new cover replaces the old cover (old file deleted)
            - a new set of content images replaces all old ones (old files deleted)
            - omitted image fields keep the existing images

        Raises:
            ValidationError, NotFoundError, PermissionDeniedError,
            FileStorageError, DatabaseError
        """
        clean_title = self.validate_fields(title, content)
        blog = await self._load(db, blog_id)
        self._ensure_author(blog, user)

        contents = list(contents)
        stored = await file_service.store_images(cover, contents)

        replaced: List[str] = []
        if stored.cover_url:
            if blog.cover_image:
                replaced.append(blog.cover_image)
            blog.cover_image = stored.cover_url
        if stored.content_urls:
            replaced.extend(blog.content_images or [])
            blog.content_images = list(stored.content_urls)

        blog.title = clean_title
        blog.content = content
        blog.updated_at = datetime.now(timezone.utc)

        try:
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Error updating blog %s: %s", blog_id, str(e), exc_info=True)
            await file_service.delete_images(stored.all_urls)
            raise DatabaseError(
                message="Error updating blog",
                context={"blog_id": str(blog_id), "error_type": type(e).__name__},
            )

        await file_service.delete_images(replaced)
        logger.info("Blog %s updated (replaced %d images)", blog.id, len(replaced))
        return self.to_response(blog)

    async def delete_blog(self, db: AsyncSession, user: User, blog_id: str) -> MessageResponse:
        """
        Delete a post and its stored images.

        Raises:
            NotFoundError, PermissionDeniedError, DatabaseError
        """
        blog = await self._load(db, blog_id)
        self._ensure_author(blog, user)
        image_urls = blog.image_urls

        try:
            await db.delete(blog)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Error in delete blog %s: %s", blog_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Server Error",
                context={"blog_id": str(blog_id), "error_type": type(e).__name__},
            )

        await file_service.delete_images(image_urls)
        logger.info("Blog %s deleted with %d images", blog_id, len(image_urls))
        return MessageResponse(message="Blog removed")


# ── Singleton Instance ────────────────────────────────────────────────────
blog_service = BlogService()
