"""
Blogstack Backend — Blog SQLAlchemy Model
============================================

What:  ORM model representing the `blogs` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by BlogService for CRUD operations and by Alembic for schema management.

Table Design:
    - UUID primary key
    - title: stored trimmed (BlogService strips it before assignment)
    - cover_image: URL of the cover image, "" when the post has none
    - content_images: JSON array of image URLs, in upload order
    - author_id: FK to users; deleting a user deletes their posts
    - created_at / updated_at: UTC, updated_at refreshed on every save

    Index on created_at DESC: the listing endpoint always orders newest first.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Blog(Base):
    """
    A blog post with optional cover and inline images.

    Lifecycle:
        1. Created by its author (POST /api/blogs), images uploaded first
        2. Updated only by its author; new images replace the old ones
        3. Deleted only by its author; stored images are removed with it

    The author is eager-loaded with `selectin` so every query returns posts
    ready to serialize with their byline (no lazy loads under asyncio).
    """

    __tablename__ = "blogs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    cover_image: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        default="",
        comment="URL of the cover image; empty string when absent",
    )

    content_images: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="URLs of images embedded in the post body",
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    author: Mapped["User"] = relationship(back_populates="blogs", lazy="selectin")

    __table_args__ = (
        Index("idx_blogs_created_at", created_at.desc()),
    )

    @property
    def image_urls(self) -> List[str]:
        """Every stored image URL of this post (cover first)."""
        urls = [self.cover_image] if self.cover_image else []
        return urls + list(self.content_images or [])

    def __repr__(self) -> str:
        return f"<Blog(id={self.id}, title='{self.title[:30]}', author_id={self.author_id})>"
