"""
Blogstack Backend — User SQLAlchemy Model
============================================

What:  ORM model representing the `users` table.
Who:   Used by AuthService (signup, login, token resolution) and as the
       author side of the Blog relationship.

Table Design:
    - UUID primary key, generated in Python so SQLite test databases work too
    - email: unique, stored lower-cased (AuthService normalizes before insert/lookup)
    - password_hash: bcrypt hash, never serialized by any response schema
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.blog import Blog


class User(Base):
    """A registered author."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Display name shown as the blog byline",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login identifier, lower-cased",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the user's password",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    blogs: Mapped[List["Blog"]] = relationship(
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
