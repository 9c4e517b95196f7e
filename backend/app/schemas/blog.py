"""
Blogstack Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the API contract between clients and backend.
How:   FastAPI uses these models to serialize responses and generate the
       OpenAPI documentation automatically.
Who:   Used by route handlers as response models and by services as return types.

Wire format:
    Fields are camelCase on the wire (`coverImage`, `createdAt`) and records
    expose their identifier as `_id`, which is the contract the browser client
    was written against. Python code uses snake_case names; FastAPI
    serializes response models by alias.
"""

import math
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every wire schema: camelCase aliases, populate by field name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Response Models: what the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class AuthorSummary(CamelModel):
    """
    What:  The populated author of a blog post.
    Why:   Posts are rendered with a byline; the password hash and account
           metadata never leave the server.
    """
    id: uuid.UUID = Field(alias="_id", description="Author's user id")
    name: str = Field(description="Author display name")
    email: str = Field(description="Author email")


class BlogResponse(CamelModel):
    """
    What:  Full representation of a blog post.
    Who:   Returned by GET /api/blogs/{id}, POST /api/blogs, PUT /api/blogs/{id},
           and as items of the listing.
    """
    id: uuid.UUID = Field(alias="_id", description="Unique blog identifier (UUID)")
    title: str = Field(description="Post title (trimmed)")
    content: str = Field(description="Post body")
    cover_image: str = Field(default="", description="Cover image URL, empty when absent")
    content_images: List[str] = Field(default_factory=list, description="Inline image URLs")
    author: AuthorSummary = Field(description="Populated author")
    created_at: datetime = Field(description="Creation timestamp (UTC)")
    updated_at: datetime = Field(description="Last modification timestamp (UTC)")


class BlogListResponse(CamelModel):
    """
    What:  Paginated response wrapper for GET /api/blogs.

    Pagination strategy:
        Page-number pagination: the browser client renders numbered pages
        and needs totals. totalPages = ceil(totalBlogs / limit).
    """
    blogs: List[BlogResponse] = Field(description="Posts on this page, newest first")
    current_page: int = Field(description="1-based page number that was served")
    total_pages: int = Field(description="Number of pages at the requested limit")
    total_blogs: int = Field(description="Total number of posts")

    @staticmethod
    def page_count(total: int, limit: int) -> int:
        return math.ceil(total / limit) if limit else 0


class MessageResponse(BaseModel):
    """Plain acknowledgement, e.g. {"message": "Blog removed"}."""
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Query Parameter Models
# ══════════════════════════════════════════════════════════════════════════


class PaginationParams(BaseModel):
    """
    What:  Normalized page/limit for the listing endpoint.
    How:   The route accepts raw strings; `from_query` falls back to defaults for
           anything missing, non-numeric, or below 1, and caps the limit.
    """
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    @classmethod
    def from_query(
        cls,
        page: Optional[str],
        limit: Optional[str],
        default_limit: int,
        max_limit: int,
    ) -> "PaginationParams":
        return cls(
            page=_positive_int(page, 1),
            limit=min(_positive_int(limit, default_limit), max_limit),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _positive_int(raw: Optional[str], fallback: int) -> int:
    try:
        value = int(raw) if raw is not None else fallback
    except (TypeError, ValueError):
        return fallback
    return value if value >= 1 else fallback


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Title is required",
            "errors": [{"field": "title", "msg": "Title is required"}],
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    errors: Optional[List[dict]] = Field(
        default=None, description="Per-field validation errors, each with `msg`"
    )
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Storage backend status: available, unavailable")
    storage_backend: str = Field(description="Configured storage backend")
    uptime_seconds: float = Field(description="Seconds since service started")
