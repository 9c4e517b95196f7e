"""
Blogstack Backend — Custom Exception Hierarchy
=================================================

What:  The error types services and dependencies raise.
How:   Every error has a client-safe `message` and a `context` dict for the
       logs. main.py registers one handler per class and turns it into the
       JSON error body with the status code listed below.
Who:   Raised by services, dependencies and middleware; caught by global handlers.

Exception Hierarchy:
    BlogstackError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional


class BlogstackError(Exception):
    """
    Base exception for all Blogstack application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only some handlers return it)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BlogstackError):
    """
    Raised when client input fails a business rule.

    When:    Blank title/content, unsupported image type, file too large,
             too many files.
    HTTP:    400 Bad Request

    `errors` carries one entry per failing field so forms can highlight
    each of them:
        {"errors": [{"field": "title", "msg": "Title is required"}]}
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        if errors:
            ctx["errors"] = errors
        super().__init__(message=message, context=ctx)
        self.field = field
        self.errors = errors or []


class AuthenticationError(BlogstackError):
    """
    Raised when the caller is not (or no longer) authenticated.

    When:    Missing token, bad signature, expired token, unknown user,
             wrong email/password at login.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(BlogstackError):
    """
    Raised when an authenticated user acts on a resource they don't own.

    When:    Updating or deleting another author's blog.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "User not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(BlogstackError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PUT/DELETE /api/blogs/{id} with an unknown or malformed id.
    HTTP:    404 Not Found

    SQLAlchemy returns None for missing records; the service layer converts
    that into this exception so routes stay free of None checks.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(BlogstackError):
    """
    Raised when a write would violate a uniqueness rule.

    When:    Signing up with an email that is already registered.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(BlogstackError):
    """
    Raised when a storage backend operation fails.

    When:    Disk full or permission denied (local), S3 client errors,
             Cloudinary API errors after retries are exhausted.
    HTTP:    500 Internal Server Error

    The backend name and raw SDK error go into `context` (logged only).
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BlogstackError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Detailed error
    info (SQL, constraint name) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(BlogstackError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
