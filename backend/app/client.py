"""
Blogstack Backend — Python API Client
========================================

What:  Synchronous client for the Blogstack HTTP API.
How:   Wraps httpx.Client; the session token returned by signup/login is
       kept on the instance and sent as the x-auth-token header.
Who:   Scripts, integration checks, and anything that wants to drive the API
       without a browser.

Usage:
    with BlogClient("http://localhost:5000") as client:
        client.login("ada@example.com", "secret1")
        post = client.create_blog("Hello", "First post", cover_image="cover.png")
        client.delete_blog(post["_id"])

Images are given either as a filesystem path or as a
(filename, bytes, content_type) tuple.
"""

import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import httpx

logger = logging.getLogger(__name__)

TOKEN_HEADER = "x-auth-token"
DEFAULT_TIMEOUT = httpx.Timeout(connect=10.0, read=60.0, write=60.0, pool=10.0)

ImageInput = Union[str, Path, Tuple[str, bytes, str]]


class BlogClientError(Exception):
    """
    A request failed.

    Attributes:
        status_code: HTTP status (0 when no response was received)
        message:     Server-provided message, or a local description
        payload:     Decoded JSON body when there was one
    """

    def __init__(self, status_code: int, message: str, payload: Optional[Any] = None):
        self.status_code = status_code
        self.message = message
        self.payload = payload
        super().__init__(f"{status_code}: {message}" if status_code else message)


def _image_part(image: ImageInput) -> Tuple[str, bytes, str]:
    if isinstance(image, tuple):
        return image
    path = Path(image)
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return path.name, path.read_bytes(), content_type


def _error_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        if payload.get("message"):
            return str(payload["message"])
        detail = payload.get("detail")
        if isinstance(detail, list) and detail:
            return str(detail[0].get("msg", fallback))
        if detail:
            return str(detail)
    return fallback


class BlogClient:
    """
    Client for one Blogstack server.

    Args:
        base_url:  Server root, e.g. "http://localhost:5000"
        token:     Session token from an earlier login
        transport: httpx transport override (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    ):
        self.token = token
        self._http = httpx.Client(base_url=base_url.rstrip("/"), transport=transport, timeout=timeout)

    def __enter__(self) -> "BlogClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # ── Plumbing ──────────────────────────────────────────────────────────

    def _headers(self) -> Dict[str, str]:
        return {TOKEN_HEADER: self.token} if self.token else {}

    def _require_token(self, action: str) -> None:
        if not self.token:
            raise BlogClientError(0, f"You must be logged in to {action}.")

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, str(exc))
            raise BlogClientError(0, f"Request failed: {exc}") from exc

        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = _error_message(payload, response.reason_phrase or "Request failed")
            logger.warning("%s %s → %d %s", method, path, response.status_code, message)
            raise BlogClientError(response.status_code, message, payload)
        return response

    @staticmethod
    def _blog_form(
        title: str,
        content: str,
        cover_image: Optional[ImageInput],
        content_images: Iterable[ImageInput],
    ) -> Dict[str, Any]:
        files: List[Tuple[str, Tuple[str, bytes, str]]] = []
        if cover_image is not None:
            files.append(("coverImage", _image_part(cover_image)))
        files.extend(("contentImages", _image_part(image)) for image in content_images)

        form: Dict[str, Any] = {"data": {"title": title, "content": content}}
        if files:
            form["files"] = files
        return form

    # ── Auth ──────────────────────────────────────────────────────────────

    def signup(self, name: str, email: str, password: str) -> str:
        """Create an account; the returned token is also stored on the client."""
        response = self._request(
            "POST", "/api/auth/signup", json={"name": name, "email": email, "password": password}
        )
        self.token = response.json()["token"]
        return self.token

    def login(self, email: str, password: str) -> str:
        response = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.token = response.json()["token"]
        return self.token

    def logout(self) -> None:
        self.token = None

    def get_user(self) -> Dict[str, Any]:
        return self._request("GET", "/api/auth/user").json()

    # ── Blogs ─────────────────────────────────────────────────────────────

    def get_blogs(self, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """One page: {"blogs", "currentPage", "totalPages", "totalBlogs"}."""
        return self._request("GET", "/api/blogs", params={"page": page, "limit": limit}).json()

    def get_blog(self, blog_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/blogs/{blog_id}").json()

    def create_blog(
        self,
        title: str,
        content: str,
        cover_image: Optional[ImageInput] = None,
        content_images: Iterable[ImageInput] = (),
    ) -> Dict[str, Any]:
        form = self._blog_form(title, content, cover_image, content_images)
        return self._request("POST", "/api/blogs", **form).json()

    def update_blog(
        self,
        blog_id: str,
        title: str,
        content: str,
        cover_image: Optional[ImageInput] = None,
        content_images: Iterable[ImageInput] = (),
    ) -> Dict[str, Any]:
        """Omitted images keep the post's current ones; given ones replace them."""
        form = self._blog_form(title, content, cover_image, content_images)
        return self._request("PUT", f"/api/blogs/{blog_id}", **form).json()

    def delete_blog(self, blog_id: str) -> Dict[str, Any]:
        self._require_token("delete a blog")
        return self._request("DELETE", f"/api/blogs/{blog_id}").json()
