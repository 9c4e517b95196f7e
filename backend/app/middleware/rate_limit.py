"""
Blogstack Backend — Rate Limiting Middleware
===============================================

What:  Per-IP sliding window limit on API requests.
How:   Keeps the timestamps of each client's recent requests in memory.
       A request is rejected with 429 once the client already has
       RATE_LIMIT_REQUESTS timestamps inside the last RATE_LIMIT_WINDOW
       seconds (defaults: 300 per 15 minutes).

    Retry-After is the number of seconds until the oldest counted
    request leaves the window.

Limits:
    State lives in the worker process. Several uvicorn workers each keep
    their own counters, so the effective limit is multiplied by the worker count.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import RateLimitExceededError
from app.middleware.logging import client_address
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Purge idle clients after this many recorded requests
CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window limiter.

    Not limited:
        /health and the API docs (probes and humans reading docs),
        /uploads/* (one page view can load a dozen images).
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}
    EXCLUDED_PREFIXES = ("/uploads/",)

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._recorded = 0

    def is_excluded(self, path: str) -> bool:
        return path in self.EXCLUDED_PATHS or path.startswith(self.EXCLUDED_PREFIXES)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if self.is_excluded(request.url.path):
            return await call_next(request)

        ip = client_address(request)
        now = time.time()
        window_start = now - settings.rate_limit_window

        recent = [ts for ts in self._requests[ip] if ts > window_start]
        self._requests[ip] = recent

        if len(recent) >= settings.rate_limit_requests:
            retry_after = int(recent[0] + settings.rate_limit_window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                ip,
                len(recent),
                settings.rate_limit_window,
            )
            return self.reject(RateLimitExceededError(retry_after=retry_after))

        recent.append(now)
        self._recorded += 1
        if self._recorded % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    @staticmethod
    def reject(exc: RateLimitExceededError) -> JSONResponse:
        # Raised errors never reach the app's exception handlers from here
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "details": exc.context,
                "request_id": request_id_var.get(""),
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Dropped rate limit state for %d idle clients", len(inactive))
