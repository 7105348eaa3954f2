"""
Football Academy Backend — Rate Limiting Middleware
=====================================================

What:  Per-IP sliding window rate limiter with a stricter window for login.
How:   Keeps request timestamps per (bucket, IP) in memory. A request is
       rejected with 429 and Retry-After once the bucket holds the limit.
Who:   Applied to every request via Starlette middleware.

Buckets:
    login    POST /api/auth/login       LOGIN_RATE_LIMIT_REQUESTS per LOGIN_RATE_LIMIT_WINDOW
    general  every other path           RATE_LIMIT_REQUESTS per RATE_LIMIT_WINDOW

The state lives in the process, so each uvicorn worker counts separately.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from academy.config import settings
from academy.exceptions import RateLimitExceededError
from academy.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/auth/login"
CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding window limiter."""

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[Tuple[str, str], List[float]] = defaultdict(list)
        self._seen = 0

    @staticmethod
    def _bucket(request: Request) -> Tuple[str, int, int]:
        if request.method == "POST" and request.url.path == LOGIN_PATH:
            return "login", settings.login_rate_limit_requests, settings.login_rate_limit_window
        return "general", settings.rate_limit_requests, settings.rate_limit_window

    def check(self, key: Tuple[str, str], limit: int, window: int, now: float) -> Optional[int]:
        """
        Record a hit for `key` and return None, or return the seconds to wait
        when the window is already full (the hit is not recorded then).
        """
        window_start = now - window
        hits = [ts for ts in self._requests[key] if ts > window_start]
        self._requests[key] = hits

        if len(hits) >= limit:
            return int(hits[0] + window - now) + 1

        hits.append(now)
        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._cleanup_inactive(now)
        return None

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        bucket, limit, window = self._bucket(request)

        retry_after = self.check((bucket, client_ip), limit, window, time.time())
        if retry_after is not None:
            logger.warning(
                "Rate limit exceeded for IP %s on %s bucket (%d requests / %ds)",
                client_ip,
                bucket,
                limit,
                window,
            )
            exc = RateLimitExceededError(retry_after=retry_after, context={"bucket": bucket})
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    def _cleanup_inactive(self, now: float) -> None:
        """Drop keys whose newest hit is older than the longest window."""
        horizon = now - max(settings.rate_limit_window, settings.login_rate_limit_window)
        stale = [key for key, hits in self._requests.items() if not hits or hits[-1] < horizon]
        for key in stale:
            del self._requests[key]
        if stale:
            logger.debug("Cleaned up %d inactive rate limit entries", len(stale))
