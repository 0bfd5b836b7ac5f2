"""
# Rate Limiting

Fixed-window, per-IP request limiting for everything under the API prefix.

Each client IP gets `RATE_LIMIT_REQUESTS` requests per `RATE_LIMIT_PERIOD_SECONDS` window.
Once exhausted, requests are answered with a 429 envelope until the window rolls over.
State is held in process memory, so limits are per worker.
"""

import asyncio
import time
from typing import Dict, Tuple

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.models.common import envelope
from tech_blog_api.utils.logging_utils import get_client_ip

logger = get_logger(prefix="[RATE LIMIT]")

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


class InMemoryRateLimiter:
    """Counts hits per key inside fixed windows of `period_seconds`."""

    def __init__(self, max_requests: int, period_seconds: float) -> None:
        self.max_requests = max_requests
        self.period_seconds = period_seconds
        self._lock = asyncio.Lock()
        self._windows: Dict[str, Tuple[float, int]] = {}

    async def hit(self, key: str) -> Tuple[bool, int, float]:
        """
        Record one request for `key`.

        Returns:
            Tuple[bool, int, float]: `(allowed, remaining, seconds_until_reset)`.
        """
        now = time.monotonic()
        async with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.period_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            if len(self._windows) > 10_000:
                self._evict(now)

        reset_in = max(0.0, self.period_seconds - (now - started))
        remaining = max(0, self.max_requests - count)
        return count <= self.max_requests, remaining, reset_in

    def _evict(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.period_seconds]
        for key in expired:
            del self._windows[key]

    def reset(self) -> None:
        self._windows.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: InMemoryRateLimiter, path_prefix: str = "/api/", enabled: bool = True):
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next):
        if not self.enabled or not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_ip = get_client_ip(request)
        allowed, remaining, reset_in = await self.limiter.hit(client_ip)
        headers = {
            "RateLimit-Limit": str(self.limiter.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(int(reset_in)),
        }
        if not allowed:
            logger.warning("Rate limit exceeded for %s on %s", client_ip, request.url.path)
            return JSONResponse(
                status_code=429,
                content=envelope(success=False, message=RATE_LIMIT_MESSAGE),
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
