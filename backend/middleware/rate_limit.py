"""
In-memory rate limiting for the credential endpoints (/auth/login, /auth/register).

Sliding window per (client IP, path). State lives in the process, so each
worker counts separately.
"""
import logging
import time
from collections import defaultdict, deque

from fastapi import HTTPException, Request

from config import settings

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    """Counts request timestamps per key inside a moving window."""

    def __init__(self):
        self._hits: dict[str, deque] = defaultdict(deque)

    def _evict(self, key: str, window_seconds: int, now: float) -> deque:
        hits = self._hits[key]
        while hits and hits[0] <= now - window_seconds:
            hits.popleft()
        return hits

    def hit(self, key: str, max_requests: int, window_seconds: int) -> int:
        """
        Record a request for `key`.

        Returns the number of requests left in the window, or -1 if the
        request is over the limit (and was not recorded).
        """
        now = time.monotonic()
        hits = self._evict(key, window_seconds, now)
        if len(hits) >= max_requests:
            return -1
        hits.append(now)
        return max_requests - len(hits)

    def reset(self) -> None:
        self._hits.clear()


limiter = SlidingWindowLimiter()


def rate_limit(max_requests: int | None = None, window_seconds: int = 60):
    """
    FastAPI dependency factory.

    Usage:
        @router.post("/login")
        async def login(body: LoginRequest, _rate=Depends(rate_limit())):
            ...
    """
    async def _check(request: Request):
        limit = max_requests or settings.auth_rate_limit_per_minute
        client_ip = request.client.host if request.client else "unknown"
        key = f"{client_ip}:{request.url.path}"

        if limiter.hit(key, limit, window_seconds) < 0:
            logger.warning(f"Rate limit exceeded: {client_ip} on {request.url.path} ({limit}/{window_seconds}s)")
            raise HTTPException(
                status_code=429,
                detail="Too many requests. Try again later.",
                headers={"Retry-After": str(window_seconds)},
            )

    return _check
