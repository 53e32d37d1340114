from collections import defaultdict
from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from logging import getLogger
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = getLogger(__name__)


def is_upstream_fetch(method: str, path: str) -> bool:
    """Return True for routes that trigger a contributions API request."""

    if method != "POST":
        return False
    if path.rstrip("/") == "/widgets":
        return True
    segments = [segment for segment in path.split("/") if segment]
    return len(segments) == 3 and segments[0] == "widgets" and segments[2] == "navigate"


class FetchRateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory rate limiter for requests that fetch upstream contributions."""

    def __init__(
        self, app, requests_per_window: int = 30, window_seconds: int = 60
    ) -> None:
        super().__init__(app)
        # Guard against invalid config values (0 or negatives).
        self.max_requests = max(1, requests_per_window)
        self.window_seconds = max(1, window_seconds)
        # One queue of request timestamps per client key.
        self._ip_buckets: dict[str, deque[float]] = defaultdict(deque)
        self._last_sweep = 0.0
        self._lock = RLock()

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if not is_upstream_fetch(request.method, request.url.path):
            return await call_next(request)

        ip = self._client_ip(request)
        retry_after = self.register(ip, monotonic())
        if retry_after is not None:
            logger.warning("rate limit hit for %s on %s", ip, request.url.path)
            return JSONResponse(
                status_code=429,
                content={"detail": "Too Many Requests"},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    def register(self, ip: str, now: float) -> int | None:
        """Count a request from `ip`; return Retry-After seconds when over limit."""

        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._evict_idle_buckets(now)

            bucket = self._ip_buckets[ip]
            cutoff = now - self.window_seconds
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()

            if len(bucket) >= self.max_requests:
                return max(1, int(self.window_seconds - (now - bucket[0])))

            bucket.append(now)
            return None

    def _evict_idle_buckets(self, now: float) -> None:
        # Clients with no request inside the window hold no state.
        cutoff = now - self.window_seconds
        idle = [
            ip
            for ip, bucket in self._ip_buckets.items()
            if not bucket or bucket[-1] <= cutoff
        ]
        for ip in idle:
            del self._ip_buckets[ip]
        self._last_sweep = now

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._ip_buckets)

    @staticmethod
    def _client_ip(request: Request) -> str:
        # Reverse proxies put the original client first in X-Forwarded-For.
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip() or "unknown"

        if request.client and request.client.host:
            return request.client.host

        return "unknown"
