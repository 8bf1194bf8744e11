"""Fixed-window request rate limiting per client IP."""
from dataclasses import dataclass
import threading
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from travellers.config import get_settings
from travellers.errors import error_response

AUTH_LIMITED_PATHS = ("/auth/login", "/auth/register")


@dataclass
class _Window:
    started_at: float
    count: int


class FixedWindowLimiter:
    """Counts hits per key in fixed windows of ``window_seconds``.

    Keys should include both scope and identity (e.g. "auth:1.2.3.4").
    Finished windows are dropped at most once per window length.
    """

    def __init__(self, limit: int, window_seconds: int, clock=time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._last_prune = clock()

    def hit(self, key: str) -> bool:
        """Record a hit; return False when the key is over its limit."""
        now = self.clock()
        with self._lock:
            if now - self._last_prune >= self.window_seconds:
                self._prune(now)
            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.window_seconds:
                window = _Window(started_at=now, count=0)
                self._windows[key] = window
            window.count += 1
            return window.count <= self.limit

    def retry_after(self, key: str) -> int:
        now = self.clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                return 0
            return max(int(window.started_at + self.window_seconds - now), 0)

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def _prune(self, now: float) -> None:
        # Caller holds the lock.
        expired = [key for key, window in self._windows.items() if now - window.started_at >= self.window_seconds]
        for key in expired:
            del self._windows[key]
        self._last_prune = now


def get_request_ip(request: Request, trusted_proxy_hops: int = 1) -> str:
    """Client IP as seen through ``trusted_proxy_hops`` reverse proxies.

    Each trusted proxy appends the address it received the request from to
    X-Forwarded-For, so only the right-most ``trusted_proxy_hops`` entries
    are trustworthy. Entries further left are client-supplied.
    """
    peer = request.client.host if request.client else "unknown"
    if trusted_proxy_hops <= 0:
        return peer

    xff = request.headers.get("x-forwarded-for")
    if not xff:
        return peer
    entries = [entry.strip() for entry in xff.split(",") if entry.strip()]
    if not entries:
        return peer
    return entries[-min(trusted_proxy_hops, len(entries))]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply the general limiter to every request and the auth limiter to login/register."""

    def __init__(self, app, general: FixedWindowLimiter, auth: FixedWindowLimiter, trusted_proxy_hops: int = 1):
        super().__init__(app)
        self.general = general
        self.auth = auth
        self.trusted_proxy_hops = trusted_proxy_hops

    async def dispatch(self, request: Request, call_next):
        ip = get_request_ip(request, self.trusted_proxy_hops)
        path = request.url.path

        if request.method == "POST" and path.endswith(AUTH_LIMITED_PATHS):
            key = f"auth:{ip}"
            if not self.auth.hit(key):
                return self._reject("Too many auth attempts, please try again later", self.auth.retry_after(key))

        key = f"general:{ip}"
        if not self.general.hit(key):
            return self._reject(
                "Too many requests from this IP, please try again later",
                self.general.retry_after(key),
            )

        return await call_next(request)

    @staticmethod
    def _reject(message: str, retry_after: int):
        response = error_response(429, message)
        response.headers["Retry-After"] = str(retry_after)
        return response


def build_limiters() -> tuple[FixedWindowLimiter, FixedWindowLimiter]:
    settings = get_settings()
    general = FixedWindowLimiter(settings.effective_general_rate_limit, settings.general_rate_window_seconds)
    auth = FixedWindowLimiter(settings.effective_auth_rate_limit, settings.auth_rate_window_seconds)
    return general, auth
