"""Browser hardening headers added to every response."""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

DEFAULT_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}

# 180 days
HSTS_VALUE = "max-age=15552000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Set the default hardening headers, plus HSTS when ``hsts`` is on.

    Headers a handler already set are left alone.
    """

    def __init__(self, app, hsts: bool = False):
        super().__init__(app)
        self.headers = dict(DEFAULT_HEADERS)
        if hsts:
            self.headers["Strict-Transport-Security"] = HSTS_VALUE

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response
