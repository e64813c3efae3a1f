"""Response hardening headers for the SiteCMS API."""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

# The API only serves JSON to the dashboard; nothing may frame, sniff or render it
API_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}

ONE_YEAR = 365 * 24 * 60 * 60


def is_https(request: Request) -> bool:
    """True when the client reached us over TLS, directly or via a proxy."""
    return request.url.scheme == "https" or request.headers.get("x-forwarded-proto") == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers to every response.

    Login bodies carry the session token and profile bodies carry account
    data, so every response is marked ``no-store``. HSTS is only sent on
    HTTPS requests.
    """

    def __init__(self, app: ASGIApp, hsts_max_age: int = ONE_YEAR):
        super().__init__(app)
        self.hsts_value = f"max-age={hsts_max_age}; includeSubDomains"

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers.update(API_HEADERS)
        response.headers["Cache-Control"] = "no-store"
        if is_https(request):
            response.headers["Strict-Transport-Security"] = self.hsts_value

        return response
