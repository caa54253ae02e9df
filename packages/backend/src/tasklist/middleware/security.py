"""Security headers middleware.

Learn: Adds standard security headers to every response:
- X-Content-Type-Options: no MIME-type sniffing of JSON bodies
- X-Frame-Options: no framing (clickjacking)
- Referrer-Policy: don't leak paths (which contain user ids) cross-origin
- Cache-Control: no-store, since bodies can carry tokens and profiles
- Strict-Transport-Security: only on HTTPS connections
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        for name, value in _STATIC_HEADERS.items():
            response.headers.setdefault(name, value)
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response
