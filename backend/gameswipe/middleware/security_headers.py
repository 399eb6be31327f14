"""
GameSwipe Backend: Security Headers Middleware
==============================================

What:  Adds a fixed set of response headers to every response.
How:   `setdefault`, so a route that sets one of these headers explicitly
       keeps its own value.

Headers:
    X-Content-Type-Options: nosniff    browsers must honour Content-Type
    X-Frame-Options: DENY              the API is never framed
    Referrer-Policy: no-referrer       room URLs never leak via Referer
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
