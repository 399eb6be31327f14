"""
GameSwipe Backend: Join Rate Limiting Middleware
================================================

What:  Per-client-IP cap on POST /rooms/join.
How:   Fixed window counter held in process memory. The first request from an
       IP opens a window of `window` seconds; up to `limit` requests are let
       through inside it, the rest get 429 RATE_LIMITED with a Retry-After
       header naming the seconds left in the window.

Room codes are short, so join is the one endpoint worth guessing against.
Every other path passes straight through.

Scope:
    Counters live in this process only. Several uvicorn workers each keep
    their own counters; a shared store (e.g. Redis INCR + EXPIRE) would be
    needed to enforce one global limit.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from gameswipe.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

JOIN_PATH = "/rooms/join"


@dataclass
class _Window:
    started_at: float
    count: int = 0


class JoinRateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window limiter for POST /rooms/join.

    Args:
        limit:  requests allowed per window per client IP
        window: window length in seconds
    """

    # Stale windows are swept once the table grows past this many IPs.
    SWEEP_THRESHOLD = 1000

    def __init__(self, app: ASGIApp, limit: int = 30, window: int = 60):
        super().__init__(app)
        self.limit = limit
        self.window = window
        self._windows: Dict[str, _Window] = {}

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "POST" or request.url.path != JOIN_PATH:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()

        current = self._windows.get(client_ip)
        if current is None or now - current.started_at >= self.window:
            current = _Window(started_at=now)
            self._windows[client_ip] = current

        if current.count >= self.limit:
            retry_after = max(1, math.ceil(current.started_at + self.window - now))
            logger.warning(
                "Join rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                current.count,
                self.window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_envelope(),
                headers={"Retry-After": str(retry_after)},
            )

        current.count += 1
        if len(self._windows) > self.SWEEP_THRESHOLD:
            self._sweep(now)

        return await call_next(request)

    def _sweep(self, now: float) -> None:
        stale = [ip for ip, w in self._windows.items() if now - w.started_at >= self.window]
        for ip in stale:
            del self._windows[ip]
        if stale:
            logger.debug("Swept %d expired rate-limit windows", len(stale))
