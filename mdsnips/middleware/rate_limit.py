"""
mdsnips: Rate Limiting Middleware
===================================

What:  Per-client sliding-window limit on mutating requests.
How:   POST, PUT, PATCH and DELETE requests are counted per client address
       (first X-Forwarded-For hop, else the peer address) over the last
       `window_seconds`; once `max_requests` is reached the request is
       answered with 429 and a Retry-After header. GET, HEAD and OPTIONS
       are never limited.

Algorithm: Sliding Window Log
    1. Each client gets a list of request timestamps
    2. On each request, drop timestamps older than the window
    3. If the remaining count >= limit, reject with 429
    4. Otherwise record the current timestamp and allow through

State lives in process memory: it is correct for a single uvicorn worker
and per-worker when several workers run. A shared store (Redis INCR + TTL)
is the upgrade path for multi-instance deployments.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from mdsnips.config import settings
from mdsnips.middleware.logging import client_address

logger = logging.getLogger(__name__)

LIMITED_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter for writes.

    Args:
        max_requests:    writes allowed per window (default: settings.rate_limit_requests)
        window_seconds:  window length (default: settings.rate_limit_window)
    """

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method not in LIMITED_METHODS:
            return await call_next(request)

        client_ip = client_address(request)
        now = time.time()
        window_start = now - self.window_seconds

        self._requests[client_ip] = [
            ts for ts in self._requests[client_ip] if ts > window_start
        ]

        if len(self._requests[client_ip]) >= self.max_requests:
            oldest = self._requests[client_ip][0]
            retry_after = int(oldest + self.window_seconds - now) + 1

            logger.warning(
                "Too many requests received from %s: %d writes in %ds window",
                client_ip,
                len(self._requests[client_ip]),
                self.window_seconds,
            )

            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Please wait {retry_after} seconds before retrying.",
                    "details": {"retry_after": retry_after},
                },
                headers={"Retry-After": str(retry_after)},
            )

        self._requests[client_ip].append(now)
        self._recorded += 1

        # Drop idle clients every 1000 recorded writes
        if self._recorded % 1000 == 0:
            self._cleanup_inactive_clients(window_start)

        return await call_next(request)

    def _cleanup_inactive_clients(self, window_start: float) -> None:
        inactive = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive:
            del self._requests[ip]

        if inactive:
            logger.debug("Cleaned up %d inactive client entries", len(inactive))
