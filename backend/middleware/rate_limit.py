import time
import logging
from collections import defaultdict
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from config import RATE_LIMIT_PER_MIN

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding one-minute window per client host."""

    def __init__(self, app, rate_limit: int = RATE_LIMIT_PER_MIN):
        super().__init__(app)
        self.rate_limit = rate_limit
        self.requests = defaultdict(list)

    async def dispatch(self, request: Request, call_next):
        # Skip rate limiting for non-API routes and health checks
        if not request.url.path.startswith("/api") or request.url.path in ("/api/health", "/api/"):
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"

        # Clean old entries
        now = time.time()
        self.requests[client_id] = [t for t in self.requests[client_id] if now - t < WINDOW_SECONDS]

        if len(self.requests[client_id]) >= self.rate_limit:
            logger.warning(f"Rate limit exceeded for {client_id}")
            return JSONResponse(
                status_code=429,
                content={"detail": f"Rate limit exceeded. Maximum {self.rate_limit} requests per minute."},
            )

        self.requests[client_id].append(now)
        return await call_next(request)
