"""Middleware for rate limiting and request logging."""

import logging
import time
import uuid
from typing import Callable, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..config import settings
from .metrics import rate_limited_requests

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
ADMIN_ID_HEADER = "X-Admin-ID"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window rate limiting per admin.

    Implements distributed rate limiting using Redis with the following limits:
    - Report generation: settings.report_rate_limit_per_minute
    - Everything else: settings.default_rate_limit_per_minute
    """

    EXEMPT_PATHS = {"/", "/health", "/health/ready", "/metrics"}

    def __init__(self, app: ASGIApp, redis_client: Redis):
        super().__init__(app)
        self.redis = redis_client
        self.limits = {
            "reports": {"requests": settings.report_rate_limit_per_minute, "window": 60},
            "default": {"requests": settings.default_rate_limit_per_minute, "window": 60},
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Check rate limits before processing request."""
        if request.url.path in self.EXEMPT_PATHS:
            return await call_next(request)

        # Identity is asserted by the upstream gateway
        admin_id = request.headers.get(ADMIN_ID_HEADER)
        if not admin_id:
            return await call_next(request)

        bucket = self._get_bucket_from_path(request.url.path)
        allowed, retry_after = await self.check_rate_limit(admin_id, bucket)

        if not allowed:
            logger.warning(
                f"Rate limit exceeded for admin={admin_id}, bucket={bucket}, "
                f"retry_after={retry_after}s"
            )
            rate_limited_requests.labels(path=request.url.path).inc()
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "success": False,
                    "message": f"Too many requests. Try again in {retry_after} seconds",
                    "error": "rate_limited",
                    "retryAfter": retry_after,
                },
                headers={"Retry-After": str(retry_after)}
            )

        return await call_next(request)

    def _get_bucket_from_path(self, path: str) -> str:
        if "/reports/generate" in path:
            return "reports"
        return "default"

    async def check_rate_limit(self, admin_id: str, bucket: str) -> Tuple[bool, int]:
        """Check if request is within rate limit.

        Uses Redis INCR with expiration for efficient distributed rate limiting.

        Args:
            admin_id: Caller identity
            bucket: Limit bucket (reports, default)

        Returns:
            Tuple of (allowed, retry_after_seconds)
        """
        key = f"ratelimit:{admin_id}:{bucket}"
        limit = self.limits.get(bucket, self.limits["default"])

        try:
            current = await self.redis.incr(key)

            # Set expiration on first request
            if current == 1:
                await self.redis.expire(key, limit["window"])

            if current > limit["requests"]:
                ttl = await self.redis.ttl(key)
                # TTL returns -1 if key has no expiry, -2 if key doesn't exist
                return False, ttl if ttl > 0 else limit["window"]

            return True, 0
        except Exception as e:
            # On Redis error, allow request but log error
            logger.error(f"Rate limit check failed: {e}")
            return True, 0


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assign a request id and log request start, completion and duration.

    The id is taken from an incoming X-Request-ID header when present, stored
    on request.state for handlers and echoed back in the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Log request and response."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        admin_id = request.headers.get(ADMIN_ID_HEADER) or "anonymous"

        start_time = time.time()
        logger.info(
            f"Request started: method={request.method} path={request.url.path} "
            f"admin={admin_id} request_id={request_id}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: method={request.method} path={request.url.path} "
                f"duration_ms={duration_ms:.2f} admin={admin_id} "
                f"request_id={request_id} error={str(e)}",
                exc_info=True
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "success": False,
                    "message": "Internal server error",
                    "error": str(e),
                    "requestId": request_id,
                },
                headers={REQUEST_ID_HEADER: request_id}
            )

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Request completed: method={request.method} path={request.url.path} "
            f"status={response.status_code} duration_ms={duration_ms:.2f} "
            f"admin={admin_id} request_id={request_id}"
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


async def get_redis_client() -> Redis:
    """Create Redis client for middleware."""
    return Redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True
    )
