"""
Rate limiting middleware using the token bucket algorithm.

Each client IP gets one bucket per limit class: ``/auth`` paths (admin and
customer) share a stricter bucket, everything else uses the default one.
Tokens refill continuously at ``limit / 60`` per second and each request
consumes one. Empty bucket means 429.

Note: This is an in-memory implementation; buckets are not shared across
worker processes.
"""

import time
from typing import Callable, Dict, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from carquote.core.context import RequestContext
from carquote.core.logging_config import get_logger


logger = get_logger(__name__)

# Buckets idle for longer than this are dropped
BUCKET_IDLE_TIMEOUT = 600


class TokenBucket:
    """
    Token bucket for rate limiting.

    Attributes:
        capacity: Maximum number of tokens in the bucket
        refill_rate: Number of tokens added per second
        tokens: Current number of available tokens
        last_refill: Timestamp of last refill operation
    """

    def __init__(self, capacity: int, refill_rate: float):
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.tokens = float(capacity)
        self.last_refill = time.monotonic()

    def consume(self, tokens: int = 1) -> bool:
        """
        Attempt to consume tokens from the bucket.

        Refills tokens based on elapsed time before checking availability.

        Returns:
            True if tokens were available and consumed, False otherwise
        """
        now = time.monotonic()
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False

    def get_wait_time(self) -> float:
        """Seconds until the next token is available."""
        if self.tokens >= 1:
            return 0.0
        return (1 - self.tokens) / self.refill_rate


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP rate limiting middleware.

    Example:
        app.add_middleware(
            RateLimitMiddleware,
            auth_limit=10,
            default_limit=60
        )
    """

    def __init__(
        self,
        app,
        auth_limit: int = 10,
        default_limit: int = 60,
        cleanup_interval: int = 300,
    ):
        super().__init__(app)
        self.auth_limit = auth_limit
        self.default_limit = default_limit
        self.cleanup_interval = cleanup_interval

        # Storage: {(ip, limit class): (bucket, last_access_time)}
        self.buckets: Dict[Tuple[str, str], Tuple[TokenBucket, float]] = {}
        self.last_cleanup = time.monotonic()

        logger.info(
            "Rate limiting initialized",
            extra={
                "auth_limit": auth_limit,
                "default_limit": default_limit,
            }
        )

    def _limit_class(self, path: str) -> Tuple[str, int]:
        if "/auth" in path:
            return "auth", self.auth_limit
        return "default", self.default_limit

    def _get_or_create_bucket(self, key: Tuple[str, str], limit: int) -> TokenBucket:
        now = time.monotonic()

        if now - self.last_cleanup > self.cleanup_interval:
            self._cleanup_old_buckets(now)

        if key in self.buckets:
            bucket, _ = self.buckets[key]
        else:
            bucket = TokenBucket(capacity=limit, refill_rate=limit / 60.0)

        self.buckets[key] = (bucket, now)
        return bucket

    def _cleanup_old_buckets(self, now: float) -> None:
        stale = [
            key for key, (_, last_access) in self.buckets.items()
            if now - last_access > BUCKET_IDLE_TIMEOUT
        ]
        for key in stale:
            del self.buckets[key]

        if stale:
            logger.info(
                "Cleaned up old rate limit buckets",
                extra={"count": len(stale)}
            )

        self.last_cleanup = now

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        client_ip = RequestContext.from_request(request).client_ip
        path = request.url.path
        limit_class, limit = self._limit_class(path)

        bucket = self._get_or_create_bucket((client_ip, limit_class), limit)

        if not bucket.consume():
            retry_after = int(bucket.get_wait_time()) + 1

            logger.warning(
                "Rate limit exceeded",
                extra={
                    "client_ip": client_ip,
                    "path": path,
                    "limit": limit,
                    "request_id": getattr(request.state, "request_id", None),
                }
            )

            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "error": "Rate limit exceeded",
                    "limit": limit,
                    "window": "1 minute",
                    "retryAfter": retry_after,
                },
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                }
            )

        response = await call_next(request)

        # Routes with their own attempt limits report those instead
        response.headers.setdefault("X-RateLimit-Limit", str(limit))
        response.headers.setdefault("X-RateLimit-Remaining", str(int(bucket.tokens)))
        return response
