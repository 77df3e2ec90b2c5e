"""
Redis-backed sliding window rate limiter (application level).

- 100 requests per 15 minutes per client IP on /api routes
- Fails open when Redis is unreachable

Uses Redis sorted sets for precise sliding window counting.
"""

from __future__ import annotations

import time
import uuid

import redis.asyncio as redis
import structlog
from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response

from bookreview.config import get_settings

logger = structlog.get_logger()

EXEMPT_PATHS = ("/api/health", "/api/ready", "/metrics")


class RateLimiterMiddleware(BaseHTTPMiddleware):
    def __init__(self, app):
        super().__init__(app)
        settings = get_settings()
        self.enabled = settings.rate_limit_enabled
        self.redis_client: redis.Redis | None = None
        self.per_ip_limit = settings.rate_limit_per_ip
        self.window_seconds = settings.rate_limit_window_seconds
        self._redis_url = settings.redis_dsn

    async def _get_redis(self) -> redis.Redis:
        if self.redis_client is None:
            self.redis_client = redis.from_url(self._redis_url, decode_responses=True)
        return self.redis_client

    async def _check_rate_limit(self, key: str, limit: int) -> tuple[bool, int]:
        """
        Sliding window rate limiter using Redis sorted sets.
        Returns (allowed: bool, remaining: int).
        """
        try:
            r = await self._get_redis()
            now = time.time()
            window_start = now - self.window_seconds
            pipe = r.pipeline()

            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zcard(key)
            pipe.zadd(key, {f"{now}:{uuid.uuid4().hex[:8]}": now})
            pipe.expire(key, self.window_seconds + 1)

            results = await pipe.execute()
            current_count = results[1]

            if current_count >= limit:
                return False, 0

            return True, max(limit - current_count - 1, 0)

        except redis.RedisError:
            logger.warning("rate_limiter_redis_error", key=key)
            return True, limit

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not self.enabled or not path.startswith("/api") or path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.headers.get("X-Real-IP", request.client.host if request.client else "unknown")

        allowed, remaining = await self._check_rate_limit(f"ratelimit:ip:{client_ip}", self.per_ip_limit)
        if not allowed:
            logger.info("rate_limited", client_ip=client_ip, path=path)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "status": "error",
                    "message": "Too many requests from this IP, please try again later",
                },
                headers={"Retry-After": str(self.window_seconds)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
