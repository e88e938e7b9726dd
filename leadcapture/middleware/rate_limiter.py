# leadcapture/middleware/rate_limiter.py
from __future__ import annotations

import time
from typing import Awaitable, Callable, Iterable, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from leadcapture.core.config import settings
from leadcapture.core.exceptions import RateLimitError, ServiceUnavailableError
from leadcapture.core.logging import get_structlog_logger
from leadcapture.middleware.request_id import client_ip
from leadcapture.services.redis import get_redis_client

logger = get_structlog_logger(__name__)


class RateLimitingMiddleware(BaseHTTPMiddleware):
    """Fixed-window, per-IP rate limit on write endpoints, counted in Redis."""

    def __init__(
        self,
        app,
        limited_paths: Optional[Iterable[str]] = None,
        redis_factory: Callable[[], Awaitable] = get_redis_client,
        limit: Optional[int] = None,
        period: Optional[int] = None,
    ):
        super().__init__(app)
        self.redis = None
        self.redis_factory = redis_factory
        self.rate_limit_requests = limit or settings.rate_limit_requests
        self.rate_limit_period = period or settings.rate_limit_period
        self.limited_paths = set(limited_paths or [f"{settings.api_prefix}/leads"])

    async def dispatch(self, request: Request, call_next):
        if request.method != "POST" or request.url.path.rstrip("/") not in self.limited_paths:
            return await call_next(request)

        client_id = f"ip:{client_ip(request)}"
        allowed, remaining, reset_time = await self._check_rate_limit(client_id)

        if not allowed:
            retry_after = max(0, reset_time - int(time.time()))
            logger.warning(
                "rate_limit.exceeded",
                client_id=client_id,
                path=request.url.path,
                retry_after=retry_after,
            )
            error = RateLimitError(retry_after=retry_after)
            return JSONResponse(
                status_code=error.status_code,
                content=error.to_content(),
                headers=error.headers,
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.rate_limit_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset_time)

        return response

    async def _check_rate_limit(self, client_id: str) -> Tuple[bool, int, int]:
        window = int(time.time() // self.rate_limit_period)
        key = f"ratelimit:{client_id}:{window}"
        reset_time = (window + 1) * self.rate_limit_period

        try:
            if not self.redis:
                self.redis = await self.redis_factory()

            current_count = await self.redis.incr(key)
            if current_count == 1:
                await self.redis.expire(key, self.rate_limit_period)

        except (RedisError, ServiceUnavailableError, OSError) as e:
            # Fail open: a Redis outage must not block lead capture
            logger.error("rate_limit.error", error=str(e), client_id=client_id[:50])
            return True, self.rate_limit_requests, reset_time

        remaining = max(0, self.rate_limit_requests - current_count)
        return current_count <= self.rate_limit_requests, remaining, reset_time
