# leadcapture/services/redis.py
"""Shared Redis client backing the intake rate limiter."""
from __future__ import annotations

from typing import Optional

import redis.asyncio as redis

from leadcapture.core.config import settings
from leadcapture.core.exceptions import ServiceUnavailableError
from leadcapture.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

_client: Optional[redis.Redis] = None


async def get_redis_client() -> redis.Redis:
    """Return the process-wide client, connecting on first use."""
    global _client

    if _client is not None:
        return _client

    client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        decode_responses=True,
        health_check_interval=30,
    )
    try:
        await client.ping()
    except (redis.ConnectionError, redis.TimeoutError, OSError) as e:
        await client.aclose()
        logger.error("redis.connection_failed", error=str(e))
        raise ServiceUnavailableError(
            message="Rate limit store unavailable",
            details={"store": "redis"},
        ) from e

    _client = client
    logger.info("redis.connected", max_connections=settings.redis_max_connections)
    return _client


async def close_redis_client() -> None:
    global _client

    if _client is None:
        return
    await _client.aclose()
    _client = None
    logger.info("redis.connection_closed")
