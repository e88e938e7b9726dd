# leadcapture/middleware/logging.py
from __future__ import annotations

import time
from typing import Dict, Mapping

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from leadcapture.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

QUIET_PATH_SUFFIXES = ("/health", "/health/live", "/metrics")

REDACTED_HEADER_PARTS = ("authorization", "cookie", "token", "secret", "password", "api-key")


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    return {
        key: "[REDACTED]" if any(part in key.lower() for part in REDACTED_HEADER_PARTS) else value
        for key, value in headers.items()
    }


class LoggingMiddleware(BaseHTTPMiddleware):
    """One access-log event per request, with timing."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "http.request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                exception_type=type(e).__name__,
            )
            raise

        elapsed = time.perf_counter() - started
        response.headers["X-Response-Time"] = f"{elapsed:.3f}"

        if request.url.path.endswith(QUIET_PATH_SUFFIXES) and response.status_code < 400:
            return response

        event = dict(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
            user_agent=request.headers.get("user-agent", ""),
        )
        if response.status_code >= 500:
            logger.error("http.request", headers=redact_headers(request.headers), **event)
        elif response.status_code >= 400:
            logger.warning("http.request", **event)
        else:
            logger.info("http.request", **event)
        return response
