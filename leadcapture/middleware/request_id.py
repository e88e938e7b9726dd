# leadcapture/middleware/request_id.py
from __future__ import annotations

import re
import uuid
from typing import Mapping

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# Inbound ids end up in logs and response headers
_SAFE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else "unknown"


def resolve_request_id(headers: Mapping[str, str]) -> str:
    for header in ("X-Request-ID", "X-Correlation-ID"):
        candidate = headers.get(header)
        if candidate and _SAFE_ID.match(candidate):
            return candidate

    # W3C trace context: 00-<32 hex trace id>-<span>-<flags>
    traceparent = headers.get("traceparent", "")
    if traceparent.startswith("00-") and len(traceparent) >= 35:
        return traceparent[3:35]

    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tags every log line of a request with its id and the caller's IP."""

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers)
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            client_ip=client_ip(request),
        )
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["X-Request-ID"] = request_id
        return response
