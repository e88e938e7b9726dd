# leadcapture/main.py
from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from typing import Dict

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from leadcapture.core.config import settings
from leadcapture.core.exceptions import BaseAPIException, DatabaseError, ServiceUnavailableError
from leadcapture.core.logging import configure_structlog, get_structlog_logger
from leadcapture.db.session import dispose_engine
from leadcapture.middleware.logging import LoggingMiddleware
from leadcapture.middleware.rate_limiter import RateLimitingMiddleware
from leadcapture.middleware.request_id import RequestIdMiddleware
from leadcapture.routes import admin, coupons, health, leads, offers, upsell
from leadcapture.services.redis import close_redis_client, get_redis_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger = get_structlog_logger(__name__)

    logger.info("application.starting", environment=settings.environment)

    if settings.rate_limit_enabled:
        try:
            await get_redis_client()
        except ServiceUnavailableError as e:
            # The rate limiter fails open and retries on each request
            logger.error("redis.connection_failed", error=e.message)
            if settings.is_production:
                raise

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            integrations=[
                AsyncioIntegration(),
                FastApiIntegration(),
                StarletteIntegration(),
            ],
            traces_sample_rate=1.0 if settings.is_development else 0.1,
            send_default_pii=False,
        )
        logger.info("sentry.initialized")

    logger.info("application.started")
    yield

    logger.info("application.shutting_down")

    if settings.rate_limit_enabled:
        await close_redis_client()

    await dispose_engine()
    logger.info("database.connection_closed")

    logger.info("application.shutdown_complete")


# Configure logging before creating app
configure_structlog()
logger = get_structlog_logger(__name__)

app = FastAPI(
    title="Lead Capture API",
    version=health.SERVICE_VERSION,
    description="Coupon lead capture, dispatch and admin reporting",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins(),
    allow_credentials=True,
    allow_methods=settings.methods(),
    allow_headers=settings.allowed_headers.split(","),
    expose_headers=["X-Request-ID", "X-Response-Time", "Retry-After"],
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts())
app.add_middleware(GZipMiddleware, minimum_size=1000)

if settings.rate_limit_enabled:
    app.add_middleware(RateLimitingMiddleware)

app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIdMiddleware)


def _field_name(loc) -> str:
    # ("body", "firstName") -> "firstName"; a non-object body reports as "body"
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) or "body"


@app.exception_handler(BaseAPIException)
async def api_exception_handler(request: Request, exc: BaseAPIException):
    """Handle custom API exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "api.exception",
        status_code=exc.status_code,
        code=exc.code,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_content(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies the same way as failed field checks."""
    fields: Dict[str, str] = {}
    for error in exc.errors():
        fields.setdefault(_field_name(error.get("loc", ())), error.get("msg", "Invalid value"))

    logger.warning(
        "validation.error",
        path=request.url.path,
        method=request.method,
        fields=sorted(fields),
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "code": "validation_error",
            "error": "Please correct the highlighted fields",
            "fields": fields,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    error_id = f"err_{int(time.time())}_{uuid.uuid4().hex[:8]}"

    logger.error(
        "unhandled.exception",
        error_id=error_id,
        error_type=type(exc).__name__,
        error=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )

    error = DatabaseError(code="internal_error", details={"errorId": error_id})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error.to_content(),
        headers={"X-Error-ID": error_id},
    )


app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(leads.router, prefix=settings.api_prefix)
app.include_router(coupons.router, prefix=settings.api_prefix)
app.include_router(upsell.router, prefix=settings.api_prefix)
app.include_router(offers.router, prefix=settings.api_prefix)
app.include_router(admin.router, prefix=settings.api_prefix)

if not settings.is_testing:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": app.title,
        "version": app.version,
        "environment": settings.environment,
        "docs": "/docs" if settings.is_development else None,
        "health": f"{settings.api_prefix}/health",
    }


logger.info("application.configured", environment=settings.environment)
