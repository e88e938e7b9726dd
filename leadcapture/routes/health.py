# leadcapture/routes/health.py
from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from leadcapture.core.config import settings
from leadcapture.core.logging import get_structlog_logger
from leadcapture.db.session import get_session, health_check as database_health_check
from leadcapture.routes.deps import Clock, get_clock

logger = get_structlog_logger(__name__)

router = APIRouter(tags=["health"])

SERVICE_VERSION = "1.0.0"


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    environment: str
    version: str
    timestamp: str
    checks: Dict[str, Dict[str, str]]


@router.get("/health", response_model=HealthCheckResponse, status_code=status.HTTP_200_OK)
async def health_check(
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    """Service metadata and a database round trip."""
    db_result = await database_health_check(session)
    overall_status = "healthy" if db_result.get("status") == "healthy" else "unhealthy"

    response = HealthCheckResponse(
        status=overall_status,
        service=settings.service_name,
        environment=settings.environment,
        version=SERVICE_VERSION,
        timestamp=clock().isoformat(),
        checks={"database": db_result},
    )

    if overall_status != "healthy":
        logger.warning("health.check", status=overall_status, checks=response.checks)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )

    return response


@router.get("/health/live", status_code=status.HTTP_200_OK)
async def liveness_probe(clock: Clock = Depends(get_clock)):
    """Simple liveness probe for containers."""
    return {
        "status": "alive",
        "timestamp": clock().isoformat(),
    }
