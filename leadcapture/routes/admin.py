# leadcapture/routes/admin.py
from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from leadcapture.core.config import Settings
from leadcapture.core.logging import get_structlog_logger
from leadcapture.db.session import get_session
from leadcapture.routes.deps import Clock, get_clock, get_settings, require_admin
from leadcapture.schemas.admin import (
    AdminLeadsResponse,
    AdminLoginRequest,
    AdminLoginResponse,
    LeadStats,
    TokenVerifyRequest,
    TokenVerifyResponse,
)
from leadcapture.schemas.lead import LeadOut
from leadcapture.services.admin_stats import load_dashboard
from leadcapture.services.auth import authenticate_admin, verify_admin_token
from leadcapture.services.export import iter_leads_csv

logger = get_structlog_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/auth", response_model=AdminLoginResponse, response_model_by_alias=True)
async def login(payload: AdminLoginRequest, config: Settings = Depends(get_settings)):
    token = authenticate_admin(payload.username, payload.password, config=config)
    return AdminLoginResponse(token=token)


@router.post("/verify-auth", response_model=TokenVerifyResponse, response_model_by_alias=True)
async def verify_auth(payload: TokenVerifyRequest, config: Settings = Depends(get_settings)):
    claims = verify_admin_token(payload.token, config=config)
    return TokenVerifyResponse(user={"username": claims.get("username") or claims.get("sub"), "role": claims["role"]})


@router.get("/leads", response_model=AdminLeadsResponse, response_model_by_alias=True)
async def list_leads(
    admin: Dict = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
):
    """Recent leads plus dashboard counters."""
    leads, stats = await load_dashboard(
        session,
        now=clock(),
        limit=config.admin_recent_leads_limit,
    )
    return AdminLeadsResponse(
        leads=[LeadOut.model_validate(lead) for lead in leads],
        stats=LeadStats(
            total=stats.total,
            today=stats.today,
            this_week=stats.this_week,
            coupon_sent=stats.coupon_sent,
            booking_redirected=stats.booking_redirected,
        ),
    )


@router.get("/leads.csv")
async def export_leads(
    admin: Dict = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
):
    leads, _ = await load_dashboard(
        session,
        now=clock(),
        limit=config.admin_recent_leads_limit,
    )
    logger.info("admin.leads_exported", count=len(leads), user=admin.get("sub"))
    return StreamingResponse(
        iter_leads_csv(leads),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="leads.csv"'},
    )
