# leadcapture/routes/leads.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadcapture.core.catalog import AppConfig, get_app_config
from leadcapture.db.session import get_session
from leadcapture.middleware.request_id import client_ip
from leadcapture.routes.deps import Clock, get_clock
from leadcapture.schemas.lead import LeadCreatedResponse, LeadIn
from leadcapture.services.lead_ingest import ingest_lead

router = APIRouter(tags=["leads"])


@router.post(
    "/leads",
    response_model=LeadCreatedResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_lead(
    payload: LeadIn,
    request: Request,
    session: AsyncSession = Depends(get_session),
    config: AppConfig = Depends(get_app_config),
    clock: Clock = Depends(get_clock),
):
    """Capture one coupon claim from the landing page form."""
    result = await ingest_lead(
        session,
        payload=payload,
        config=config,
        now=clock(),
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return LeadCreatedResponse(lead_id=result.lead_id)
