# leadcapture/routes/upsell.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadcapture.db.session import get_session
from leadcapture.middleware.request_id import client_ip
from leadcapture.routes.deps import Clock, get_clock
from leadcapture.schemas.upsell import UpsellIn, UpsellRecordedResponse
from leadcapture.services.upsell import record_upsell

router = APIRouter(tags=["upsell"])


@router.post(
    "/upsell",
    response_model=UpsellRecordedResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_upsell(
    payload: UpsellIn,
    request: Request,
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
):
    upsell_id = await record_upsell(
        session,
        payload=payload,
        now=clock(),
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return UpsellRecordedResponse(upsell_id=upsell_id)
