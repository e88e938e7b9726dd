# leadcapture/routes/coupons.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leadcapture.core.catalog import AppConfig, get_app_config
from leadcapture.db.session import get_session
from leadcapture.routes.deps import Clock, get_clock
from leadcapture.schemas.coupon import CouponSendRequest, CouponSendResponse
from leadcapture.services.coupons import dispatch_coupon
from leadcapture.services.messaging import Notifier, get_notifier

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.post("/send", response_model=CouponSendResponse, response_model_by_alias=True)
async def send_coupon(
    payload: CouponSendRequest,
    session: AsyncSession = Depends(get_session),
    config: AppConfig = Depends(get_app_config),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
):
    result = await dispatch_coupon(
        session,
        request=payload,
        config=config,
        notifier=notifier,
        now=clock(),
    )
    return CouponSendResponse(coupon_data=result.coupon_data)
