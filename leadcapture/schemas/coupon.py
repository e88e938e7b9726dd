# leadcapture/schemas/coupon.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import Field

from leadcapture.schemas.lead import CamelModel


class CouponRecipient(CamelModel):
    phone: Optional[str] = Field(default=None, max_length=32)
    email: Optional[str] = Field(default=None, max_length=320)


class CouponSendRequest(CamelModel):
    offer_code: Optional[str] = Field(default=None, max_length=64)
    to: Optional[CouponRecipient] = None
    name: Optional[str] = Field(default=None, max_length=200)


class CouponSendResponse(CamelModel):
    success: bool = True
    message: str = "Coupon sent successfully"
    coupon_data: Dict[str, Any]
