# leadcapture/schemas/admin.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from leadcapture.schemas.lead import CamelModel, LeadOut


class LeadStats(CamelModel):
    total: int = 0
    today: int = 0
    this_week: int = 0
    coupon_sent: int = 0
    booking_redirected: int = 0


class AdminLeadsResponse(CamelModel):
    success: bool = True
    leads: List[LeadOut]
    stats: LeadStats


class AdminLoginRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


class AdminLoginResponse(CamelModel):
    success: bool = True
    token: str
    message: str = "Login successful"


class TokenVerifyRequest(CamelModel):
    token: Optional[str] = None


class TokenVerifyResponse(CamelModel):
    success: bool = True
    user: Dict[str, Any]
    message: str = "Token valid"
