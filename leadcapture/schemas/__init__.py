# leadcapture/schemas/__init__.py
"""
Pydantic schemas for request/response validation and serialization.
"""

from leadcapture.schemas.admin import AdminLeadsResponse, LeadStats
from leadcapture.schemas.coupon import CouponRecipient, CouponSendRequest, CouponSendResponse
from leadcapture.schemas.lead import LeadCreatedResponse, LeadIn, LeadOut
from leadcapture.schemas.upsell import UpsellIn, UpsellRecordedResponse

__all__ = [
    "AdminLeadsResponse",
    "CouponRecipient",
    "CouponSendRequest",
    "CouponSendResponse",
    "LeadCreatedResponse",
    "LeadIn",
    "LeadOut",
    "LeadStats",
    "UpsellIn",
    "UpsellRecordedResponse",
]
