# leadcapture/schemas/lead.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from leadcapture.db.base import as_utc


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LeadIn(CamelModel):
    # Required-ness is checked by the intake service so that every missing
    # field is reported in one error map.
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=32)
    email: Optional[str] = Field(default=None, max_length=320)
    vehicle: Optional[str] = Field(default=None, max_length=2000)
    concern: Optional[str] = Field(default=None, max_length=5000)
    offer_code: Optional[str] = Field(default=None, max_length=64)
    marketing_opt_in: Optional[bool] = None
    utm: Optional[Dict[str, Any]] = None
    page: Optional[str] = Field(default=None, max_length=500)
    timestamp: Optional[str] = Field(default=None, max_length=64)


class LeadCreatedResponse(CamelModel):
    success: bool = True
    lead_id: int
    message: str = "Lead captured successfully"


class LeadOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    first_name: str
    last_name: str
    phone: str
    email: str
    vehicle: str
    concern: str
    offer_code: str
    marketing_opt_in: bool
    utm: Dict[str, Any] = Field(default_factory=dict)
    page: str
    client_timestamp: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: str
    status: str
    coupon_sent: bool
    coupon_sent_at: Optional[datetime] = None
    coupon_data: Optional[Dict[str, Any]] = None
    booking_redirected: bool
    created_at: datetime

    @field_validator("created_at", "coupon_sent_at")
    def ensure_utc(cls, v):
        return as_utc(v)
