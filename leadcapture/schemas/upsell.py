# leadcapture/schemas/upsell.py
from __future__ import annotations

from typing import Optional

from pydantic import Field

from leadcapture.schemas.lead import CamelModel


class UpsellIn(CamelModel):
    product: Optional[str] = Field(default=None, max_length=200)
    offer: Optional[str] = Field(default=None, max_length=64)
    email: Optional[str] = Field(default=None, max_length=320)
    phone: Optional[str] = Field(default=None, max_length=32)


class UpsellRecordedResponse(CamelModel):
    success: bool = True
    upsell_id: int
    message: str = "Upsell interaction recorded"
