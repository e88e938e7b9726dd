# leadcapture/models/lead.py
from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leadcapture.db.base import Base


class LeadStatus(str, enum.Enum):
    PENDING = "pending"
    BOOKED = "booked"
    DECLINED = "declined"


class Lead(Base):
    __tablename__ = "leads"

    # Contact identity
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, default="")

    vehicle: Mapped[str] = mapped_column(Text, nullable=False, default="")
    concern: Mapped[str] = mapped_column(Text, nullable=False, default="")

    offer_code: Mapped[str] = mapped_column(String(64), nullable=False)
    marketing_opt_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Acquisition metadata
    utm: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    page: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    client_timestamp: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="")

    status: Mapped[str] = mapped_column(
        Enum(*[s.value for s in LeadStatus], name="lead_status"),
        nullable=False,
        default=LeadStatus.PENDING.value,
    )

    # Notification flags
    coupon_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    coupon_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    coupon_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    booking_redirected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_collected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_leads_phone_offer", "phone", "offer_code"),
        Index("idx_leads_phone_offer_created", "phone", "offer_code", "created_at"),
        Index("idx_leads_email", "email"),
        Index("idx_leads_status", "status"),
    )
