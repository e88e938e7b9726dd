# leadcapture/models/upsell.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leadcapture.db.base import Base


class Upsell(Base):
    __tablename__ = "upsells"

    product: Mapped[str] = mapped_column(String(200), nullable=False)
    offer: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="viewed")

    __table_args__ = (
        Index("idx_upsells_product", "product"),
        Index("idx_upsells_offer", "offer"),
    )
