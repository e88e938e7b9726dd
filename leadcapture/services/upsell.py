# leadcapture/services/upsell.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadcapture.core.exceptions import DatabaseError
from leadcapture.core.logging import get_structlog_logger
from leadcapture.models.upsell import Upsell
from leadcapture.schemas.upsell import UpsellIn
from leadcapture.services.normalization import clean_text
from leadcapture.services.validation import ensure_valid_upsell

logger = get_structlog_logger(__name__)


async def record_upsell(
    session: AsyncSession,
    *,
    payload: UpsellIn,
    now: datetime,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> int:
    """Store one product-click event; returns its id."""
    ensure_valid_upsell(payload)

    upsell = Upsell(
        product=clean_text(payload.product),
        offer=clean_text(payload.offer),
        email=clean_text(payload.email),
        phone=clean_text(payload.phone),
        ip_address=ip_address,
        user_agent=user_agent or "",
        status="viewed",
        created_at=now.astimezone(timezone.utc),
    )
    try:
        session.add(upsell)
        await session.commit()
        await session.refresh(upsell)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("upsell.store_failed", error=str(e))
        raise DatabaseError(message="Failed to record upsell interaction") from e

    logger.info("upsell.recorded", upsell_id=upsell.id, product=upsell.product, offer=upsell.offer)
    return upsell.id
