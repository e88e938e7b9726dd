# leadcapture/services/dedupe.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadcapture.core.config import settings
from leadcapture.models.lead import Lead


def duplicate_window() -> timedelta:
    return timedelta(hours=settings.duplicate_window_hours)


def window_start(now: datetime, window: Optional[timedelta] = None) -> datetime:
    """Inclusive lower bound of the duplicate window, in UTC."""
    window = window or duplicate_window()
    return (now - window).astimezone(timezone.utc)


async def find_recent_duplicate(
    session: AsyncSession,
    *,
    phone: str,
    offer_code: str,
    now: datetime,
    window: Optional[timedelta] = None,
) -> Optional[Lead]:
    """
    Most recent lead with the same phone and offer created inside the window.

    Status does not matter: any matching record counts. The lookup is not
    atomic with the insert that follows it.
    """
    stmt = (
        select(Lead)
        .where(
            Lead.phone == phone,
            Lead.offer_code == offer_code,
            Lead.created_at >= window_start(now, window),
        )
        .order_by(Lead.created_at.desc(), Lead.id.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
