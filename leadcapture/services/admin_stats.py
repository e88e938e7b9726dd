# leadcapture/services/admin_stats.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import List, Optional, Tuple

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadcapture.core.exceptions import DatabaseError
from leadcapture.core.logging import get_structlog_logger
from leadcapture.models.lead import Lead

logger = get_structlog_logger(__name__)


@dataclass(frozen=True)
class LeadStatsResult:
    total: int
    today: int
    this_week: int
    coupon_sent: int
    booking_redirected: int


def _local_midnight(day, tz: Optional[tzinfo]) -> datetime:
    if tz is None:
        # Naive local midnight picks up that date's own UTC offset
        return datetime.combine(day, time()).astimezone()
    return datetime.combine(day, time(), tzinfo=tz)


def stats_windows(now: datetime, tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """
    Start of today and start of the calendar week, both in UTC.

    Midnights are taken in ``tz``, or in the server's local zone when ``tz``
    is None. Weeks start on Sunday.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.astimezone(tz).date()
    days_since_sunday = (today.weekday() + 1) % 7
    start_of_day = _local_midnight(today, tz)
    start_of_week = _local_midnight(today - timedelta(days=days_since_sunday), tz)
    return start_of_day.astimezone(timezone.utc), start_of_week.astimezone(timezone.utc)


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


async def compute_lead_stats(
    session: AsyncSession,
    *,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> LeadStatsResult:
    start_of_day, start_of_week = stats_windows(now, tz)
    stmt = select(
        func.count(Lead.id),
        _count_where(Lead.created_at >= start_of_day),
        _count_where(Lead.created_at >= start_of_week),
        _count_where(Lead.coupon_sent.is_(True)),
        _count_where(Lead.booking_redirected.is_(True)),
    )
    row = (await session.execute(stmt)).one()
    return LeadStatsResult(
        total=int(row[0] or 0),
        today=int(row[1] or 0),
        this_week=int(row[2] or 0),
        coupon_sent=int(row[3] or 0),
        booking_redirected=int(row[4] or 0),
    )


async def fetch_recent_leads(session: AsyncSession, *, limit: int) -> List[Lead]:
    stmt = select(Lead).order_by(Lead.created_at.desc(), Lead.id.desc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def load_dashboard(
    session: AsyncSession,
    *,
    now: datetime,
    limit: int,
    tz: Optional[tzinfo] = None,
) -> Tuple[List[Lead], LeadStatsResult]:
    try:
        leads = await fetch_recent_leads(session, limit=limit)
        stats = await compute_lead_stats(session, now=now, tz=tz)
    except SQLAlchemyError as e:
        logger.error("admin.leads_fetch_failed", error=str(e))
        raise DatabaseError(message="Failed to fetch leads") from e
    logger.info("admin.leads_fetched", count=len(leads), total=stats.total)
    return leads, stats
