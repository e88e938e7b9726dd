# leadcapture/services/lead_ingest.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadcapture.core.catalog import AppConfig
from leadcapture.core.exceptions import ConflictError, DatabaseError
from leadcapture.core.logging import get_structlog_logger
from leadcapture.models.lead import Lead, LeadStatus
from leadcapture.schemas.lead import LeadIn
from leadcapture.services.dedupe import find_recent_duplicate
from leadcapture.services.normalization import clean_text
from leadcapture.services.validation import ensure_valid_lead

logger = get_structlog_logger(__name__)

DUPLICATE_CLAIM_MESSAGE = (
    "You have already claimed this offer recently. "
    "Please try a different offer or contact us directly."
)


@dataclass(frozen=True)
class LeadIngestResult:
    lead_id: int
    offer_code: str
    created_at: datetime


def build_lead(
    lead: LeadIn,
    *,
    now: datetime,
    ip_address: Optional[str],
    user_agent: Optional[str],
) -> Lead:
    return Lead(
        first_name=clean_text(lead.first_name),
        last_name=clean_text(lead.last_name),
        phone=clean_text(lead.phone),
        email=clean_text(lead.email),
        vehicle=clean_text(lead.vehicle),
        concern=clean_text(lead.concern),
        offer_code=clean_text(lead.offer_code),
        marketing_opt_in=bool(lead.marketing_opt_in),
        utm=dict(lead.utm or {}),
        page=clean_text(lead.page),
        client_timestamp=lead.timestamp,
        ip_address=ip_address,
        user_agent=user_agent or "",
        created_at=now.astimezone(timezone.utc),
        status=LeadStatus.PENDING.value,
        coupon_sent=False,
        booking_redirected=False,
        payment_collected=False,
    )


async def ingest_lead(
    session: AsyncSession,
    *,
    payload: LeadIn,
    config: AppConfig,
    now: datetime,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    window: Optional[timedelta] = None,
) -> LeadIngestResult:
    """Validate, reject recent duplicates and persist one new lead."""
    ensure_valid_lead(payload, config)

    phone = clean_text(payload.phone)
    offer_code = clean_text(payload.offer_code)
    log = logger.bind(offer_code=offer_code)

    try:
        existing = await find_recent_duplicate(
            session,
            phone=phone,
            offer_code=offer_code,
            now=now,
            window=window,
        )
        if existing is not None:
            log.info("lead.duplicate_rejected", duplicate_of=existing.id)
            raise ConflictError(
                message=DUPLICATE_CLAIM_MESSAGE,
                code="duplicate_claim",
            )

        lead = build_lead(payload, now=now, ip_address=ip_address, user_agent=user_agent)
        session.add(lead)
        await session.commit()
        await session.refresh(lead)
    except SQLAlchemyError as e:
        await session.rollback()
        log.error("lead.store_failed", error=str(e))
        raise DatabaseError() from e

    log.info("lead.created", lead_id=lead.id)
    return LeadIngestResult(
        lead_id=lead.id,
        offer_code=lead.offer_code,
        created_at=lead.created_at,
    )
