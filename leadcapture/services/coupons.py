# leadcapture/services/coupons.py
from __future__ import annotations

import enum
import html
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadcapture.core.catalog import AppConfig, OfferTemplate
from leadcapture.core.exceptions import BaseAPIException, DatabaseError
from leadcapture.core.logging import get_structlog_logger
from leadcapture.models.lead import Lead
from leadcapture.schemas.coupon import CouponSendRequest
from leadcapture.services.dedupe import window_start
from leadcapture.services.messaging import Notifier
from leadcapture.services.normalization import clean_text
from leadcapture.services.validation import ensure_valid_coupon_request

logger = get_structlog_logger(__name__)

COUPON_FAILED_MESSAGE = "Failed to send coupon. Please try again or contact us directly."


class ChannelOutcome(str, enum.Enum):
    SENT = "sent"
    SKIPPED_NO_CONTACT = "skipped-no-contact"
    FAILED = "failed"


@dataclass(frozen=True)
class CouponDispatchResult:
    coupon_data: Dict[str, Any]
    sms: ChannelOutcome
    email: ChannelOutcome
    lead_id: Optional[int] = None

    @property
    def channels(self) -> Dict[str, str]:
        return {"sms": self.sms.value, "email": self.email.value}


def build_coupon_data(
    config: AppConfig,
    template: OfferTemplate,
    *,
    customer_name: str,
    now: datetime,
) -> Dict[str, Any]:
    return {
        "code": template.code,
        "name": template.name,
        "value": template.value,
        "description": template.description,
        "instructions": template.instructions,
        "validUntil": template.valid_until,
        "customerName": customer_name,
        "sentAt": now.astimezone(timezone.utc).isoformat(),
        "bookingUrl": config.booking_url(template.code),
    }


def render_sms(config: AppConfig, coupon: Dict[str, Any]) -> str:
    return (
        f"{coupon['name']} - Code: {coupon['code']}\n\n"
        f"{coupon['description']}\n\n"
        f"Book now: {coupon['bookingUrl']}\n\n"
        f"{config.brand.name} - {config.brand.phone}\n"
        f"Valid for {coupon['validUntil']}."
    )


def render_email_subject(coupon: Dict[str, Any]) -> str:
    return f"Your Free Inspection Coupon - Code: {coupon['code']}"


def render_email_text(config: AppConfig, coupon: Dict[str, Any]) -> str:
    return "\n".join(
        [
            f"Hello {coupon['customerName']}!",
            "",
            "You've successfully claimed your offer. Here are the details:",
            "",
            f"{coupon['name']}",
            f"Code: {coupon['code']}",
            f"Value: {coupon['value']}",
            f"{coupon['description']}",
            f"{coupon['instructions']}",
            "",
            f"Book your appointment: {coupon['bookingUrl']}",
            "",
            f"Valid for {coupon['validUntil']}. One offer per customer. Not combinable with other offers.",
            "",
            f"{config.brand.name}",
            f"{config.brand.address}",
            f"Phone: {config.brand.phone}",
            f"Hours: {config.brand.hours}",
        ]
    )


def render_email_html(config: AppConfig, coupon: Dict[str, Any]) -> str:
    e = {key: html.escape(str(value)) for key, value in coupon.items()}
    brand = config.brand
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Your Coupon - {html.escape(brand.name)}</title></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1>Your Free Inspection Coupon!</h1>
    <h2>Hello {e['customerName']}!</h2>
    <p>You've successfully claimed your offer. Here are the details:</p>
    <div style="border: 2px dashed #2563eb; padding: 20px; text-align: center;">
      <h3>{e['name']}</h3>
      <div style="font-size: 24px; font-weight: bold;">{e['code']}</div>
      <p><strong>Value: {e['value']}</strong></p>
      <p>{e['description']}</p>
      <p><em>{e['instructions']}</em></p>
    </div>
    <p><a href="{e['bookingUrl']}">Book Your Appointment Now</a></p>
    <ul>
      <li>Valid for {e['validUntil']}</li>
      <li>One offer per customer</li>
      <li>Not combinable with other offers</li>
    </ul>
    <p>{html.escape(brand.name)}<br>{html.escape(brand.address)}<br>
    Phone: {html.escape(brand.phone)}<br>Hours: {html.escape(brand.hours)}</p>
  </div>
</body>
</html>"""


async def _send_sms(notifier: Notifier, config: AppConfig, phone: str, coupon: Dict[str, Any]) -> ChannelOutcome:
    if not phone:
        return ChannelOutcome.SKIPPED_NO_CONTACT
    try:
        await notifier.sms.send(to=phone, body=render_sms(config, coupon))
    except BaseAPIException as e:
        logger.warning("coupon.channel_failed", channel="sms", offer_code=coupon["code"], error=e.message, details=e.details)
        return ChannelOutcome.FAILED
    except Exception as e:
        logger.error("coupon.channel_failed", channel="sms", offer_code=coupon["code"], error=str(e), exc_info=True)
        return ChannelOutcome.FAILED
    logger.info("coupon.channel_sent", channel="sms", offer_code=coupon["code"])
    return ChannelOutcome.SENT


async def _send_email(notifier: Notifier, config: AppConfig, email: str, coupon: Dict[str, Any]) -> ChannelOutcome:
    if not email:
        return ChannelOutcome.SKIPPED_NO_CONTACT
    try:
        await notifier.email.send(
            to=email,
            subject=render_email_subject(coupon),
            html=render_email_html(config, coupon),
            text=render_email_text(config, coupon),
        )
    except BaseAPIException as e:
        logger.warning("coupon.channel_failed", channel="email", offer_code=coupon["code"], error=e.message, details=e.details)
        return ChannelOutcome.FAILED
    except Exception as e:
        logger.error("coupon.channel_failed", channel="email", offer_code=coupon["code"], error=str(e), exc_info=True)
        return ChannelOutcome.FAILED
    logger.info("coupon.channel_sent", channel="email", offer_code=coupon["code"])
    return ChannelOutcome.SENT


async def mark_coupon_sent(
    session: AsyncSession,
    *,
    offer_code: str,
    phone: str,
    email: str,
    coupon_data: Dict[str, Any],
    now: datetime,
    window: Optional[timedelta] = None,
) -> Optional[int]:
    """
    Flag the most recent matching lead inside the duplicate window.

    The lead is matched by phone, or by email when no phone was given. A lead
    already flagged is left untouched.
    """
    if phone:
        contact_filter = Lead.phone == phone
    elif email:
        contact_filter = Lead.email == email
    else:
        return None

    stmt = (
        select(Lead)
        .where(
            contact_filter,
            Lead.offer_code == offer_code,
            Lead.created_at >= window_start(now, window),
        )
        .order_by(Lead.created_at.desc(), Lead.id.desc())
        .limit(1)
    )
    lead = (await session.execute(stmt)).scalar_one_or_none()
    if lead is None:
        return None
    if lead.coupon_sent:
        return lead.id

    lead.coupon_sent = True
    lead.coupon_sent_at = now.astimezone(timezone.utc)
    lead.coupon_data = coupon_data
    await session.commit()
    return lead.id


async def dispatch_coupon(
    session: AsyncSession,
    *,
    request: CouponSendRequest,
    config: AppConfig,
    notifier: Notifier,
    now: datetime,
    window: Optional[timedelta] = None,
) -> CouponDispatchResult:
    """Send the coupon over every channel with contact info, then flag the lead."""
    ensure_valid_coupon_request(request, config)

    offer_code = clean_text(request.offer_code)
    template = config.get_offer(offer_code)
    phone = clean_text(request.to.phone)
    email = clean_text(request.to.email)

    coupon = build_coupon_data(config, template, customer_name=clean_text(request.name), now=now)

    sms_outcome = await _send_sms(notifier, config, phone, coupon)
    email_outcome = await _send_email(notifier, config, email, coupon)

    try:
        lead_id = await mark_coupon_sent(
            session,
            offer_code=offer_code,
            phone=phone,
            email=email,
            coupon_data=coupon,
            now=now,
            window=window,
        )
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("coupon.lead_update_failed", offer_code=offer_code, error=str(e))
        raise DatabaseError(message=COUPON_FAILED_MESSAGE) from e

    logger.info(
        "coupon.dispatched",
        offer_code=offer_code,
        lead_id=lead_id,
        sms=sms_outcome.value,
        email=email_outcome.value,
    )
    return CouponDispatchResult(
        coupon_data=coupon,
        sms=sms_outcome,
        email=email_outcome,
        lead_id=lead_id,
    )
