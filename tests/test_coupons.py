from datetime import timedelta

import pytest
from sqlalchemy import func, select

from leadcapture.models.lead import Lead
from leadcapture.schemas.coupon import CouponSendRequest
from leadcapture.services.coupons import (
    ChannelOutcome,
    build_coupon_data,
    dispatch_coupon,
    render_email_html,
    render_sms,
)
from leadcapture.services.messaging import Notifier


def _request(**to):
    return CouponSendRequest.model_validate({"offerCode": "BYRD-BRAKESNAP", "to": to, "name": "Sam"})


async def _add_lead(db_session, *, created_at, phone="555-0142", email="sam@example.com", offer_code="BYRD-BRAKESNAP"):
    lead = Lead(
        first_name="Sam",
        phone=phone,
        email=email,
        offer_code=offer_code,
        created_at=created_at,
    )
    db_session.add(lead)
    await db_session.commit()
    return lead


def test_build_coupon_data(app_config, clock):
    template = app_config.get_offer("BYRD-CHARGE")
    coupon = build_coupon_data(app_config, template, customer_name="Sam", now=clock.now)

    assert coupon["value"] == "$45"
    assert coupon["validUntil"] == "30 days from booking"
    assert coupon["sentAt"] == "2025-01-15T18:30:00+00:00"
    assert coupon["bookingUrl"].endswith("&promo=BYRD-CHARGE")


def test_renderers_include_code_and_escape_markup(app_config, clock):
    template = app_config.get_offer("BYRD-TRIP")
    coupon = build_coupon_data(app_config, template, customer_name="<b>Sam</b>", now=clock.now)

    assert "Code: BYRD-TRIP" in render_sms(app_config, coupon)
    page = render_email_html(app_config, coupon)
    assert "&lt;b&gt;Sam&lt;/b&gt;" in page
    assert "<b>Sam</b>" not in page


@pytest.mark.asyncio
async def test_email_only_dispatch_sends_one_message(db_session, app_config, notifier, email_sender, sms_sender, clock):
    result = await dispatch_coupon(
        db_session,
        request=_request(email="sam@example.com"),
        config=app_config,
        notifier=notifier,
        now=clock.now,
    )

    assert result.email is ChannelOutcome.SENT
    assert result.sms is ChannelOutcome.SKIPPED_NO_CONTACT
    assert result.channels == {"sms": "skipped-no-contact", "email": "sent"}
    assert len(email_sender.sent) == 1
    assert email_sender.sent[0]["to"] == "sam@example.com"
    assert sms_sender.sent == []


@pytest.mark.asyncio
async def test_unknown_offer_has_no_side_effects(client, db_session, email_sender, sms_sender):
    response = await client.post(
        "/api/coupons/send",
        json={"offerCode": "BYRD-NOPE", "to": {"phone": "555-0142", "email": "sam@example.com"}, "name": "Sam"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid offer code"
    assert email_sender.sent == []
    assert sms_sender.sent == []
    assert (await db_session.execute(select(func.count(Lead.id)))).scalar_one() == 0


@pytest.mark.asyncio
async def test_missing_fields_are_rejected(client, email_sender):
    response = await client.post("/api/coupons/send", json={"offerCode": "BYRD-DVI90"})

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields: offerCode, to, name"
    assert email_sender.sent == []


@pytest.mark.asyncio
async def test_channel_failure_is_swallowed(db_session, app_config, clock, failing_sms_sender, email_sender):
    sms = failing_sms_sender
    email = email_sender
    lead = await _add_lead(db_session, created_at=clock.now - timedelta(minutes=5))

    result = await dispatch_coupon(
        db_session,
        request=_request(phone="555-0142", email="sam@example.com"),
        config=app_config,
        notifier=Notifier(email=email, sms=sms),
        now=clock.now,
    )

    assert sms.attempts == 1
    assert result.sms is ChannelOutcome.FAILED
    assert result.email is ChannelOutcome.SENT
    assert result.lead_id == lead.id


@pytest.mark.asyncio
async def test_marks_most_recent_matching_lead_once(db_session, app_config, notifier, clock):
    older = await _add_lead(db_session, created_at=clock.now - timedelta(hours=3))
    newer = await _add_lead(db_session, created_at=clock.now - timedelta(hours=1))

    first = await dispatch_coupon(
        db_session,
        request=_request(phone="555-0142"),
        config=app_config,
        notifier=notifier,
        now=clock.now,
    )
    assert first.lead_id == newer.id

    await db_session.refresh(newer)
    await db_session.refresh(older)
    assert newer.coupon_sent is True
    assert newer.coupon_data["customerName"] == "Sam"
    assert older.coupon_sent is False
    stamped_at = newer.coupon_sent_at

    second = await dispatch_coupon(
        db_session,
        request=_request(phone="555-0142"),
        config=app_config,
        notifier=notifier,
        now=clock.now + timedelta(minutes=10),
    )
    await db_session.refresh(newer)
    assert second.lead_id == newer.id
    assert newer.coupon_sent_at == stamped_at


@pytest.mark.asyncio
async def test_falls_back_to_email_match(db_session, app_config, notifier, clock):
    lead = await _add_lead(db_session, created_at=clock.now - timedelta(hours=2))

    result = await dispatch_coupon(
        db_session,
        request=_request(email="sam@example.com"),
        config=app_config,
        notifier=notifier,
        now=clock.now,
    )

    assert result.lead_id == lead.id


@pytest.mark.asyncio
async def test_leads_outside_window_are_not_marked(db_session, app_config, notifier, clock):
    stale = await _add_lead(db_session, created_at=clock.now - timedelta(days=2))

    result = await dispatch_coupon(
        db_session,
        request=_request(phone="555-0142"),
        config=app_config,
        notifier=notifier,
        now=clock.now,
    )

    await db_session.refresh(stale)
    assert result.lead_id is None
    assert stale.coupon_sent is False
