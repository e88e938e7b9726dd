from datetime import timedelta, timezone

import pytest
from sqlalchemy import func, select

from leadcapture.models.lead import Lead
from leadcapture.services.lead_ingest import DUPLICATE_CLAIM_MESSAGE

JANE = {
    "firstName": "Jane",
    "phone": "555-0100",
    "email": "jane@x.com",
    "offerCode": "BYRD-DVI90",
}


async def _lead_count(db_session) -> int:
    return (await db_session.execute(select(func.count(Lead.id)))).scalar_one()


@pytest.mark.asyncio
async def test_create_lead(client, db_session, clock):
    response = await client.post(
        "/api/leads",
        json={**JANE, "lastName": "Doe", "utm": {"source": "fb"}, "marketingOptIn": True},
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "User-Agent": "pytest-agent"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Lead captured successfully"
    assert isinstance(body["leadId"], int)

    lead = await db_session.get(Lead, body["leadId"])
    assert lead.first_name == "Jane"
    assert lead.status == "pending"
    assert lead.coupon_sent is False
    assert lead.booking_redirected is False
    assert lead.marketing_opt_in is True
    assert lead.utm == {"source": "fb"}
    assert lead.ip_address == "203.0.113.7"
    assert lead.user_agent == "pytest-agent"
    assert lead.created_at.replace(tzinfo=timezone.utc) == clock.now


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["firstName", "phone"])
async def test_missing_required_field_is_rejected(client, db_session, missing):
    payload = {**JANE, missing: "  "}
    response = await client.post("/api/leads", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["error"] == "First name and phone number are required"
    assert missing in body["fields"]
    assert await _lead_count(db_session) == 0


@pytest.mark.asyncio
async def test_name_and_phone_alone_are_enough(client, db_session):
    response = await client.post("/api/leads", json={"firstName": "Jane", "phone": "555-0100"})

    assert response.status_code == 201
    lead = await db_session.get(Lead, response.json()["leadId"])
    assert lead.offer_code == ""
    assert lead.email == ""

    # Still guarded per (phone, offer_code), with the empty code as the key
    again = await client.post("/api/leads", json={"firstName": "Jane", "phone": "555-0100"})
    assert again.status_code == 409
    assert await _lead_count(db_session) == 1


@pytest.mark.asyncio
async def test_invalid_email_is_rejected(client, db_session):
    response = await client.post("/api/leads", json={**JANE, "email": "jane-at-x"})

    assert response.status_code == 400
    assert response.json()["fields"] == {"email": "Please enter a valid email address"}
    assert await _lead_count(db_session) == 0


@pytest.mark.asyncio
async def test_malformed_body_is_a_validation_error(client, db_session):
    response = await client.post("/api/leads", json={**JANE, "marketingOptIn": {"nested": True}})

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "validation_error"
    assert "marketingOptIn" in body["fields"]
    assert await _lead_count(db_session) == 0


@pytest.mark.asyncio
async def test_duplicate_within_window_is_rejected(client, db_session, clock):
    first = await client.post("/api/leads", json=JANE)
    assert first.status_code == 201

    clock.advance(timedelta(hours=23, minutes=59))
    second = await client.post("/api/leads", json=JANE)

    assert second.status_code == 409
    assert second.json()["code"] == "duplicate_claim"
    assert second.json()["error"] == DUPLICATE_CLAIM_MESSAGE
    assert await _lead_count(db_session) == 1


@pytest.mark.asyncio
async def test_window_lower_bound_is_inclusive(client, db_session, clock):
    assert (await client.post("/api/leads", json=JANE)).status_code == 201

    clock.advance(timedelta(hours=24))
    response = await client.post("/api/leads", json=JANE)

    assert response.status_code == 409
    assert await _lead_count(db_session) == 1


@pytest.mark.asyncio
async def test_resubmission_after_window_is_accepted(client, db_session, clock):
    assert (await client.post("/api/leads", json=JANE)).status_code == 201

    clock.advance(timedelta(hours=24, seconds=1))
    response = await client.post("/api/leads", json=JANE)

    assert response.status_code == 201
    assert await _lead_count(db_session) == 2


@pytest.mark.asyncio
async def test_other_offer_or_phone_is_not_a_duplicate(client, db_session):
    assert (await client.post("/api/leads", json=JANE)).status_code == 201
    assert (await client.post("/api/leads", json={**JANE, "offerCode": "BYRD-TRIP"})).status_code == 201
    assert (await client.post("/api/leads", json={**JANE, "phone": "555-0199"})).status_code == 201
    assert await _lead_count(db_session) == 3


@pytest.mark.asyncio
async def test_duplicate_ignores_status(client, db_session):
    created = await client.post("/api/leads", json=JANE)
    lead = await db_session.get(Lead, created.json()["leadId"])
    lead.status = "declined"
    await db_session.commit()

    response = await client.post("/api/leads", json=JANE)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_jane_claims_and_receives_coupon(client, db_session, sms_sender, email_sender):
    created = await client.post("/api/leads", json=JANE)
    assert created.status_code == 201
    lead_id = created.json()["leadId"]

    repeat = await client.post("/api/leads", json=JANE)
    assert repeat.status_code == 409

    sent = await client.post(
        "/api/coupons/send",
        json={"offerCode": "BYRD-DVI90", "to": {"phone": "555-0100", "email": "jane@x.com"}, "name": "Jane"},
    )
    assert sent.status_code == 200
    body = sent.json()
    assert body["success"] is True
    assert body["message"] == "Coupon sent successfully"
    assert body["couponData"]["code"] == "BYRD-DVI90"
    assert body["couponData"]["value"] == "$89"
    assert body["couponData"]["customerName"] == "Jane"

    assert len(sms_sender.sent) == 1
    assert len(email_sender.sent) == 1

    lead = await db_session.get(Lead, lead_id)
    await db_session.refresh(lead)
    assert lead.coupon_sent is True
    assert lead.coupon_data["code"] == "BYRD-DVI90"
