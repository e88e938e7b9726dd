"""Field validation for lead, coupon and upsell submissions."""
from __future__ import annotations

from typing import Dict

from leadcapture.core.catalog import AppConfig
from leadcapture.core.exceptions import ValidationError
from leadcapture.schemas.coupon import CouponSendRequest
from leadcapture.schemas.lead import LeadIn
from leadcapture.schemas.upsell import UpsellIn
from leadcapture.services.normalization import clean_text, is_valid_email


def validate_lead_data(lead: LeadIn, config: AppConfig) -> Dict[str, str]:
    """Return a field -> message map; empty when the submission is valid."""
    errors: Dict[str, str] = {}

    if not clean_text(lead.first_name):
        errors["firstName"] = "First name is required"

    if not clean_text(lead.phone):
        errors["phone"] = "Phone number is required"

    email = clean_text(lead.email)
    if email and not is_valid_email(email):
        errors["email"] = "Please enter a valid email address"

    offer_code = clean_text(lead.offer_code)
    if offer_code and config.get_offer(offer_code) is None:
        errors["offerCode"] = "Invalid offer code"

    return errors


def ensure_valid_lead(lead: LeadIn, config: AppConfig) -> None:
    errors = validate_lead_data(lead, config)
    if errors:
        if "firstName" in errors or "phone" in errors:
            message = "First name and phone number are required"
        else:
            message = "Please correct the highlighted fields"
        raise ValidationError(message=message, fields=errors)


def ensure_valid_coupon_request(request: CouponSendRequest, config: AppConfig) -> None:
    missing = [
        name
        for name, value in (
            ("offerCode", clean_text(request.offer_code)),
            ("to", request.to),
            ("name", clean_text(request.name)),
        )
        if not value
    ]
    if missing:
        raise ValidationError(
            message="Missing required fields: offerCode, to, name",
            fields={name: "This field is required" for name in missing},
        )

    if config.get_offer(clean_text(request.offer_code)) is None:
        raise ValidationError(
            message="Invalid offer code",
            fields={"offerCode": "Invalid offer code"},
        )


def ensure_valid_upsell(upsell: UpsellIn) -> None:
    missing = [
        name
        for name, value in (("product", upsell.product), ("offer", upsell.offer))
        if not clean_text(value)
    ]
    if missing:
        raise ValidationError(
            message="Missing required fields: product, offer",
            fields={name: "This field is required" for name in missing},
        )
