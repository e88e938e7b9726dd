# leadcapture/core/catalog.py
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence
from urllib.parse import quote

from leadcapture.core.config import settings
from leadcapture.core.env import EnvSource, default_sources, resolve_env

DEFAULT_BOOKING_BASE_URL = (
    "https://booking.shopgenie.io/?shop=byrds-garage-3978714221"
    "&preselect_account=byrds-garage-3978713555&promo="
)


@dataclass(frozen=True)
class BrandInfo:
    name: str
    phone: str
    address: str
    hours: str


@dataclass(frozen=True)
class OfferTemplate:
    code: str
    name: str
    value: str
    description: str
    instructions: str
    valid_until: str = "30 days from booking"


@dataclass(frozen=True)
class AppConfig:
    """Brand, offer catalog and booking link, built once per process."""

    brand: BrandInfo
    booking_base_url: str
    offers: Mapping[str, OfferTemplate] = field(default_factory=lambda: MappingProxyType({}))

    def get_offer(self, code: Optional[str]) -> Optional[OfferTemplate]:
        if not code:
            return None
        return self.offers.get(code)

    def booking_url(self, offer_code: str) -> str:
        return f"{self.booking_base_url}{quote(offer_code, safe='')}"


OFFER_TEMPLATES: Sequence[OfferTemplate] = (
    OfferTemplate(
        code="BYRD-DVI90",
        name="FREE 90-Point Digital Vehicle Inspection",
        value="$89",
        description="Comprehensive inspection with photos & vehicle health score",
        instructions="Present this code at check-in for your free digital inspection.",
    ),
    OfferTemplate(
        code="BYRD-VIS15",
        name="FREE 15-Minute Visual Check",
        value="$25",
        description="Quick safety check for leaks, belts, tires & brakes",
        instructions="Show this code for your free 15-minute visual check.",
    ),
    OfferTemplate(
        code="BYRD-BRAKESNAP",
        name="Brake Life Snapshot (FREE)",
        value="$35",
        description="Pad thickness + rotor photos, know your brake life",
        instructions="Present this code for your free brake life snapshot.",
    ),
    OfferTemplate(
        code="BYRD-CHARGE",
        name="Battery & Charging System Test (FREE)",
        value="$45",
        description="Battery health + charging system, avoid breakdowns",
        instructions="Show this code for your free battery and charging system test.",
    ),
    OfferTemplate(
        code="BYRD-TRIP",
        name="Road-Trip Readiness Check (FREE)",
        value="$65",
        description="Complete safety sweep for your next adventure",
        instructions="Present this code for your free road-trip readiness check.",
    ),
)


def build_app_config(
    sources: Sequence[EnvSource],
    templates: Sequence[OfferTemplate] = OFFER_TEMPLATES,
) -> AppConfig:
    brand = BrandInfo(
        name=resolve_env("BRAND_NAME", "Byrd's Garage", sources),
        phone=resolve_env("BRAND_PHONE", "(916) 991-1079", sources),
        address=resolve_env("BRAND_ADDRESS", "220 Elverta Rd, Elverta, CA 95626", sources),
        hours=resolve_env("BRAND_HOURS", "Mon-Fri 8:00 AM - 5:00 PM", sources),
    )
    offers: Dict[str, OfferTemplate] = {template.code: template for template in templates}
    return AppConfig(
        brand=brand,
        booking_base_url=resolve_env("BOOKING_BASE_URL", DEFAULT_BOOKING_BASE_URL, sources),
        offers=MappingProxyType(offers),
    )


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """FastAPI dependency returning the process-wide configuration."""
    return build_app_config(
        default_sources(settings.build_env_file, settings.runtime_env_file)
    )


def offer_summary(config: AppConfig, template: OfferTemplate) -> Dict[str, Any]:
    return {
        "code": template.code,
        "name": template.name,
        "value": template.value,
        "description": template.description,
        "instructions": template.instructions,
        "validUntil": template.valid_until,
        "bookingUrl": config.booking_url(template.code),
    }
