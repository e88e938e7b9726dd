# leadcapture/routes/offers.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from leadcapture.core.catalog import AppConfig, get_app_config, offer_summary

router = APIRouter(tags=["offers"])


@router.get("/offers")
async def list_offers(config: AppConfig = Depends(get_app_config)):
    """Catalog offers with their booking links."""
    return {
        "success": True,
        "brand": {
            "name": config.brand.name,
            "phone": config.brand.phone,
            "address": config.brand.address,
            "hours": config.brand.hours,
        },
        "offers": [offer_summary(config, template) for template in config.offers.values()],
    }
