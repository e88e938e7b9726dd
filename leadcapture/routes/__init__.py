# leadcapture/routes/__init__.py
"""
API route handlers organized by domain.
"""

from leadcapture.routes.admin import router as admin_router
from leadcapture.routes.coupons import router as coupons_router
from leadcapture.routes.health import router as health_router
from leadcapture.routes.leads import router as leads_router
from leadcapture.routes.offers import router as offers_router
from leadcapture.routes.upsell import router as upsell_router

__all__ = [
    "admin_router",
    "coupons_router",
    "health_router",
    "leads_router",
    "offers_router",
    "upsell_router",
]
