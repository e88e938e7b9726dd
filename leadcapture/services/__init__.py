# leadcapture/services/__init__.py
"""
Business logic services organized by domain functionality.
"""

from leadcapture.services.admin_stats import LeadStatsResult, compute_lead_stats, load_dashboard
from leadcapture.services.coupons import ChannelOutcome, CouponDispatchResult, dispatch_coupon
from leadcapture.services.dedupe import find_recent_duplicate
from leadcapture.services.lead_ingest import LeadIngestResult, ingest_lead
from leadcapture.services.upsell import record_upsell

__all__ = [
    # Admin
    "LeadStatsResult",
    "compute_lead_stats",
    "load_dashboard",
    # Coupons
    "ChannelOutcome",
    "CouponDispatchResult",
    "dispatch_coupon",
    # Lead ingestion
    "LeadIngestResult",
    "find_recent_duplicate",
    "ingest_lead",
    # Upsell
    "record_upsell",
]
