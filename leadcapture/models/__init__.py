# leadcapture/models/__init__.py
"""
SQLAlchemy ORM models for database entities.
"""

from leadcapture.models.lead import Lead, LeadStatus
from leadcapture.models.upsell import Upsell

__all__ = [
    "Lead",
    "LeadStatus",
    "Upsell",
]
