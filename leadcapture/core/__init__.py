# leadcapture/core/__init__.py
"""
Core package for configuration, logging, and shared utilities.
"""

from leadcapture.core.catalog import AppConfig, OfferTemplate, get_app_config
from leadcapture.core.config import Settings, settings
from leadcapture.core.logging import configure_structlog, get_structlog_logger

__all__ = [
    "AppConfig",
    "OfferTemplate",
    "Settings",
    "settings",
    "configure_structlog",
    "get_app_config",
    "get_structlog_logger",
]
