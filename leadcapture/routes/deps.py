# leadcapture/routes/deps.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from fastapi import Depends, Header

from leadcapture.core.config import Settings, settings
from leadcapture.services.auth import extract_bearer_token, verify_admin_token

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """Time source for handlers; overridden in tests."""
    return utc_now


def get_settings() -> Settings:
    return settings


async def require_admin(
    authorization: Optional[str] = Header(default=None),
    config: Settings = Depends(get_settings),
) -> Dict:
    """Decoded admin token claims from the ``Authorization`` header."""
    return verify_admin_token(extract_bearer_token(authorization), config=config)
