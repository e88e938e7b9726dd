# leadcapture/services/normalization.py
from __future__ import annotations

import re
from typing import Any, Optional

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def clean_text(value: Optional[Any]) -> str:
    """Trimmed string, empty for missing values."""
    if value is None:
        return ""
    return str(value).strip()


def is_valid_email(email: Optional[str]) -> bool:
    cleaned = clean_text(email)
    if not cleaned:
        return False
    return bool(_EMAIL_PATTERN.match(cleaned))
