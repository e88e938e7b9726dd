# leadcapture/services/export.py
"""CSV export of captured leads for the admin dashboard."""
from __future__ import annotations

import csv
import io
from typing import Iterable, Iterator, List, Sequence, Tuple

from leadcapture.db.base import as_utc
from leadcapture.models.lead import Lead

CSV_COLUMNS: Sequence[Tuple[str, str]] = (
    ("Created", "created_at"),
    ("First Name", "first_name"),
    ("Last Name", "last_name"),
    ("Phone", "phone"),
    ("Email", "email"),
    ("Vehicle", "vehicle"),
    ("Concern", "concern"),
    ("Offer", "offer_code"),
    ("Status", "status"),
    ("Coupon Sent", "coupon_sent"),
    ("Booking Redirected", "booking_redirected"),
    ("Marketing Opt-In", "marketing_opt_in"),
    ("Page", "page"),
)

# Leading characters spreadsheet apps treat as formulas
_FORMULA_PREFIXES = ("=", "+", "-", "@")


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if hasattr(value, "isoformat"):
        return as_utc(value).isoformat()
    text = str(value)
    if text.startswith(_FORMULA_PREFIXES):
        return "'" + text
    return text


def lead_row(lead: Lead) -> List[str]:
    return [_cell(getattr(lead, attr)) for _, attr in CSV_COLUMNS]


def iter_leads_csv(leads: Iterable[Lead]) -> Iterator[str]:
    """Yield the CSV document line by line, header first."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow([header for header, _ in CSV_COLUMNS])
    yield buffer.getvalue()

    for lead in leads:
        buffer.seek(0)
        buffer.truncate(0)
        writer.writerow(lead_row(lead))
        yield buffer.getvalue()
