"""Time-related utility functions."""

from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse a stored "YYYY-MM-DD" string; None stays None."""
    if value is None:
        return None
    return date.fromisoformat(value)
