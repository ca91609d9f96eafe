"""UTC helpers and the string encoding used to store datetimes."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware datetimes are converted.

    Example:
        >>> ensure_utc(datetime(2025, 11, 4, 12, 0)).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 string to a UTC datetime.

    Accepts ``2025-11-04T12:00:00Z``, explicit offsets, naive timestamps and
    bare dates. Unparseable or blank input yields None.
    """
    if not value or not str(value).strip():
        return None

    cleaned = str(value).strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        pass

    # Fall back to the date part of otherwise unusual timestamps.
    try:
        return ensure_utc(datetime.strptime(cleaned[:10], "%Y-%m-%d"))
    except ValueError:
        return None
