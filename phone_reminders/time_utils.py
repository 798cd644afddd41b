"""UTC helpers.

Timestamps are aware datetimes holding UTC instants. Aware input in any
offset is converted to UTC; naive input is taken to already be UTC.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC instant."""
    return datetime.now(timezone.utc)


def to_utc(value: datetime | None) -> datetime | None:
    """Normalize a datetime to an aware UTC instant."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
