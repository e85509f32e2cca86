from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Make a naive datetime timezone-aware (UTC). Already-aware datetimes pass through.

    Aware datetimes in another zone are converted, so comparisons against
    utcnow() and ISO formatting always happen in UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_utc(value: str | datetime) -> datetime:
    """Parse a date string or datetime into a tz-aware UTC datetime.

    Handles ISO 8601 strings (with or without Z/offset) and bare datetimes.
    Always returns a timezone-aware datetime in UTC. Raises ValueError for
    unparsable strings.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(str(value).strip().replace("Z", "+00:00")))


def to_iso_utc(dt: datetime) -> str:
    """Format as second-precision UTC ISO 8601 with a Z suffix."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def from_timestamp(ts: int | float) -> datetime:
    """Epoch seconds -> tz-aware UTC datetime."""
    return datetime.fromtimestamp(float(ts), tz=timezone.utc)
