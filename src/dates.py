"""Timestamp helpers shared by the reminder engine and the store."""
from datetime import datetime, timedelta, timezone
from typing import Optional, Union


ONE_DAY = timedelta(days=1)


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are taken to be UTC. A trailing 'Z' is accepted.

    Args:
        value: ISO string or datetime

    Returns:
        Aware datetime in UTC

    Raises:
        ValueError: If the value is empty or not a valid timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for storage, or None."""
    if value is None:
        return None
    return parse_timestamp(value).isoformat()


def days_between(later: datetime, earlier: datetime) -> int:
    """Whole days elapsed from `earlier` to `later`.

    Partial days are dropped, truncating toward zero, so 71 hours is 2
    days and -30 hours is -1 day.
    """
    return int((parse_timestamp(later) - parse_timestamp(earlier)) / ONE_DAY)
