from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Union

# A timestamp as accepted on input: a date, a datetime, or an ISO8601 string
TimestampInput = Union[date, datetime, str]


# PUBLIC_INTERFACE
def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def as_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC. Naive values are taken to already be UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# PUBLIC_INTERFACE
def parse_timestamp(value: Optional[TimestampInput]) -> Optional[datetime]:
    """
    Normalize timestamp input into an aware UTC datetime.
    - If value is a string, attempt to parse via datetime.fromisoformat; if time is missing, set to 00:00.
    - If value is a date (not datetime), convert to datetime at 00:00 UTC.
    - If value is a datetime, normalize it to UTC.

    Raises:
        ValueError: if the value cannot be interpreted as a timestamp.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return as_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, str):
        s = value.strip()
        # fromisoformat only learned the 'Z' suffix in 3.11
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(s))
        except ValueError:
            try:
                d = date.fromisoformat(s)
            except ValueError as e:
                raise ValueError(
                    "Invalid deadline format. Use ISO8601 date or datetime string "
                    "(e.g., '2025-01-31' or '2025-01-31T13:45:00Z')."
                ) from e
            return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)

    raise ValueError("Invalid type for deadline; expected date, datetime, or ISO8601 string.")


# PUBLIC_INTERFACE
def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """
    Serialize a datetime for storage. Fixed-width microseconds keep stored values
    lexicographically ordered.
    """
    if value is None:
        return None
    return as_utc(value).isoformat(timespec="microseconds")
