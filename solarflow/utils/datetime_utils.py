"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, date, datetime, tzinfo


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes.

    Some stores (SQLite) drop tzinfo on the way back; every timestamp we
    write is UTC, so a naive value is read as UTC.

    Args:
        value: Datetime, naive or aware

    Returns:
        Timezone-aware datetime
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def local_date(value: datetime, tz: tzinfo) -> date:
    """Calendar date of a timestamp in the given timezone."""
    return ensure_utc(value).astimezone(tz).date()


def calendar_days_between(start: datetime, end: datetime, tz: tzinfo) -> int:
    """
    Count midnight boundaries crossed between two timestamps.

    23:00 -> 01:00 next day is one calendar day, not zero.
    """
    return (local_date(end, tz) - local_date(start, tz)).days


def format_long_date(value: datetime, tz: tzinfo) -> str:
    """Format as '18 October 2026'."""
    d = local_date(value, tz)
    return f"{d.day} {d.strftime('%B')} {d.year}"
