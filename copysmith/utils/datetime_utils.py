"""Local-day helpers for the day-scoped usage counters.

Quotas reset at local midnight, so everything here works in local time
rather than UTC.
"""
from datetime import date, datetime, time, timedelta


def local_now() -> datetime:
    """Current local time as a timezone-aware datetime."""
    return datetime.now().astimezone()


def today_iso(now: datetime = None) -> str:
    """ISO day string (YYYY-MM-DD) for the local calendar day."""
    now = now or local_now()
    return now.date().isoformat()


def next_local_midnight(now: datetime = None) -> datetime:
    """Start of the next local calendar day."""
    now = now or local_now()
    tomorrow: date = now.date() + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=now.tzinfo)


def parse_iso(s: str) -> datetime:
    """Parse an ISO 8601 string; naive values are taken as local time.

    Returns None for empty or unparseable strings.
    """
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s)
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt
