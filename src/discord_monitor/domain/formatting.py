"""Display formatting helpers shared by commands and the query API."""

from datetime import datetime

from discord_monitor.domain.clock import as_utc, utcnow
from discord_monitor.domain.constants import STORAGE_LIMIT_KB

ZERO_UPTIME = "0m"


def format_uptime(started_at: datetime | None, now: datetime | None = None) -> str:
    """Format the time elapsed since ``started_at``.

    Shows the two largest non-zero units among days, hours and minutes,
    e.g. "2d 3h", "5h 12m" or "42m".

    Args:
        started_at: Connection start time, or None when not connected.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        Formatted uptime, "0m" when not connected.
    """
    if started_at is None:
        return ZERO_UPTIME

    now = now or utcnow()
    elapsed = int((as_utc(now) - as_utc(started_at)).total_seconds())
    if elapsed <= 0:
        return ZERO_UPTIME

    days, remainder = divmod(elapsed, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    parts = [
        f"{value}{unit}"
        for value, unit in ((days, "d"), (hours, "h"), (minutes, "m"))
        if value > 0
    ]
    if not parts:
        return ZERO_UPTIME
    return " ".join(parts[:2])


def estimate_storage_usage(messages_count: int) -> int:
    """Estimate storage usage in KB, assuming about 1 KB per message."""
    return messages_count


def calculate_storage_percentage(usage_kb: int) -> int:
    """Return the storage usage as a rounded percentage of the capacity ceiling."""
    return round(usage_kb / STORAGE_LIMIT_KB * 100)


def format_storage_usage(usage_kb: int) -> str:
    """Format a KB amount as megabytes with one decimal."""
    return f"{usage_kb / 1024:.1f} MB"


def format_date_range(days_back: int) -> str:
    """Return a human label for a look-back window."""
    if days_back == 1:
        return "Today"
    return f"Last {days_back} days"


def format_date(value: datetime) -> str:
    """Format a date as "Oct 3, 2026"."""
    return f"{value:%b} {value.day}, {value.year}"


def format_timestamp(value: datetime) -> str:
    """Format a timestamp as "Oct 3, 2026 14:05"."""
    return f"{format_date(value)} {value:%H:%M}"
