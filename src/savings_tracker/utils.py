"""Shared utilities for the savings tracker."""

from datetime import date, datetime, timedelta, timezone
from collections.abc import Iterator


def today() -> date:
    """Current local calendar date."""
    return date.today()


def parse_timestamp_ms(ts_ms: float) -> date:
    """Convert a Unix timestamp in milliseconds to its UTC calendar date."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).date()


def day_range(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end, inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def redact_query(message: str) -> str:
    """Cut a message at the first '?' so URL query strings (API keys) never leak."""
    idx = message.find("?")
    if idx == -1:
        return message
    return f"{message[:idx]}?<query redacted>"
