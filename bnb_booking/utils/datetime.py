"""UTC datetime and calendar-date utilities."""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def nights_between(start: date, end: date) -> Iterator[date]:
    """
    Yield every night in the half-open range [start, end).

    The end date is the checkout day and is never occupied.

    Example:
        >>> list(nights_between(date(2025, 9, 10), date(2025, 9, 12)))
        [datetime.date(2025, 9, 10), datetime.date(2025, 9, 11)]
    """
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)
