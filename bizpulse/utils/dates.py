"""Date parsing helpers for records coming from the data-access layer.

Records carry dates as ISO strings (``"2024-05-01"``,
``"2024-05-01T10:30:00Z"``), ``date`` or ``datetime`` objects. Everything is
normalized to timezone-aware UTC; naive values and bare dates are taken as UTC.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any

ONE_DAY = timedelta(days=1)


def parse_datetime(value: Any) -> datetime:
    """
    Parse ``value`` into an aware UTC datetime.

    Raises:
        ValueError: value is empty or not a recognizable date
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Not a date: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def whole_days_between(start: datetime, end: datetime) -> int:
    """Floor of ``(end - start)`` in days."""
    return (end - start) // ONE_DAY
