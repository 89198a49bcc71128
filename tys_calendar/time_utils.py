"""
Timestamp utilities for the calendar engine.

Event times are naive wall-clock datetimes, kept exactly as authored.
Offsets found on input are dropped without conversion; only the iCalendar
export attaches UTC, treating the wall-clock value as UTC.
"""

from datetime import datetime, date, time
from typing import Union
import pytz


TimestampLike = Union[str, datetime, date]

# Last representable instant of a day, millisecond precision
END_OF_DAY = time(23, 59, 59, 999000)


class InvalidTimestampError(ValueError):
    """Raised when a timestamp cannot be parsed."""


def _to_millis(dt: datetime) -> datetime:
    return dt.replace(tzinfo=None, microsecond=dt.microsecond // 1000 * 1000)


def parse_timestamp(value: TimestampLike) -> datetime:
    """
    Normalise a timestamp to a naive datetime.

    Args:
        value: ISO-8601 string (a trailing 'Z' is accepted), datetime or date.

    Returns:
        A naive datetime. Dates become midnight; any tzinfo is stripped
        without shifting the wall-clock value. Precision is cut to
        milliseconds, the precision of the stored snapshot.

    Raises:
        InvalidTimestampError: if the value is empty or not ISO-8601.
    """
    if isinstance(value, datetime):
        return _to_millis(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str) or not value.strip():
        raise InvalidTimestampError(f"Invalid timestamp: {value!r}")

    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidTimestampError(f"Invalid timestamp: {value!r}") from e
    return _to_millis(parsed)


def to_iso(dt: datetime) -> str:
    """Format a naive datetime the way the browser snapshot stores it."""
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def to_utc_datetime(dt: datetime) -> datetime:
    """
    Attach UTC to a datetime.

    Naive values are localized as UTC (no shift); aware values are converted.
    """
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return the first and last instant of a calendar day."""
    return datetime.combine(day, time.min), datetime.combine(day, END_OF_DAY)


def as_date(value: TimestampLike) -> date:
    """Calendar day of a timestamp."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return parse_timestamp(value).date()


def minutes_of_day(dt: datetime) -> int:
    return dt.hour * 60 + dt.minute

