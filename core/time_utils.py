from datetime import date, datetime, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from core.config import settings
from core.exceptions import ValidationError

UTC = ZoneInfo("UTC")

DayLike = Union[date, datetime, str]

def get_reference_timezone() -> ZoneInfo:
    """Returns the configured reference timezone."""
    return ZoneInfo(settings.REFERENCE_TIMEZONE)

def get_current_time(tz: Optional[ZoneInfo] = None) -> datetime:
    """Returns the current time in the reference timezone (or `tz`)."""
    return datetime.now(tz or get_reference_timezone())

def to_reference(dt: datetime, tz: ZoneInfo) -> datetime:
    """Converts a datetime object to `tz`."""
    if dt.tzinfo is None:
        # Assume naive datetimes from DB are UTC
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(tz)

def to_calendar_day(value: DayLike, tz: ZoneInfo) -> date:
    """
    Normalizes a date, datetime or ISO string to a calendar day in `tz`.

    Plain dates are already calendar days and pass through untouched.
    Datetimes (and strings carrying a time part) are converted to `tz` first,
    so 2024-03-01T20:00Z lands on 2024-03-02 in Asia/Kolkata.
    """
    if isinstance(value, datetime):
        return to_reference(value, tz).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            # fromisoformat only understands a trailing Z from 3.11 on
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return to_reference(datetime.fromisoformat(text), tz).date()
        except ValueError:
            raise ValidationError(f"Unparseable date: {value!r}")
    raise ValidationError(f"Unsupported date value: {value!r}")

def week_start(day: date) -> date:
    """Monday of the ISO week containing `day`."""
    return day - timedelta(days=day.weekday())
