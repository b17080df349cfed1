"""
Timezone utilities for Daybook.

Event times are naive datetimes in local wall-clock time. The only place
a timezone matters is "now", which is taken in the configured zone and
then stripped of its tzinfo so it compares directly with event times.
"""

from datetime import datetime, time
import time as _time
import pytz


# Default timezone - can be overridden by config
_local_timezone_name: str = "Asia/Taipei"


def set_timezone(timezone_name: str):
    """Set the local timezone for the application."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.
    
    Returns:
        pytz timezone object for the configured local timezone.
    """
    try:
        return pytz.timezone(_local_timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback: try system timezone name
        try:
            return pytz.timezone(_time.tzname[0])
        except pytz.UnknownTimeZoneError:
            # Last resort: calculate offset and use fixed offset timezone
            is_dst = _time.localtime().tm_isdst
            if is_dst:
                offset_seconds = -_time.altzone
            else:
                offset_seconds = -_time.timezone
            return pytz.FixedOffset(offset_seconds // 60)


def is_valid_timezone(timezone_name: str) -> bool:
    return timezone_name in pytz.all_timezones_set


def local_now() -> datetime:
    """
    Current wall-clock time in the configured timezone, as a naive datetime.
    """
    return datetime.now(pytz.UTC).astimezone(get_local_timezone()).replace(tzinfo=None)


def to_local_naive(dt: datetime) -> datetime:
    """
    Convert an aware datetime to naive local wall-clock time.
    
    Naive input is assumed to already be local and is returned unchanged.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(get_local_timezone()).replace(tzinfo=None)
    return dt


def start_of_day(value) -> datetime:
    """Midnight at the beginning of the day containing ``value``."""
    day = value.date() if isinstance(value, datetime) else value
    return datetime.combine(day, time.min)


def end_of_day(value) -> datetime:
    """Last representable instant of the day containing ``value``."""
    day = value.date() if isinstance(value, datetime) else value
    return datetime.combine(day, time.max)


def same_day(a, b) -> bool:
    """True if both values fall on the same calendar day."""
    day_a = a.date() if isinstance(a, datetime) else a
    day_b = b.date() if isinstance(b, datetime) else b
    return day_a == day_b


def local_naive_to_utc(dt: datetime) -> datetime:
    """
    Convert a naive local datetime to UTC.
    
    Args:
        dt: A naive datetime representing local time.
    
    Returns:
        A timezone-aware datetime in UTC.
    """
    if dt.tzinfo is None:
        local_tz = get_local_timezone()
        local_dt = local_tz.localize(dt)
        return local_dt.astimezone(pytz.UTC)
    return dt.astimezone(pytz.UTC)
