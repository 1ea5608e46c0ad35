# File: utils/dt_utils.py
"""Date and time utilities for TailTimer.

Pure Python date/time functions with no package-internal dependencies.
All functions here can be unit tested without any fixtures.

Functions:
    - set_default_timezone / get_default_timezone: Configure the local timezone
    - dt_today_local: Get today's date in local timezone
    - dt_now_local / dt_now_utc: Current datetime
    - as_utc / as_local: Timezone conversion
    - dt_parse_date: Parse date strings
    - dt_parse: Normalize datetime inputs
    - dt_format: Format datetime to various output types
    - dt_to_local_date: Strip any date-like input to a local calendar day
    - dt_parse_time: Normalize clock-time inputs to hour:minute
    - parse_reminder_times: Parse a reminder time collection
    - format_reminder_time: Format a clock time as HH:MM
    - resolve_dose_time: Combine a day and a reminder time (the one shared resolver)
    - dt_days_between: Signed whole days between two calendar days
    - dt_date_range: Inclusive list of days
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import tzinfo
    from zoneinfo import ZoneInfo

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: tzinfo = UTC

# Return type constants
HELPER_RETURN_DATETIME = "datetime"
HELPER_RETURN_DATE = "date"
HELPER_RETURN_ISO_DATETIME = "iso_datetime"

# Reminder time separator for string input ("08:00|20:00")
REMINDER_TIMES_SEPARATOR = "|"


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo | tzinfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this once during application setup with the user's timezone.

    Args:
        tz: Timezone object representing the local timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> tzinfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: tzinfo | None = None) -> date:
    """Return today's date in local timezone as a `datetime.date`.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Example:
        datetime.date(2024, 1, 5)
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_now_local(tz: tzinfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware)."""
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info)


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC timezone.

    Naive datetimes are assumed to be in the default (local) timezone.
    """
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Naive datetimes are assumed to already be local wall-clock time.

    Args:
        dt_obj: Datetime object
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=tz_info)
    return dt_obj.astimezone(tz_info)


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2024-01-05" (ISO format)
    - "01/05/2024" (US format)
    - "05/01/2024" (European format - attempted if US fails)

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    for fmt in ("%m/%d/%Y", "%d/%m/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    return None


def dt_parse(
    dt_input: str | date | datetime | None,
    default_tzinfo: tzinfo | None = None,
    return_type: str | None = HELPER_RETURN_DATETIME,
) -> datetime | date | str | None:
    """Normalize various datetime input formats to a consistent format.

    Handles string, date and datetime inputs and ensures timezone awareness.

    Args:
        dt_input: String, date or datetime to normalize, or None
        default_tzinfo: Timezone to use if the input is naive
                        (defaults to DEFAULT_TIME_ZONE if None)
        return_type: One of the HELPER_RETURN_* constants

    Returns:
        Normalized datetime, date, or string based on return_type, or None if
        the input could not be parsed.

    Example:
        >>> dt_parse("2024-01-05")
        datetime.datetime(2024, 1, 5, 0, 0, tzinfo=datetime.timezone.utc)
    """
    if not dt_input:
        return None

    tz_info = default_tzinfo or DEFAULT_TIME_ZONE
    result: datetime | None = None

    if isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input)
        except ValueError:
            parsed_date = dt_parse_date(dt_input)
            if parsed_date:
                result = datetime.combine(parsed_date, datetime.min.time())
            else:
                return None

    elif isinstance(dt_input, datetime):
        result = dt_input

    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())

    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=tz_info)

    return dt_format(result, return_type)


def dt_format(
    dt_obj: datetime,
    return_type: str | None = HELPER_RETURN_DATETIME,
) -> datetime | date | str:
    """Format a datetime object according to the specified return_type.

    Args:
        dt_obj: The datetime object to format
        return_type: The desired return format:
            - HELPER_RETURN_DATETIME: returns the datetime object unchanged
            - HELPER_RETURN_DATE: returns the local calendar day as a date object
            - HELPER_RETURN_ISO_DATETIME: returns an ISO-formatted datetime string
    """
    if return_type == HELPER_RETURN_DATETIME:
        return dt_obj
    if return_type == HELPER_RETURN_DATE:
        return as_local(dt_obj).date()
    if return_type == HELPER_RETURN_ISO_DATETIME:
        return dt_obj.isoformat()
    return dt_obj


def dt_to_local_date(
    value: str | date | datetime | None,
    tz: tzinfo | None = None,
) -> date | None:
    """Strip any date-like input down to its local calendar day.

    Plain dates pass through unchanged. Aware datetimes are converted to the
    local timezone before the time-of-day is dropped, so 23:30 UTC on Jan 4 is
    Jan 5 in Berlin. Naive datetimes are taken as local wall-clock time.

    Returns:
        The local date, or None if the input cannot be interpreted.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_local(value, tz).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        parsed_date = dt_parse_date(value)
        if parsed_date:
            return parsed_date
        parsed = dt_parse(value, default_tzinfo=tz)
        if isinstance(parsed, datetime):
            return as_local(parsed, tz).date()
    return None


# ==============================================================================
# Reminder Times
# ==============================================================================


def dt_parse_time(
    value: str | time | datetime | None,
    tz: tzinfo | None = None,
) -> time | None:
    """Normalize a clock-time input to an hour:minute `datetime.time`.

    Accepts:
    - time objects (seconds and tzinfo are dropped)
    - datetimes (the date is ignored; aware values use their local clock time)
    - "HH:MM" or "HH:MM:SS" strings

    Returns:
        time(hour, minute) or None if the value is not a valid clock time.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        local_value = as_local(value, tz) if value.tzinfo else value
        return time(local_value.hour, local_value.minute)
    if isinstance(value, time):
        return time(value.hour, value.minute)
    if not isinstance(value, str):
        return None

    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        return None
    try:
        hour = int(parts[0])
        minute = int(parts[1])
    except ValueError:
        return None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return time(hour, minute)


def parse_reminder_times(
    values: Iterable[str | time | datetime] | str | None,
    tz: tzinfo | None = None,
) -> list[time]:
    """Parse a reminder time collection into sorted, unique hour:minute times.

    Args:
        values: Iterable of times/strings/datetimes, or a pipe-separated string
                (e.g., "08:00|20:00")
        tz: Timezone used to read aware datetimes

    Returns:
        Sorted list of distinct times. Invalid entries are skipped with a
        warning. Empty list if nothing valid was found.

    Example:
        >>> parse_reminder_times("20:00|08:00|08:00")
        [datetime.time(8, 0), datetime.time(20, 0)]
    """
    if not values:
        return []

    if isinstance(values, str):
        raw_values: Iterable[str | time | datetime] = [
            part for part in values.split(REMINDER_TIMES_SEPARATOR) if part.strip()
        ]
    else:
        raw_values = values

    result: set[time] = set()
    try:
        for raw in raw_values:
            parsed = dt_parse_time(raw, tz)
            if parsed is None:
                _LOGGER.warning(
                    "Invalid reminder time: %s (expected HH:MM)",
                    raw,
                )
                continue
            result.add(parsed)
    except TypeError:
        _LOGGER.warning("Reminder times are not iterable: %r", values)
        return []

    return sorted(result)


def format_reminder_time(value: time) -> str:
    """Format a clock time as zero-padded "HH:MM"."""
    return f"{value.hour:02d}:{value.minute:02d}"


def resolve_dose_time(
    on_date: date,
    reminder_time: time,
    tz: tzinfo | None = None,
) -> datetime:
    """Resolve a reminder clock time on a calendar day into the dose timestamp.

    This is the ONLY place a dose's scheduled time is computed. Both the
    materializer (read path) and log creation (write path) call it, so a log
    written for a dose always compares equal to that dose's scheduled_time.

    Seconds and microseconds are always zero.

    Args:
        on_date: Local calendar day of the dose
        reminder_time: Clock time (only hour and minute are used)
        tz: Timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Timezone-aware datetime in the local timezone.

    Example:
        >>> resolve_dose_time(date(2024, 1, 5), time(8, 0))
        datetime.datetime(2024, 1, 5, 8, 0, tzinfo=datetime.timezone.utc)
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime(
        on_date.year,
        on_date.month,
        on_date.day,
        reminder_time.hour,
        reminder_time.minute,
        tzinfo=tz_info,
    )


# ==============================================================================
# Day Arithmetic
# ==============================================================================


def dt_days_between(start: date, end: date) -> int:
    """Return the signed number of whole days from start to end.

    Negative when end is before start.
    """
    return (end - start).days


def dt_date_range(start: date, end: date) -> list[date]:
    """Return every calendar day from start to end inclusive.

    Empty if end is before start.
    """
    span = dt_days_between(start, end)
    if span < 0:
        return []
    return [start + timedelta(days=offset) for offset in range(span + 1)]
