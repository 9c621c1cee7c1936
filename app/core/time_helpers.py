"""
Day-of-week and time-of-day helpers for the weekly availability model.

Times are minutes since midnight UTC (0-1439) internally and ``HH:mm``
strings on the wire. Days are the seven capitalized English names.
"""

from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Tuple
import enum
import re

from dateutil import parser as date_parser

from app.core.exceptions import InvalidDayError, InvalidTimeFormatError, InvalidDateError

MINUTES_PER_DAY = 24 * 60

_HH_MM = re.compile(r"^(\d{2}):(\d{2})$")
_DAY_SEPARATORS = re.compile(r"[\s_\-]+")

# Two different defaults reveal whether a parsed string carried its own date
_PROBE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


class WeekDay(str, enum.Enum):
    SUNDAY = "Sunday"
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"

    @property
    def index(self) -> int:
        """Sunday=0 ... Saturday=6"""
        return WEEK_DAYS.index(self)


WEEK_DAYS: Tuple[WeekDay, ...] = tuple(WeekDay)

_DAY_LOOKUP = MappingProxyType({day.value.lower(): day for day in WEEK_DAYS})

# Sort position for stored day values that no longer normalize
UNKNOWN_DAY_INDEX = len(WEEK_DAYS)


def normalize_day(value: Any) -> WeekDay:
    """Case and separator insensitive lookup of a day name"""
    if isinstance(value, WeekDay):
        return value
    if not isinstance(value, str):
        raise InvalidDayError(f"Invalid day: {value!r}")

    key = _DAY_SEPARATORS.sub("", value).lower()
    day = _DAY_LOOKUP.get(key)
    if day is None:
        raise InvalidDayError(f"Invalid day: {value!r}")
    return day


def day_index(value: Any) -> int:
    try:
        return normalize_day(value).index
    except InvalidDayError:
        return UNKNOWN_DAY_INDEX


def parse_time_of_day(value: Any, field_name: str = "time") -> int:
    """Parse ``HH:mm`` into minutes since midnight.

    Legacy payloads carried full datetime strings; for those the UTC
    hour and minute are kept and the date is dropped.
    """
    if not isinstance(value, str):
        raise InvalidTimeFormatError(f"{field_name} must be a string in HH:mm format")

    text = value.strip()
    match = _HH_MM.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours <= 23 and minutes <= 59:
            return hours * 60 + minutes
        raise InvalidTimeFormatError(f"{field_name} must be a valid time in HH:mm format")

    parsed = _parse_full_datetime(text)
    if parsed is None:
        raise InvalidTimeFormatError(f"{field_name} must be in HH:mm format")

    parsed = parsed.astimezone(timezone.utc)
    return parsed.hour * 60 + parsed.minute


def _parse_full_datetime(text: str):
    """Parse a string that carries both a date and a time, else None"""
    try:
        first, second = (date_parser.parse(text, default=d) for d in _PROBE_DEFAULTS)
    except (ValueError, OverflowError):
        return None

    # A bare time (or a bare date) is not a full datetime
    if first.date() != second.date():
        return None
    if not re.search(r"\d{1,2}:\d{2}", text):
        return None

    if first.tzinfo is None:
        first = first.replace(tzinfo=timezone.utc)
    return first


def format_time_of_day(minutes: int) -> str:
    """Zero padded ``HH:mm``; end of day (1440) renders as 00:00"""
    minutes = minutes % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def compute_range(start_minute: int, end_minute: int) -> Tuple[int, int]:
    """Minute range of a slot.

    An end of 00:00 after a non-zero start is the legacy spelling of
    midnight at the end of the day. Overnight spans are not wrapped.
    """
    if end_minute == 0 and start_minute > 0:
        return start_minute, MINUTES_PER_DAY
    return start_minute, end_minute


def ranges_overlap(first: Tuple[int, int], second: Tuple[int, int]) -> bool:
    """Closed-open intervals [start, end) intersect"""
    return first[0] < second[1] and first[1] > second[0]


def parse_instant(value: Any) -> datetime:
    """Parse an ISO-8601 instant; values without an offset are UTC"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            raise InvalidDateError("Invalid session date provided")
    else:
        raise InvalidDateError("Invalid session date provided")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def day_of(instant: datetime) -> WeekDay:
    """UTC day of week of an instant"""
    utc = instant.astimezone(timezone.utc)
    # datetime.weekday() is Monday=0
    return WEEK_DAYS[(utc.weekday() + 1) % 7]


def previous_day(day: WeekDay) -> WeekDay:
    return WEEK_DAYS[(day.index + 6) % 7]


def next_day(day: WeekDay) -> WeekDay:
    return WEEK_DAYS[(day.index + 1) % 7]


def minute_of_day(instant: datetime) -> int:
    utc = instant.astimezone(timezone.utc)
    return utc.hour * 60 + utc.minute


def collision_bounds(instant: datetime, window_minutes: int) -> Tuple[datetime, datetime]:
    """Open interval around an instant used to detect clashing bookings"""
    delta = timedelta(minutes=window_minutes)
    try:
        return instant - delta, instant + delta
    except OverflowError:
        raise InvalidDateError("Invalid session date provided")
