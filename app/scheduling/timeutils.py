"""
Time-of-day arithmetic.

All interval logic works on integer minutes since midnight. "HH:MM" strings
only appear at the API boundary and `datetime.time` only in the database.
"""
import re
from datetime import time
from typing import Union

from app.core.exceptions import ValidationError

HHMM_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"
MINUTES_PER_DAY = 24 * 60

_hhmm_re = re.compile(HHMM_PATTERN)

TimeLike = Union[str, int, time]


def parse_hhmm(value: str) -> int:
    if not isinstance(value, str) or not _hhmm_re.match(value):
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM (24h)")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_hhmm(minutes: int) -> str:
    check_minutes(minutes)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def check_minutes(minutes: int) -> int:
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ValidationError(f"Invalid minute-of-day {minutes!r}")
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValidationError(f"Minute-of-day {minutes} out of range 0..{MINUTES_PER_DAY - 1}")
    return minutes


def to_minutes(value: TimeLike) -> int:
    """Accept "HH:MM", a minute-of-day integer or a `datetime.time`."""
    if isinstance(value, str):
        return parse_hhmm(value)
    if isinstance(value, time):
        return minutes_from_time(value)
    return check_minutes(value)


def minutes_from_time(value: time) -> int:
    return value.hour * 60 + value.minute


def time_from_minutes(minutes: int) -> time:
    check_minutes(minutes)
    return time(minutes // 60, minutes % 60)


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap: [a_start, a_end) and [b_start, b_end) share a minute."""
    return a_start < b_end and b_start < a_end


def contains(outer_start: int, outer_end: int, start: int, end: int) -> bool:
    return outer_start <= start and end <= outer_end
