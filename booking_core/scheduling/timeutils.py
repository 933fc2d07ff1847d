"""
Time Arithmetic

Pure helpers converting between ``HH:MM`` clock strings and minute
offsets. No I/O.
"""

import re
from datetime import date, datetime
from typing import Tuple, Union

MINUTES_PER_DAY = 24 * 60

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$", re.ASCII)


class InvalidTimeFormat(ValueError):
    """Clock string is not a valid 24-hour HH:MM value."""


def to_minutes(value: str) -> int:
    """
    Convert ``HH:MM`` to minutes since midnight.

    Out-of-range values are rejected rather than clamped.

    Raises:
        InvalidTimeFormat: non-numeric input, hours outside 0-23 or
            minutes outside 0-59
    """
    if not isinstance(value, str):
        raise InvalidTimeFormat(f"Expected HH:MM string, got {value!r}")

    match = _CLOCK_RE.match(value.strip())
    if not match:
        raise InvalidTimeFormat(f"Invalid time format: {value!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(f"Time out of range: {value!r}")
    return hours * 60 + minutes


def from_minutes(total: int) -> str:
    """Format a minute offset as zero-padded ``HH:MM``, wrapping past midnight."""
    total %= MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def add_minutes(start_time: str, duration_minutes: int) -> str:
    """
    End time for an appointment starting at ``start_time``.

    A duration that runs past midnight wraps silently:
    ``add_minutes("23:30", 60) == "00:30"``.
    """
    return from_minutes(to_minutes(start_time) + duration_minutes)


def days_rolled(start_time: str, duration_minutes: int) -> int:
    """How many midnights an appointment of this duration crosses."""
    return (to_minutes(start_time) + duration_minutes) // MINUTES_PER_DAY


def interval(start_time: str, end_time: str) -> Tuple[int, int]:
    """
    Half-open minute interval ``[start, end)`` for a slot.

    An end at or before the start means the slot ran past midnight, so the
    end is pushed into the next day.
    """
    start = to_minutes(start_time)
    end = to_minutes(end_time)
    if end <= start:
        end += MINUTES_PER_DAY
    return start, end


def minutes_between(start_time: str, end_time: str) -> int:
    start, end = interval(start_time, end_time)
    return end - start


def overlaps(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    """Half-open overlap: touching intervals do not overlap."""
    return a[0] < b[1] and a[1] > b[0]


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def inclusive_day_span(start: Union[date, datetime], end: Union[date, datetime]) -> int:
    """
    Number of calendar days between two dates, counting both endpoints.

    Times of day are ignored and the order of the arguments does not matter.
    """
    return abs((_as_date(end) - _as_date(start)).days) + 1
