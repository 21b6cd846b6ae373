"""Shift duration derived from start/end timestamps.

Only used when a payload carries no explicit hours field. Timestamps may be
full ISO datetimes or bare times of day; the date portion is always dropped,
so a shift whose end time-of-day is before its start is treated as running
past midnight.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, time
from typing import Any, Optional

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

# HH:MM or HH:MM:SS, optionally preceded by a date and 'T' or a space
TIME_OF_DAY_RE = re.compile(
    r"^(?:\d{4}-\d{2}-\d{2}[T ])?(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::\d{2}(?:\.\d+)?)?"
)


def parse_time_of_day(value: Any) -> Optional[int]:
    """Return minutes after midnight for a timestamp, or None if unparsable.

    Examples:
        >>> parse_time_of_day("2024-05-01T23:15:00+02:00")
        1395
        >>> parse_time_of_day("07:30")
        450
        >>> parse_time_of_day("yesterday") is None
        True

    """
    if isinstance(value, (datetime, time)):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        return None
    match = TIME_OF_DAY_RE.match(value.strip())
    if not match:
        return None
    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    if hour > 23 or minute > 59:
        return None
    return hour * 60 + minute


def shift_hours(start: Any, end: Any, break_minutes: float = 0) -> Optional[float]:
    """Compute worked hours between two timestamps.

    Args:
        start: Start timestamp (ISO string, "HH:MM[:SS]", datetime or time).
        end: End timestamp, same formats.
        break_minutes: Minutes subtracted after the overnight adjustment.

    Returns:
        Hours rounded to two decimals, or None when either timestamp is missing
        or unparsable, or when the result is not positive.

    Examples:
        >>> shift_hours("23:00", "01:00")
        2.0
        >>> shift_hours("2024-05-01T09:00:00", "2024-05-01T17:30:00", 30)
        8.0

    """
    if not start or not end:
        return None

    start_minutes = parse_time_of_day(start)
    end_minutes = parse_time_of_day(end)
    if start_minutes is None or end_minutes is None:
        logger.warning("Unparsable shift timestamps: start=%r end=%r", start, end)
        return None

    total_minutes = end_minutes - start_minutes
    if total_minutes < 0:
        total_minutes += MINUTES_PER_DAY
    total_minutes -= break_minutes or 0

    if total_minutes <= 0:
        return None
    return round(total_minutes / 60, 2)
