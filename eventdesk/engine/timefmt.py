"""
Time Utilities
Render a booking's schedule as a compact 12-hour window ("6-9pm", "11am-1pm").
Pure functions: malformed input never raises, it degrades to "TBD" or the raw text.
"""

import logging
import math
from datetime import date
from typing import Optional, Tuple, Union

logger = logging.getLogger(__name__)

TBD = "TBD"

_MINUTES_PER_DAY = 24 * 60


def _parse_hhmm(value: str) -> Tuple[int, int]:
    """Split 'HH:MM' into (hours, minutes). Raises ValueError on anything else."""
    hours_str, minutes_str = value.strip().split(":")[:2]
    hours, minutes = int(hours_str), int(minutes_str)
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"time out of range: {value!r}")
    return hours, minutes


def _to_12h(hours: int, minutes: int) -> Tuple[str, str]:
    """Return (clock, meridiem) e.g. (18, 30) -> ('6:30', 'pm')."""
    meridiem = "am" if hours < 12 else "pm"
    display_hour = hours % 12 or 12
    if minutes == 0:
        return str(display_hour), meridiem
    return f"{display_hour}:{minutes:02d}", meridiem


def format_time_window(start: Optional[str], end: Optional[str]) -> str:
    """
    Format a start/end pair of 24-hour 'HH:MM' strings as a 12-hour window.

    The meridiem is written once when both ends share it:
        format_time_window("12:00", "15:00")  -> "12-3pm"
        format_time_window("11:00", "13:00")  -> "11am-1pm"
        format_time_window("", "13:00")       -> "TBD"
    """
    if not start or not end or ":" not in str(start) or ":" not in str(end):
        return TBD

    try:
        start_clock, start_meridiem = _to_12h(*_parse_hhmm(start))
        end_clock, end_meridiem = _to_12h(*_parse_hhmm(end))
    except (ValueError, TypeError) as e:
        logger.debug(f"format_time_window: unparseable window {start!r}-{end!r}: {e}")
        return f"{start}-{end}"

    if start_meridiem == end_meridiem:
        return f"{start_clock}-{end_clock}{end_meridiem}"
    return f"{start_clock}{start_meridiem}-{end_clock}{end_meridiem}"


def _coerce_hours(duration_hours) -> float:
    """Non-numeric, NaN, infinite or negative durations count as 0 hours."""
    try:
        hours = float(duration_hours)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(hours) or math.isinf(hours) or hours < 0:
        return 0.0
    return hours


def add_hours(start: str, duration_hours) -> str:
    """
    Return the 'HH:MM' time reached `duration_hours` after `start`,
    wrapping past midnight. Fractional hours are rounded to the minute.
    Raises ValueError if `start` is not a valid 'HH:MM' string.
    """
    hours, minutes = _parse_hhmm(start)
    total = hours * 60 + minutes + int(round(_coerce_hours(duration_hours) * 60))
    total %= _MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def format_time_window_from_duration(start: Optional[str], duration_hours) -> str:
    """
    Legacy schedule form: a start time plus a duration in hours.
    Missing or non-numeric durations are treated as 0.
    """
    if not start or ":" not in str(start):
        return TBD
    try:
        end = add_hours(start, duration_hours)
    except (ValueError, TypeError):
        return str(start)
    return format_time_window(start, end)


def combine_date_time_iso(date_requested: Union[str, date, None], time_of_day: Optional[str]) -> Optional[str]:
    """
    Join a calendar date and an 'HH:MM' time into a local ISO-8601 timestamp
    ('2026-06-01T18:30:00'). Returns None when either part is missing or malformed.
    """
    if not date_requested or not time_of_day:
        return None
    try:
        day = date_requested if isinstance(date_requested, date) else date.fromisoformat(str(date_requested).strip()[:10])
        hours, minutes = _parse_hhmm(time_of_day)
    except (ValueError, TypeError):
        return None
    return f"{day.isoformat()}T{hours:02d}:{minutes:02d}:00"
