"""Time-of-day helpers shared by scoring, solving and conflict checks.

Times are ``HH:MM`` strings. A shift whose end is numerically before its
start runs past midnight; every helper here normalizes that case by
adding 24h to the end.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple, Union

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Parse HH:MM into minutes after midnight.

    Raises:
        ValueError: if the value is not a valid 24h time.
    """
    text = str(value or "").strip()
    if ":" not in text:
        raise ValueError(f"Invalid time format (HH:MM): {value!r}")
    hh, mm = text.split(":", 1)
    try:
        h = int(hh)
        m = int(mm)
    except ValueError:
        raise ValueError(f"Invalid time format (HH:MM): {value!r}") from None
    if h < 0 or h > 23 or m < 0 or m > 59:
        raise ValueError(f"Invalid time format (HH:MM): {value!r}")
    return h * 60 + m


def is_valid_hhmm(value: str) -> bool:
    try:
        parse_hhmm(value)
    except ValueError:
        return False
    return True


def format_minutes(minutes: int) -> str:
    """Format minutes after midnight as HH:MM (wrapping past 24h)."""
    minutes = int(minutes) % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_overnight(start: str, end: str) -> bool:
    return parse_hhmm(end) < parse_hhmm(start)


def normalized_interval(start: str, end: str) -> Tuple[int, int]:
    """Return (start, end) minutes with overnight ends pushed past 24h."""
    s = parse_hhmm(start)
    e = parse_hhmm(end)
    if e < s:
        e += MINUTES_PER_DAY
    return s, e


def duration_minutes(start: str, end: str) -> int:
    s, e = normalized_interval(start, end)
    return e - s


def duration_hours(start: str, end: str) -> float:
    """Shift duration in decimal hours (overnight aware)."""
    return duration_minutes(start, end) / 60.0


def intervals_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """True if two same-day ranges intersect as half-open [start, end) intervals."""
    a0, a1 = normalized_interval(start_a, end_a)
    b0, b1 = normalized_interval(start_b, end_b)
    return not (a1 <= b0 or a0 >= b1)


def window_covers(window_start: str, window_end: str, start: str, end: str) -> bool:
    """True if the preferred window fully contains the shift range.

    Overnight windows also cover shifts that begin after midnight, so a
    22:00-08:00 window covers 02:00-06:00.
    """
    w0, w1 = normalized_interval(window_start, window_end)
    s0, s1 = normalized_interval(start, end)
    if w0 <= s0 and s1 <= w1:
        return True
    if w1 > MINUTES_PER_DAY:
        return w0 <= s0 + MINUTES_PER_DAY and s1 + MINUTES_PER_DAY <= w1
    return False


def to_date(value: Union[str, date, datetime]) -> date:
    """Coerce a YYYY-MM-DD string (or datetime) to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def absolute_interval(day: date, start: str, end: str) -> Tuple[datetime, datetime]:
    """Anchor a time-of-day range to a calendar date.

    The end lands on the following day for overnight ranges.
    """
    s, e = normalized_interval(start, end)
    midnight = datetime.combine(day, time(0, 0))
    return midnight + timedelta(minutes=s), midnight + timedelta(minutes=e)


def rest_period_minutes(
    first: Tuple[datetime, datetime],
    second: Tuple[datetime, datetime],
) -> int:
    """Gap in minutes between two anchored intervals, in whichever order they fall.

    Negative when the intervals overlap. Symmetric in its arguments.
    """
    a0, a1 = first
    b0, b1 = second
    gap = max(b0 - a1, a0 - b1)
    return int(gap.total_seconds() // 60)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
