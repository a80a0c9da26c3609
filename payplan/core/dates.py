"""
Date Cursor

Period-advance and clamping primitives shared by every other engine module.

All arithmetic returns new date values; nothing here mutates its input.
Month-based steps clamp the day to the last valid day of the target month
(Jan 31 + 1 month -> Feb 28/29). Passing anchor_day re-targets the intended
day on every step, so a Jan 31 bill goes Feb 29 -> Mar 31 rather than
drifting to the 29th.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Union

import structlog

from payplan.models.schedule import Frequency

logger = structlog.get_logger(__name__)

MONTH_FORMAT = "%Y-%m"

DAY_STEPS = {
    Frequency.WEEKLY: 7,
    Frequency.BIWEEKLY: 14,
}

MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.BIANNUAL: 6,
    Frequency.ANNUAL: 12,
}

DEFAULT_ANCHORS = (1, 15)

FrequencyLike = Union[Frequency, str]


def coerce_frequency(value: object, default: Frequency = Frequency.MONTHLY) -> tuple[Frequency, bool]:
    """
    Resolve a loosely-typed frequency.

    Returns (frequency, was_supported). Unknown values fall back to the
    default (monthly).
    """
    if isinstance(value, Frequency):
        return value, True
    if isinstance(value, str):
        try:
            return Frequency(value.strip().lower()), True
        except ValueError:
            pass
    return default, False


def _resolve(frequency: FrequencyLike) -> Frequency:
    resolved, supported = coerce_frequency(frequency)
    if not supported:
        logger.warning("unsupported_frequency", value=str(frequency), fallback=resolved.value)
    return resolved


# =============================================================================
# CALENDAR HELPERS
# =============================================================================

def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """The given day in year/month, clamped to the month's last day."""
    return date(year, month, max(1, min(day, days_in_month(year, month))))


def shift_month(year: int, month: int, n: int) -> tuple[int, int]:
    """(year, month) moved by n months."""
    index = year * 12 + (month - 1) + n
    return index // 12, index % 12 + 1


def add_months(d: date, n: int, anchor_day: Optional[int] = None) -> date:
    """Add n months to d, clamping to month end."""
    year, month = shift_month(d.year, d.month, n)
    return clamp_day(year, month, anchor_day or d.day)


def start_of_month(d: date) -> date:
    return d.replace(day=1)


def end_of_month(d: date) -> date:
    return d.replace(day=days_in_month(d.year, d.month))


def same_month(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_key(d: date) -> str:
    """YYYY-MM key for the month containing d."""
    return d.strftime(MONTH_FORMAT)


def parse_month_key(key: str) -> Optional[date]:
    """First day of a YYYY-MM month, or None when the key is malformed."""
    if not key:
        return None
    try:
        return datetime.strptime(key.strip(), MONTH_FORMAT).date()
    except ValueError:
        return None


def parse_date(value: object) -> Optional[date]:
    """Parse a date, ISO datetime string or YYYY-MM-DD string; None on failure."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    for fmt in ("%Y/%m/%d", "%m/%d/%Y", "%m%d%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


# =============================================================================
# PERIOD ARITHMETIC
# =============================================================================

def advance_period(
    d: date,
    frequency: FrequencyLike,
    n: int = 1,
    *,
    anchor_day: Optional[int] = None,
    anchors: Optional[tuple[int, int]] = None,
) -> date:
    """
    Move d forward by n periods of the given frequency.

    weekly/biweekly add 7/14 x n days; monthly/quarterly/biannual/annual add
    1/3/6/12 x n months with month-end clamping. Semimonthly moves n anchor
    dates forward (anchors default to the 1st and 15th).
    """
    freq = _resolve(frequency)

    if freq in DAY_STEPS:
        return d + timedelta(days=DAY_STEPS[freq] * n)

    if freq == Frequency.SEMIMONTHLY:
        current = d
        for _ in range(max(0, n)):
            current = next_on_or_after(current + timedelta(days=1), freq, anchors)
        return current

    return add_months(d, MONTH_STEPS[freq] * n, anchor_day)


def next_on_or_after(
    reference: date,
    frequency: FrequencyLike,
    anchors: Optional[tuple[int, int]] = None,
    *,
    anchor_date: Optional[date] = None,
    anchor_day: Optional[int] = None,
) -> date:
    """
    Earliest schedule date on or after reference.

    Semimonthly: the earliest of {anchor1 this month, anchor2 this month,
    anchor1 next month} that is >= reference.

    Other frequencies: anchor_date stepped forward by whole periods. With no
    anchor_date, monthly-family schedules use anchor_day in the reference
    month; with neither, reference itself is returned.
    """
    freq = _resolve(frequency)

    if freq == Frequency.SEMIMONTHLY:
        first, second = sorted(anchors or DEFAULT_ANCHORS)
        next_year, next_month = shift_month(reference.year, reference.month, 1)
        candidates = (
            clamp_day(reference.year, reference.month, first),
            clamp_day(reference.year, reference.month, second),
            clamp_day(next_year, next_month, first),
        )
        return next(c for c in candidates if c >= reference)

    if anchor_date is None:
        if anchor_day is None or freq in DAY_STEPS:
            return reference
        anchor_date = clamp_day(reference.year, reference.month, anchor_day)
        if anchor_date >= reference:
            return anchor_date

    if anchor_date >= reference:
        return anchor_date

    if freq in DAY_STEPS:
        step = DAY_STEPS[freq]
        periods = -(-(reference - anchor_date).days // step)
        return anchor_date + timedelta(days=step * periods)

    step = MONTH_STEPS[freq]
    day = anchor_day or anchor_date.day
    periods = months_between(anchor_date, reference) // step
    candidate = add_months(anchor_date, step * periods, day)
    while candidate < reference:
        periods += 1
        candidate = add_months(anchor_date, step * periods, day)
    return candidate
