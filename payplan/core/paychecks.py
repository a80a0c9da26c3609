"""
Pay Schedule Generator

Turns a PaySchedule into concrete, ordered PaycheckEvents relative to an
injected reference date. Never emits a date before the reference.
"""

from datetime import date
from typing import Iterator, Optional

import structlog

from payplan.core.dates import DEFAULT_ANCHORS, advance_period, next_on_or_after
from payplan.core.money import to_cents
from payplan.models.schedule import Frequency, PaycheckEvent, PaySchedule

logger = structlog.get_logger(__name__)

# Upper bound on dates walked by paychecks_between (about ten years of weekly pay).
MAX_RANGE_PAYCHECKS = 520


def first_pay_date(
    schedule: PaySchedule,
    reference: date,
    default_anchors: tuple[int, int] = DEFAULT_ANCHORS,
) -> Optional[date]:
    """
    First anchor-aligned pay date on or after reference.

    Returns None when the schedule has no usable anchor.
    """
    freq = schedule.frequency

    if freq == Frequency.SEMIMONTHLY:
        return next_on_or_after(reference, freq, schedule.anchors(default_anchors))

    if freq == Frequency.MONTHLY:
        if schedule.next_pay_date is None and schedule.day_of_month is None:
            return None
        anchor_day = schedule.next_pay_date.day if schedule.next_pay_date else schedule.day_of_month
        return next_on_or_after(
            reference,
            freq,
            anchor_date=schedule.next_pay_date,
            anchor_day=anchor_day,
        )

    if schedule.next_pay_date is None:
        return None
    return next_on_or_after(reference, freq, anchor_date=schedule.next_pay_date)


def _iter_pay_dates(
    schedule: PaySchedule,
    reference: date,
    default_anchors: tuple[int, int],
) -> Iterator[date]:
    start = first_pay_date(schedule, reference, default_anchors)
    if start is None:
        return

    anchors = schedule.anchors(default_anchors)
    anchor_day = start.day
    if schedule.frequency == Frequency.MONTHLY:
        anchor_day = schedule.next_pay_date.day if schedule.next_pay_date else schedule.day_of_month

    n = 0
    while True:
        if schedule.frequency == Frequency.SEMIMONTHLY:
            yield advance_period(start, schedule.frequency, n, anchors=anchors)
        else:
            # Step from the fixed start so month-end clamping never drifts.
            yield advance_period(start, schedule.frequency, n, anchor_day=anchor_day)
        n += 1


def generate_paychecks(
    schedule: Optional[PaySchedule],
    count: int,
    today: date,
    default_anchors: tuple[int, int] = DEFAULT_ANCHORS,
) -> list[PaycheckEvent]:
    """
    Generate the next `count` paychecks on or after today.

    Args:
        schedule: Pay schedule, or None when none is configured
        count: Number of paychecks wanted
        today: Injected reference date
        default_anchors: Semimonthly anchors used when the schedule has none

    Returns:
        Ordered paychecks; empty when there is no usable anchor.
    """
    if schedule is None or count <= 0:
        return []

    amount = to_cents(schedule.pay_amount)
    events = []
    for pay_date in _iter_pay_dates(schedule, today, default_anchors):
        events.append(PaycheckEvent(date=pay_date, amount=amount))
        if len(events) >= count:
            break

    if not events:
        logger.debug("no_pay_anchor", frequency=schedule.frequency.value)
    return events


def paychecks_between(
    schedule: Optional[PaySchedule],
    start: date,
    end: date,
    default_anchors: tuple[int, int] = DEFAULT_ANCHORS,
) -> list[PaycheckEvent]:
    """All paychecks with start <= date <= end."""
    if schedule is None or end < start:
        return []

    amount = to_cents(schedule.pay_amount)
    events = []
    for pay_date in _iter_pay_dates(schedule, start, default_anchors):
        if pay_date > end or len(events) >= MAX_RANGE_PAYCHECKS:
            break
        events.append(PaycheckEvent(date=pay_date, amount=amount))
    return events
