from collections.abc import Iterator
from datetime import date, timedelta
from enum import Enum
from itertools import count

from dateutil.relativedelta import relativedelta


class Frequency(str, Enum):
    SINGLE = "single"
    CONSECUTIVE = "consecutive"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


_FIXED_STEP_DAYS = {
    Frequency.CONSECUTIVE: 1,
    Frequency.WEEKLY: 7,
    Frequency.BIWEEKLY: 14,
}


def _add_months(anchor: date, months: int) -> date:
    # relativedelta clamps to the last day of shorter months (Jan 31 + 1 month -> Feb 28/29)
    return anchor + relativedelta(months=months)


def next_date(current: date, frequency: Frequency, anchor_day: int | None = None) -> date | None:
    """The cadence date following `current`, or None for a single session.

    For monthly cadence pass the anchor's day-of-month as `anchor_day`, otherwise a
    date clamped to a short month (Feb 28) would pull every later month back to 28.
    """
    frequency = Frequency(frequency)
    if frequency is Frequency.SINGLE:
        return None
    if frequency is Frequency.MONTHLY:
        return current.replace(day=1) + relativedelta(months=1, day=anchor_day or current.day)
    return current + timedelta(days=_FIXED_STEP_DAYS[frequency])


def candidate_dates(start_anchor: date, frequency: Frequency) -> Iterator[date]:
    """Lazy sequence of cadence dates starting at the anchor.

    Every call returns a fresh generator. Dates are never skipped here for being
    closed or booked; that policy belongs to the slot resolver.
    """
    frequency = Frequency(frequency)
    if frequency is Frequency.SINGLE:
        yield start_anchor
        return
    if frequency is Frequency.MONTHLY:
        for k in count():
            yield _add_months(start_anchor, k)
    step = timedelta(days=_FIXED_STEP_DAYS[frequency])
    current = start_anchor
    while True:
        yield current
        current += step
