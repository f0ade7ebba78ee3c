from datetime import date
from itertools import islice

import pytest

from studio_booking.services.cadence import Frequency, candidate_dates, next_date


def take(it, n):
    return list(islice(it, n))


def test_single_has_exactly_the_anchor():
    assert list(candidate_dates(date(2026, 10, 23), Frequency.SINGLE)) == [date(2026, 10, 23)]


def test_consecutive_walks_calendar_days_including_weekends():
    dates = take(candidate_dates(date(2026, 10, 23), Frequency.CONSECUTIVE), 4)
    assert dates == [date(2026, 10, 23), date(2026, 10, 24), date(2026, 10, 25), date(2026, 10, 26)]


@pytest.mark.parametrize(
    ("frequency", "expected"),
    [
        ("weekly", [date(2026, 10, 19), date(2026, 10, 26), date(2026, 11, 2)]),
        ("biweekly", [date(2026, 10, 19), date(2026, 11, 2), date(2026, 11, 16)]),
    ],
)
def test_fixed_step_cadences(frequency, expected):
    assert take(candidate_dates(date(2026, 10, 19), frequency), 3) == expected


def test_monthly_clamps_to_month_end_and_recovers():
    dates = take(candidate_dates(date(2028, 1, 31), Frequency.MONTHLY), 4)
    assert dates == [date(2028, 1, 31), date(2028, 2, 29), date(2028, 3, 31), date(2028, 4, 30)]


def test_monthly_clamp_in_non_leap_year():
    dates = take(candidate_dates(date(2027, 1, 31), Frequency.MONTHLY), 3)
    assert dates == [date(2027, 1, 31), date(2027, 2, 28), date(2027, 3, 31)]


def test_monthly_crosses_year_boundary():
    dates = take(candidate_dates(date(2026, 11, 15), Frequency.MONTHLY), 3)
    assert dates == [date(2026, 11, 15), date(2026, 12, 15), date(2027, 1, 15)]


def test_each_call_is_an_independent_sequence():
    first = candidate_dates(date(2026, 10, 19), Frequency.WEEKLY)
    next(first)
    next(first)
    second = candidate_dates(date(2026, 10, 19), Frequency.WEEKLY)
    assert next(second) == date(2026, 10, 19)
    assert next(first) == date(2026, 11, 2)


def test_next_date():
    assert next_date(date(2026, 10, 19), Frequency.CONSECUTIVE) == date(2026, 10, 20)
    assert next_date(date(2026, 10, 19), Frequency.WEEKLY) == date(2026, 10, 26)
    assert next_date(date(2026, 10, 19), Frequency.BIWEEKLY) == date(2026, 11, 2)
    assert next_date(date(2026, 10, 19), Frequency.SINGLE) is None


def test_next_date_monthly_keeps_anchor_day_after_clamping():
    assert next_date(date(2027, 1, 31), Frequency.MONTHLY) == date(2027, 2, 28)
    assert next_date(date(2027, 2, 28), Frequency.MONTHLY, anchor_day=31) == date(2027, 3, 31)
    assert next_date(date(2027, 2, 28), Frequency.MONTHLY) == date(2027, 3, 28)


def test_unknown_frequency_is_rejected():
    with pytest.raises(ValueError):
        next(candidate_dates(date(2026, 10, 19), "fortnightly"))
