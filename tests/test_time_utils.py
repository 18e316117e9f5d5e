"""Tests for time and pay helpers."""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from carcare_backoffice.time_utils import (
    date_range_window,
    day_window,
    end_of_day,
    format_hours_minutes,
    is_same_calendar_day,
    is_suspect_end_time,
    minutes_between,
    pay_period_bounds,
    pay_period_window,
    salary_for_minutes,
    split_hours_minutes,
    window_end,
)

ZURICH = ZoneInfo("Europe/Zurich")


def test_minutes_between_truncates_seconds() -> None:
    start = datetime(2024, 3, 4, 8, 0, tzinfo=UTC)

    assert minutes_between(start, start + timedelta(minutes=90, seconds=59)) == 90
    assert minutes_between(start, start) == 0


@pytest.mark.parametrize("total", [0, 1, 59, 60, 61, 510, 1439])
def test_split_hours_minutes_reconstructs_input(total: int) -> None:
    hours, minutes = split_hours_minutes(total)

    assert hours * 60 + minutes == total
    assert 0 <= minutes < 60


def test_format_hours_minutes() -> None:
    assert format_hours_minutes(510) == "8h 30m"
    assert format_hours_minutes(5) == "0h 5m"


def test_salary_for_minutes_rounds_to_cents() -> None:
    assert salary_for_minutes(510, 20) == 170.00
    assert salary_for_minutes(10, 25) == 4.17
    assert salary_for_minutes(0, 30) == 0


def test_is_suspect_end_time_matches_only_sentinel() -> None:
    day = date(2024, 3, 4)

    assert is_suspect_end_time(datetime(2024, 3, 4, 23, 59, tzinfo=ZURICH), ZURICH)
    assert not is_suspect_end_time(datetime(2024, 3, 4, 23, 58, tzinfo=ZURICH), ZURICH)
    assert not is_suspect_end_time(datetime(2024, 3, 5, 0, 0, tzinfo=ZURICH), ZURICH)
    assert is_suspect_end_time(end_of_day(day, ZURICH), ZURICH)


def test_is_suspect_end_time_uses_local_clock() -> None:
    # 22:59 UTC is 23:59 in Zurich during winter time.
    utc_end = datetime(2024, 1, 10, 22, 59, tzinfo=UTC)

    assert is_suspect_end_time(utc_end, ZURICH)
    assert not is_suspect_end_time(utc_end)


def test_is_same_calendar_day_compares_dates_not_instants() -> None:
    late = datetime(2024, 3, 4, 23, 30, tzinfo=ZURICH)
    early_next = datetime(2024, 3, 5, 0, 10, tzinfo=ZURICH)

    assert is_same_calendar_day(late, late - timedelta(hours=20), ZURICH)
    assert not is_same_calendar_day(late, early_next, ZURICH)


def test_window_end_clamps_month_length() -> None:
    assert window_end(date(2024, 1, 31), months=1) == date(2024, 2, 29)
    assert window_end(date(2024, 12, 20), months=1) == date(2025, 1, 20)
    assert window_end(date(2024, 1, 20), months=-1) == date(2023, 12, 20)
    assert window_end(date(2024, 2, 28), days=2) == date(2024, 3, 1)


def test_day_window_covers_local_day() -> None:
    start, end = day_window(date(2024, 7, 1), ZURICH)

    assert start == datetime(2024, 6, 30, 22, 0, tzinfo=UTC)
    assert end == datetime(2024, 7, 1, 22, 0, tzinfo=UTC)


def test_date_range_window_is_inclusive_of_last_day() -> None:
    start, end = date_range_window(date(2024, 3, 1), date(2024, 3, 3), ZURICH)

    assert start == day_window(date(2024, 3, 1), ZURICH)[0]
    assert end == day_window(date(2024, 3, 3), ZURICH)[1]


def test_date_range_window_single_bound_selects_one_day() -> None:
    only_from = date_range_window(date(2024, 3, 1), None, ZURICH)
    only_to = date_range_window(None, date(2024, 3, 1), ZURICH)

    assert only_from == only_to == day_window(date(2024, 3, 1), ZURICH)


def test_date_range_window_defaults_to_today() -> None:
    today = datetime.now(tz=ZURICH).date()

    assert date_range_window(None, None, ZURICH) == day_window(today, ZURICH)


def test_pay_period_bounds() -> None:
    assert pay_period_bounds(date(2024, 3, 25)) == (date(2024, 3, 20), date(2024, 4, 20))
    assert pay_period_bounds(date(2024, 3, 19)) == (date(2024, 2, 20), date(2024, 3, 20))
    assert pay_period_bounds(date(2024, 1, 5)) == (date(2023, 12, 20), date(2024, 1, 20))


def test_pay_period_bounds_with_late_start_day_in_short_month() -> None:
    assert pay_period_bounds(date(2024, 2, 10), start_day=28) == (
        date(2024, 1, 28),
        date(2024, 2, 28),
    )


@pytest.mark.parametrize("start_day", [0, 29, 31])
def test_pay_period_bounds_rejects_start_days_missing_from_some_months(
    start_day,
) -> None:
    with pytest.raises(ValueError):
        pay_period_bounds(date(2024, 2, 10), start_day=start_day)


def test_pay_period_window_is_half_open() -> None:
    start, end = pay_period_window(date(2024, 3, 25), ZURICH)

    assert start == day_window(date(2024, 3, 20), ZURICH)[0]
    assert end == day_window(date(2024, 4, 20), ZURICH)[0]
