from datetime import date

import pytest

from kaitou.domain.day_rules import (
    build_targets,
    fixed_targets,
    is_closed_day,
    sunday_weekday,
    target_offsets,
)
from kaitou.domain.models import PlannedDay


def _holidays(*days):
    names = {d: f"holiday {d}" for d in days}
    return lambda d: names.get(d.isoformat())


def test_sunday_weekday():
    assert sunday_weekday(date(2025, 1, 5)) == 0   # Sunday
    assert sunday_weekday(date(2025, 1, 6)) == 1   # Monday
    assert sunday_weekday(date(2025, 1, 11)) == 6  # Saturday


@pytest.mark.parametrize(
    "base,expected",
    [
        (date(2025, 1, 5), [1]),      # Sunday, +2 = Tuesday
        (date(2025, 1, 6), [1]),      # Monday, +2 = Wednesday
        (date(2025, 1, 7), [1]),      # Tuesday, +2 = Thursday
        (date(2025, 1, 8), [1]),      # Wednesday, +2 = Friday
        (date(2025, 1, 9), [1, 2]),   # Thursday
        (date(2025, 1, 10), [2]),     # Friday
        (date(2025, 1, 11), [1]),     # Saturday, +2 = Monday (no calendar)
    ],
)
def test_base_offsets_by_weekday(base, expected):
    assert target_offsets(base) == expected


def test_thursday_with_holiday_two_days_ahead_has_no_duplicate():
    base = date(2025, 1, 9)
    assert target_offsets(base, holiday_lookup=_holidays("2025-01-11")) == [1, 2]


def test_monday_with_holiday_two_days_ahead_adds_offset_two():
    base = date(2025, 1, 6)
    assert target_offsets(base, holiday_lookup=_holidays("2025-01-08")) == [1, 2]


def test_saturday_before_holiday_monday():
    # 2025-01-13 is Coming of Age Day
    base = date(2025, 1, 11)
    assert target_offsets(base, holiday_lookup=_holidays("2025-01-13")) == [1, 2]


def test_friday_include_saturday_switch():
    base = date(2025, 1, 10)
    assert target_offsets(base, include_saturday=False) == [2]
    assert target_offsets(base, include_saturday=True) == [1, 2]


def test_include_saturday_only_applies_on_fridays():
    assert target_offsets(date(2025, 1, 6), include_saturday=True) == [1]


def test_explicit_weekday_overrides_date():
    # a Monday treated as a Thursday
    assert target_offsets(date(2025, 1, 6), weekday=4) == [1, 2]


def test_is_closed_day():
    assert is_closed_day(date(2025, 1, 11))
    assert is_closed_day(date(2025, 1, 12))
    assert not is_closed_day(date(2025, 1, 13))
    assert is_closed_day(date(2025, 1, 13), _holidays("2025-01-13"))


def test_build_targets_fills_dates_and_holiday_flags():
    base = date(2025, 1, 11)
    planned = [
        PlannedDay(offset=1, sales=450_000, weather="sun"),
        PlannedDay(offset=2, sales=520_000, weather="rain"),
        PlannedDay(offset=3, sales=300_000),
    ]
    targets = build_targets(base, planned, holiday_lookup=_holidays("2025-01-13"))

    assert [t.offset for t in targets] == [1, 2]
    sunday, monday = targets
    assert sunday.date == date(2025, 1, 12)
    assert sunday.is_holiday and sunday.holiday_name is None
    assert monday.date == date(2025, 1, 13)
    assert monday.is_holiday and monday.holiday_name == "holiday 2025-01-13"
    assert monday.sales == 520_000
    assert monday.weather == "rain"


def test_build_targets_drops_offsets_without_forecast():
    base = date(2025, 1, 9)  # Thursday -> {1, 2}
    targets = build_targets(base, [PlannedDay(offset=1, sales=400_000)])
    assert [t.offset for t in targets] == [1]
    assert targets[0].is_holiday is False


def test_build_targets_accepts_mapping_and_empty_input():
    base = date(2025, 1, 9)
    planned = {2: PlannedDay(offset=2, sales=1), 1: PlannedDay(offset=1, sales=2)}
    assert [t.offset for t in build_targets(base, planned)] == [1, 2]
    assert build_targets(base, []) == []
    assert build_targets(base, None) == []


def test_fixed_targets_are_consecutive():
    targets = fixed_targets(date(2025, 1, 6), [1, 2, 3])
    assert [t.offset for t in targets] == [1, 2, 3]
    assert [t.date.day for t in targets] == [7, 8, 9]
    assert [t.sales for t in targets] == [1, 2, 3]
    assert all(t.weather is None for t in targets)
