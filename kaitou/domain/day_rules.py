"""
Day target rules: which future days today's thawing has to cover.

Weekdays follow the 0=Sunday .. 6=Saturday convention.

Rules:
    - Sunday to Wednesday and Saturday cover the next day only (``{1}``).
    - Thursday covers the next two days to bridge into the weekend (``{1, 2}``).
    - Friday covers the day after tomorrow (``{2}``); with the
      "include Saturday" switch tomorrow is added as well.
    - Whenever ``base_date + 2`` is a weekend day or a holiday, offset ``2``
      is always included so stock does not run short over a closure.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Union

from kaitou.domain.models import PlannedDay, TargetDay

SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)

HolidayLookup = Callable[[date], Optional[str]]

_BASE_OFFSETS: Dict[int, Set[int]] = {
    SUNDAY: {1},
    MONDAY: {1},
    TUESDAY: {1},
    WEDNESDAY: {1},
    THURSDAY: {1, 2},
    FRIDAY: {2},
    SATURDAY: {1},
}


def sunday_weekday(d: date) -> int:
    """Weekday of ``d`` with Sunday as 0."""
    return (d.weekday() + 1) % 7


def is_weekend(d: date) -> bool:
    return sunday_weekday(d) in (SATURDAY, SUNDAY)


def _holiday_name(d: date, holiday_lookup: Optional[HolidayLookup]) -> Optional[str]:
    if holiday_lookup is None:
        return None
    return holiday_lookup(d) or None


def is_closed_day(d: date, holiday_lookup: Optional[HolidayLookup] = None) -> bool:
    """Weekend or a date known to the holiday calendar."""
    return is_weekend(d) or _holiday_name(d, holiday_lookup) is not None


def target_offsets(
    base_date: date,
    weekday: Optional[int] = None,
    include_saturday: bool = False,
    holiday_lookup: Optional[HolidayLookup] = None,
) -> List[int]:
    """Sorted, unique day offsets to cover from ``base_date``."""
    wd = sunday_weekday(base_date) if weekday is None else int(weekday) % 7
    offsets = set(_BASE_OFFSETS[wd])
    if wd == FRIDAY and include_saturday:
        offsets.add(1)
    if is_closed_day(base_date + timedelta(days=2), holiday_lookup):
        offsets.add(2)
    return sorted(offsets)


def _planned_by_offset(planned_days: Union[Iterable[PlannedDay], Mapping[int, PlannedDay], None]) -> Dict[int, PlannedDay]:
    if not planned_days:
        return {}
    if isinstance(planned_days, Mapping):
        return {int(k): v for k, v in planned_days.items()}
    out: Dict[int, PlannedDay] = {}
    for p in planned_days:
        out.setdefault(int(p.offset), p)
    return out


def build_targets(
    base_date: date,
    planned_days: Union[Iterable[PlannedDay], Mapping[int, PlannedDay], None],
    weekday: Optional[int] = None,
    include_saturday: bool = False,
    holiday_lookup: Optional[HolidayLookup] = None,
) -> List[TargetDay]:
    """Build the ``TargetDay`` list for ``base_date``.

    Offsets with no planned forecast are skipped.

    Args:
        base_date: Day on which the thawing happens.
        planned_days: Forecast (sales and weather) per offset. When the same
            offset appears twice the first entry is used.
        weekday: Weekday of ``base_date`` (0=Sunday). Derived from the date
            when omitted.
        include_saturday: On Fridays, also cover tomorrow.
        holiday_lookup: ``date -> holiday name | None``.

    Returns:
        Target days ordered by ascending offset.
    """
    planned = _planned_by_offset(planned_days)
    targets: List[TargetDay] = []
    for offset in target_offsets(base_date, weekday, include_saturday, holiday_lookup):
        plan = planned.get(offset)
        if plan is None:
            continue
        day = base_date + timedelta(days=offset)
        name = _holiday_name(day, holiday_lookup)
        targets.append(
            TargetDay(
                offset=offset,
                date=day,
                sales=plan.sales,
                weather=plan.weather,
                is_holiday=is_weekend(day) or name is not None,
                holiday_name=name,
            )
        )
    return targets


def fixed_targets(base_date: date, sales: Iterable[float], weathers: Optional[Iterable[Optional[str]]] = None) -> List[TargetDay]:
    """Consecutive targets with offsets ``1..n``, ignoring the calendar rules.

    Used by the policies that always look a fixed number of days ahead.
    """
    sales = list(sales)
    weathers = list(weathers) if weathers is not None else [None] * len(sales)
    weathers += [None] * (len(sales) - len(weathers))
    return [
        TargetDay(offset=i, date=base_date + timedelta(days=i), sales=s, weather=w)
        for i, (s, w) in enumerate(zip(sales, weathers), start=1)
    ]
