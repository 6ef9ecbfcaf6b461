# kaitou/usecases/estimate_thaw.py
"""
Use case: estimate how much of each meat to thaw today.

One entry point per calculation variant:
- ``run_peak``          -> calendar-aware, weather-adjusted, peak of targets
- ``run_carry_forward`` -> fixed three-day lookahead in kilograms
- ``run_intraday``      -> remaining use today plus the next two days

Flow (all variants):
1) Loads the usage table (and, for the peak variant, the holiday calendar)
   when the caller did not pass them.
2) Builds the target days.
3) Applies the need policy to each meat type.
4) Logs a summary of the run, plus a system warning when the usage table
   is empty or no target day was found.

Nothing here raises for bad numbers: missing data degrades to zero.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from kaitou.adapters.loaders import load_holidays, load_usage_table, make_holiday_lookup
from kaitou.config import DEFAULTS, ThawConfig
from kaitou.domain.day_rules import build_targets, fixed_targets
from kaitou.domain.models import InventoryState, MeatType, PlannedDay, ResultDetail, TargetDay, UsageRow
from kaitou.domain.need import (
    IntradayPolicy,
    PeakPolicy,
    SequentialCarryForwardPolicy,
    calculate_all,
)
from kaitou.domain.policies import to_amount
from kaitou.infra.logger import log_calculation, log_system_event

Results = Dict[MeatType, ResultDetail]


def _pick_table(table: Optional[Sequence[UsageRow]]) -> List[UsageRow]:
    """Caller's table, or the default file when none was given."""
    if table is None:
        return load_usage_table()
    return list(table)


def _warn_if_empty(policy: str, rows: List[UsageRow]) -> None:
    if not rows:
        log_system_event("empty_usage_table_warning", {"policy": policy}, level="warning")


def _summary(results: Results) -> Dict[str, float]:
    return {meat.value: res.pack for meat, res in results.items()}


def run_peak(
    base_date: date,
    planned_days: Union[Iterable[PlannedDay], Mapping[int, PlannedDay]],
    inventory: Optional[InventoryState] = None,
    table: Optional[Sequence[UsageRow]] = None,
    holidays: Optional[Mapping[str, str]] = None,
    include_saturday: Optional[bool] = None,
    weekday: Optional[int] = None,
    config: ThawConfig = DEFAULTS,
) -> Tuple[List[TargetDay], Results]:
    """Calendar-aware estimate covering the worst target day.

    Args:
        base_date: Day on which the thawing happens.
        planned_days: Forecast sales/weather per day offset.
        inventory: Already-thawed stock (packs and/or dan).
        table: Usage table; the default file is read when ``None``.
        holidays: ``{"YYYY-MM-DD": name}``; the default file is read when ``None``.
        include_saturday: On Fridays, also cover tomorrow
            (``config.include_saturday`` when ``None``).
        weekday: Weekday of ``base_date`` (0=Sunday), derived when ``None``.
        config: Unit constants.

    Returns:
        ``(targets, results)`` with one ``ResultDetail`` per meat type.
    """
    rows = _pick_table(table)
    calendar = load_holidays() if holidays is None else holidays
    if include_saturday is None:
        include_saturday = config.include_saturday

    targets = build_targets(
        base_date,
        planned_days,
        weekday=weekday,
        include_saturday=include_saturday,
        holiday_lookup=make_holiday_lookup(calendar),
    )
    _warn_if_empty(PeakPolicy.name, rows)
    if not targets:
        log_system_event("no_target_days_warning", {"base_date": base_date.isoformat()}, level="warning")
    results = calculate_all(PeakPolicy(), rows, targets, inventory, config)

    log_calculation(
        PeakPolicy.name,
        {
            "base_date": base_date.isoformat(),
            "offsets": [t.offset for t in targets],
            "table_rows": len(rows),
        },
        result=_summary(results),
    )
    return targets, results


def run_carry_forward(
    inventory: Optional[InventoryState],
    sales_tomorrow: float,
    sales_day_after: float,
    sales_two_days_after: float,
    table: Optional[Sequence[UsageRow]] = None,
    base_date: Optional[date] = None,
    config: ThawConfig = DEFAULTS,
) -> Results:
    """Three-day lookahead, ignoring weekdays, holidays and weather."""
    rows = _pick_table(table)
    sales = [to_amount(sales_tomorrow), to_amount(sales_day_after), to_amount(sales_two_days_after)]
    targets = fixed_targets(base_date or date.today(), sales)
    _warn_if_empty(SequentialCarryForwardPolicy.name, rows)
    results = calculate_all(SequentialCarryForwardPolicy(), rows, targets, inventory, config)

    log_calculation(
        SequentialCarryForwardPolicy.name,
        {"sales": sales, "table_rows": len(rows)},
        result=_summary(results),
    )
    return results


def run_intraday(
    inventory: Optional[InventoryState],
    today_pred_sales: float,
    today_actual_sales: float,
    sales_tomorrow: float,
    sales_day_after: float,
    table: Optional[Sequence[UsageRow]] = None,
    base_date: Optional[date] = None,
    config: ThawConfig = DEFAULTS,
) -> Results:
    """What is still used today plus the next two days, minus thawed stock."""
    rows = _pick_table(table)
    sales = [to_amount(sales_tomorrow), to_amount(sales_day_after)]
    targets = fixed_targets(base_date or date.today(), sales)
    policy = IntradayPolicy(today_pred_sales=today_pred_sales, today_actual_sales=today_actual_sales)
    _warn_if_empty(policy.name, rows)
    results = calculate_all(policy, rows, targets, inventory, config)

    log_calculation(
        IntradayPolicy.name,
        {
            "today_pred_sales": policy.today_pred_sales,
            "today_actual_sales": policy.today_actual_sales,
            "sales": sales,
            "table_rows": len(rows),
        },
        result=_summary(results),
    )
    return results
