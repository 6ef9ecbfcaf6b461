"""
Need calculation: how many packs of each meat to thaw today.

All strategies share one interface, :class:`NeedPolicy`. A policy receives
the usage table, the meat type, the target days and the already-thawed
shelf stock, and returns a :class:`ResultDetail` with the recommendation
and a trace of the intermediate values.

Strategies:
    - :class:`PeakPolicy` (default): covers the single worst target day,
      with weather-adjusted sales and interpolated lookup.
    - :class:`SequentialCarryForwardPolicy`: fixed three-day lookahead in
      kilograms, nearest-row lookup.
    - :class:`IntradayPolicy`: remaining use today plus the next two days,
      nearest-row lookup.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from math import ceil
from typing import Dict, Iterable, Optional, Sequence

from kaitou.config import DEFAULTS, ThawConfig
from kaitou.domain.lookup import INTERPOLATE, NEAREST, lookup, nearest_row
from kaitou.domain.models import (
    CarryForwardTrace,
    IntradayTrace,
    InventoryState,
    MeatType,
    PeakTrace,
    ResultDetail,
    ShelfStock,
    TargetDay,
    TargetNeed,
    UsageRow,
)
from kaitou.domain.policies import (
    adjust_sales,
    r1,
    stock_to_kg,
    stock_to_packs,
    to_amount,
    to_finite,
    usage_to_packs,
    weather_factor,
)


class NeedPolicy(ABC):
    """Strategy turning target-day forecasts into a thaw recommendation."""

    name: str = ""
    lookup_mode: str = INTERPOLATE

    @abstractmethod
    def calculate(
        self,
        table: Sequence[UsageRow],
        meat: MeatType,
        targets: Sequence[TargetDay],
        stock: ShelfStock,
        config: ThawConfig = DEFAULTS,
    ) -> ResultDetail:
        raise NotImplementedError


def _gram_for(meat: MeatType, pack: float, config: ThawConfig) -> float:
    return pack * config.pack_gram[meat.value]


# -------------------------
# Peak
# -------------------------

def peak_add_pack(peak_need_pack: float, thawed_now_pack: float) -> int:
    """``max(0, ceil(peak - thawed))``."""
    return max(0, ceil(to_amount(peak_need_pack) - to_amount(thawed_now_pack)))


class PeakPolicy(NeedPolicy):
    """Provision for the highest-demand target day.

    Thawed stock carries over from day to day, so the stock has to cover the
    worst single day, not the sum of all covered days. When two targets
    share the peak, the later one is reported as binding.
    """

    name = "peak"
    lookup_mode = INTERPOLATE

    def target_need(self, table: Sequence[UsageRow], meat: MeatType, target: TargetDay, config: ThawConfig) -> TargetNeed:
        factor = weather_factor(target.weather, config.weather_factors)
        adjusted = adjust_sales(target.sales, target.weather, config.weather_factors)
        raw_need = lookup(table, adjusted, meat, self.lookup_mode)
        return TargetNeed(
            offset=target.offset,
            date=target.date,
            raw_sales=to_amount(target.sales),
            weather=target.weather,
            weather_factor=factor,
            adjusted_sales=adjusted,
            raw_need=raw_need,
            need_pack=usage_to_packs(meat, raw_need, config),
            is_holiday=target.is_holiday,
            holiday_name=target.holiday_name,
        )

    def calculate(self, table, meat, targets, stock, config=DEFAULTS):
        thawed = stock_to_packs(meat, stock, config)
        trace = PeakTrace(thawed_now_pack=thawed)
        for target in targets or []:
            row = self.target_need(table, meat, target, config)
            trace.targets.append(row)
            if trace.chosen_offset is None or row.need_pack >= trace.peak_need_pack:
                trace.peak_need_pack = row.need_pack
                trace.chosen_offset = row.offset

        pack = peak_add_pack(trace.peak_need_pack, thawed) if trace.targets else 0
        trace.shortfall_pack = trace.peak_need_pack - thawed if trace.targets else 0.0
        gram = None if meat.counted_in_packs else _gram_for(meat, pack, config)
        return ResultDetail(meat=meat, policy=self.name, pack=pack, gram=gram, trace=trace)


# -------------------------
# Sequential carry-forward
# -------------------------

def carry_forward(stock: float, d1: float, d2: float, d3: float) -> Dict[str, float]:
    """Three-day FIFO lookahead.

    ``left = stock - d1`` (may be negative), ``short = max(d2 - left, 0)``,
    ``thaw = d3 + short``.
    """
    left = to_finite(stock) - to_finite(d1)
    short = max(to_finite(d2) - left, 0.0)
    thaw = to_finite(d3) + short
    return {"left": left, "short": short, "thaw": thaw}


def usage_to_kg(meat: MeatType, row: UsageRow, config: ThawConfig = DEFAULTS) -> float:
    """Usage of a table row in kilograms (karaage packs × ``kg_per_pack``)."""
    value = to_amount(row.value(meat))
    if meat.counted_in_packs:
        return value * config.kg_per_pack
    return value / 1000.0


class SequentialCarryForwardPolicy(NeedPolicy):
    """Thaw tomorrow morning what the day after tomorrow needs, plus any
    shortfall left by the first two days.

    Looks at exactly three targets (offsets 1, 2 and 3). A missing target
    counts as zero sales.
    """

    name = "carry_forward"
    lookup_mode = NEAREST
    days = 3

    def calculate(self, table, meat, targets, stock, config=DEFAULTS):
        by_offset = {t.offset: t for t in (targets or [])}
        rows = [
            nearest_row(table, by_offset[i].sales if i in by_offset else 0)
            for i in range(1, self.days + 1)
        ]
        d1, d2, d3 = (usage_to_kg(meat, row, config) for row in rows)
        stock_kg = stock_to_kg(meat, stock, config)
        steps = carry_forward(stock_kg, d1, d2, d3)
        thaw_pack = r1(steps["thaw"] / (config.kg_per_pack or 1.0))

        trace = CarryForwardTrace(
            stock_kg=r1(stock_kg),
            d1=r1(d1),
            d2=r1(d2),
            d3=r1(d3),
            used1=rows[0].sales,
            used2=rows[1].sales,
            used3=rows[2].sales,
            left=r1(steps["left"]),
            short=r1(steps["short"]),
            thaw_kg=r1(steps["thaw"]),
            thaw_pack=thaw_pack,
        )
        return ResultDetail(
            meat=meat,
            policy=self.name,
            pack=thaw_pack,
            gram=r1(steps["thaw"]) * 1000.0,
            trace=trace,
        )


# -------------------------
# Intraday (today + two days)
# -------------------------

class IntradayPolicy(NeedPolicy):
    """Cover what is still to be used today plus the next two days.

    ``today_pred_sales`` and ``today_actual_sales`` are today's forecast and
    the sales so far; the targets supply offsets 1 and 2. karaage packs
    are taken from the table as they are, without ``karaage_need_factor``.
    """

    name = "intraday"
    lookup_mode = NEAREST

    def __init__(self, today_pred_sales: float = 0.0, today_actual_sales: float = 0.0):
        self.today_pred_sales = to_amount(today_pred_sales)
        self.today_actual_sales = to_amount(today_actual_sales)

    def _packs(self, table, meat, sales, config) -> float:
        usage = lookup(table, sales, meat, self.lookup_mode)
        if meat.counted_in_packs:
            return max(0.0, to_finite(usage))
        return usage_to_packs(meat, usage, config)

    def calculate(self, table, meat, targets, stock, config=DEFAULTS):
        by_offset = {t.offset: t for t in (targets or [])}
        thawed = stock_to_packs(meat, stock, config)

        today_pred = self._packs(table, meat, self.today_pred_sales, config)
        today_so_far = self._packs(table, meat, self.today_actual_sales, config)
        remaining = max(today_pred - today_so_far, 0.0)
        leftover = thawed - remaining
        tomorrow = self._packs(table, meat, by_offset[1].sales if 1 in by_offset else 0, config)
        day_after = self._packs(table, meat, by_offset[2].sales if 2 in by_offset else 0, config)

        pack = max(ceil(tomorrow + day_after - max(leftover, 0.0)), 0)
        trace = IntradayTrace(
            today_pred_pack=today_pred,
            today_so_far_pack=today_so_far,
            remaining_today=remaining,
            leftover_end_of_day=leftover,
            tomorrow_need=tomorrow,
            day_after_need=day_after,
        )
        return ResultDetail(meat=meat, policy=self.name, pack=pack, gram=_gram_for(meat, pack, config), trace=trace)


POLICIES = {
    PeakPolicy.name: PeakPolicy,
    SequentialCarryForwardPolicy.name: SequentialCarryForwardPolicy,
    IntradayPolicy.name: IntradayPolicy,
}
DEFAULT_POLICY = PeakPolicy.name


def get_policy(name: Optional[str] = None, **kwargs) -> NeedPolicy:
    """Instantiate a policy by name (defaults to peak)."""
    key = (name or DEFAULT_POLICY).strip().lower().replace("-", "_")
    if key not in POLICIES:
        raise ValueError(f"unknown need policy: {name!r} (expected one of {sorted(POLICIES)})")
    return POLICIES[key](**kwargs)


def calculate_all(
    policy: NeedPolicy,
    table: Sequence[UsageRow],
    targets: Sequence[TargetDay],
    inventory: Optional[InventoryState] = None,
    config: ThawConfig = DEFAULTS,
    meats: Iterable[MeatType] = tuple(MeatType),
) -> Dict[MeatType, ResultDetail]:
    """Run ``policy`` for every meat type."""
    inventory = inventory or InventoryState()
    return {
        meat: policy.calculate(table, meat, targets, inventory.for_meat(meat), config)
        for meat in meats
    }
