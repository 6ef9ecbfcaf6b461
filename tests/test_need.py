from datetime import date
from math import isclose

import pytest

from kaitou.config import DEFAULTS
from kaitou.domain.day_rules import fixed_targets
from kaitou.domain.models import InventoryState, MeatType, ShelfStock, TargetDay, UsageRow
from kaitou.domain.need import (
    IntradayPolicy,
    PeakPolicy,
    SequentialCarryForwardPolicy,
    calculate_all,
    carry_forward,
    get_policy,
    peak_add_pack,
)

BASE = date(2025, 1, 9)

LINEAR = [
    UsageRow(sales=0, oyako_g=0, gokujo_g=0, karaage_pack=0),
    UsageRow(sales=1_000_000, oyako_g=2000, gokujo_g=2000, karaage_pack=10),
]

STEPS = [
    UsageRow(sales=400_000, oyako_g=4000, gokujo_g=3000, karaage_pack=2),
    UsageRow(sales=500_000, oyako_g=6000, gokujo_g=4000, karaage_pack=3),
    UsageRow(sales=600_000, oyako_g=9000, gokujo_g=5000, karaage_pack=4),
]


def _target(offset, sales, weather=None):
    return TargetDay(offset=offset, date=date(2025, 1, 9 + offset), sales=sales, weather=weather)


# -------------------------
# peak
# -------------------------

def test_peak_end_to_end_interpolated_half_pack():
    res = PeakPolicy().calculate(LINEAR, MeatType.OYAKO, [_target(1, 500_000)], ShelfStock())
    assert isclose(res.trace.targets[0].raw_need, 1000.0)
    assert isclose(res.trace.targets[0].need_pack, 0.5)
    assert res.pack == 1
    assert res.gram == 2000
    assert res.policy == "peak"


def test_peak_picks_worst_day_and_applies_weather():
    targets = [_target(1, 500_000), _target(2, 600_000, "rain")]
    res = PeakPolicy().calculate(LINEAR, MeatType.KARAAGE, targets, ShelfStock(pack=2))
    second = res.trace.targets[1]
    assert second.weather_factor == 0.9
    assert second.adjusted_sales == 540_000
    assert isclose(second.need_pack, 5.4)
    assert res.trace.chosen_offset == 2
    assert isclose(res.trace.peak_need_pack, 5.4)
    assert res.pack == 4           # ceil(5.4 - 2)
    assert res.gram is None        # karaage is counted in packs


def test_peak_tie_reports_later_target():
    targets = [_target(1, 500_000), _target(2, 500_000)]
    res = PeakPolicy().calculate(LINEAR, MeatType.OYAKO, targets, ShelfStock())
    assert res.trace.chosen_offset == 2


def test_peak_never_negative():
    res = PeakPolicy().calculate(LINEAR, MeatType.OYAKO, [_target(1, 500_000)], ShelfStock(pack=10))
    assert res.pack == 0
    assert res.trace.shortfall_pack < 0


def test_peak_zero_targets():
    res = PeakPolicy().calculate(LINEAR, MeatType.GOKUJO, [], ShelfStock(pack=1))
    assert res.pack == 0
    assert res.trace.chosen_offset is None
    assert res.trace.targets == []


def test_peak_empty_table_degrades_to_zero():
    res = PeakPolicy().calculate([], MeatType.OYAKO, [_target(1, 500_000)], ShelfStock())
    assert res.pack == 0


def test_peak_uses_configured_pack_gram_and_dan():
    config = DEFAULTS.with_overrides(pack_gram={"gokujo": 2500})
    table = [UsageRow(sales=0), UsageRow(sales=1_000_000, gokujo_g=10_000)]
    # need 4 packs of 2500 g; 1 dan (3 kg) = 1.2 packs
    res = PeakPolicy().calculate(table, MeatType.GOKUJO, [_target(1, 1_000_000)], ShelfStock(dan=1), config)
    assert isclose(res.trace.peak_need_pack, 4.0)
    assert isclose(res.trace.thawed_now_pack, 1.2)
    assert res.pack == 3
    assert res.gram == 7500


def test_peak_monotonic_in_sales():
    last = -1
    for sales in range(0, 1_200_000, 50_000):
        res = PeakPolicy().calculate(LINEAR, MeatType.KARAAGE, [_target(1, 300_000), _target(2, sales)], ShelfStock(pack=1))
        assert res.pack >= last
        last = res.pack


def test_peak_monotonic_in_thawed():
    last = None
    for thawed in range(0, 12):
        res = PeakPolicy().calculate(LINEAR, MeatType.KARAAGE, [_target(1, 800_000)], ShelfStock(pack=thawed))
        if last is not None:
            assert res.pack <= last
        last = res.pack
    assert last == 0


def test_peak_add_pack():
    assert peak_add_pack(0.5, 0) == 1
    assert peak_add_pack(3.0, 1.0) == 2
    assert peak_add_pack(1.0, 4.0) == 0
    assert peak_add_pack(float("nan"), 0) == 0


# -------------------------
# carry-forward
# -------------------------

def test_carry_forward_steps():
    steps = carry_forward(10, 4, 9, 3)
    assert steps == {"left": 6, "short": 3, "thaw": 6}


def test_carry_forward_no_shortfall_and_negative_left():
    assert carry_forward(20, 4, 9, 3) == {"left": 16, "short": 0, "thaw": 3}
    assert carry_forward(2, 4, 1, 3) == {"left": -2, "short": 3, "thaw": 6}


def test_carry_forward_policy_oyako():
    targets = fixed_targets(BASE, [410_000, 590_000, 380_000])
    res = SequentialCarryForwardPolicy().calculate(STEPS, MeatType.OYAKO, targets, ShelfStock(dan=2, pack=2))
    t = res.trace
    assert t.stock_kg == 10.0
    assert (t.d1, t.d2, t.d3) == (4.0, 9.0, 4.0)
    assert (t.used1, t.used2, t.used3) == (400_000, 600_000, 400_000)
    assert t.left == 6.0
    assert t.short == 3.0
    assert t.thaw_kg == 7.0
    assert t.thaw_pack == 3.5
    assert res.pack == 3.5
    assert res.gram == 7000.0


def test_carry_forward_policy_karaage_in_packs():
    targets = fixed_targets(BASE, [410_000, 590_000, 380_000])
    res = SequentialCarryForwardPolicy().calculate(STEPS, MeatType.KARAAGE, targets, ShelfStock(pack=1))
    t = res.trace
    assert (t.d1, t.d2, t.d3) == (4.0, 8.0, 4.0)
    assert t.left == -2.0
    assert t.short == 10.0
    assert t.thaw_kg == 14.0
    assert res.pack == 7.0


def test_carry_forward_policy_empty_table():
    targets = fixed_targets(BASE, [1, 2, 3])
    res = SequentialCarryForwardPolicy().calculate([], MeatType.GOKUJO, targets, ShelfStock(dan=1))
    assert res.trace.left == 3.0
    assert res.trace.thaw_kg == 0.0
    assert res.pack == 0.0


def test_carry_forward_policy_missing_targets_count_as_zero_sales():
    res = SequentialCarryForwardPolicy().calculate(STEPS, MeatType.OYAKO, [], ShelfStock())
    # nearest row to 0 sales is the smallest row
    assert (res.trace.used1, res.trace.used2, res.trace.used3) == (400_000, 400_000, 400_000)


# -------------------------
# intraday
# -------------------------

def test_intraday_policy():
    policy = IntradayPolicy(today_pred_sales=500_000, today_actual_sales=410_000)
    targets = fixed_targets(BASE, [590_000, 500_000])

    oyako = policy.calculate(STEPS, MeatType.OYAKO, targets, ShelfStock(pack=3))
    t = oyako.trace
    assert (t.today_pred_pack, t.today_so_far_pack) == (3.0, 2.0)
    assert t.remaining_today == 1.0
    assert t.leftover_end_of_day == 2.0
    assert (t.tomorrow_need, t.day_after_need) == (4.5, 3.0)
    assert oyako.pack == 6
    assert oyako.gram == 12000

    karaage = policy.calculate(STEPS, MeatType.KARAAGE, targets, ShelfStock())
    assert karaage.trace.leftover_end_of_day == -1.0
    assert karaage.pack == 7


def test_intraday_karaage_ignores_need_factor():
    policy = IntradayPolicy(today_pred_sales=500_000, today_actual_sales=410_000)
    targets = fixed_targets(BASE, [590_000, 500_000])
    config = DEFAULTS.with_overrides(karaage_need_factor=0.5)

    karaage = policy.calculate(STEPS, MeatType.KARAAGE, targets, ShelfStock(), config)
    assert karaage.trace.tomorrow_need == 4.0
    assert karaage.pack == 7


def test_intraday_sales_already_above_forecast():
    policy = IntradayPolicy(today_pred_sales=400_000, today_actual_sales=600_000)
    res = policy.calculate(STEPS, MeatType.GOKUJO, fixed_targets(BASE, [400_000, 400_000]), ShelfStock(pack=5))
    assert res.trace.remaining_today == 0.0
    assert res.pack == 0


# -------------------------
# registry / all meats
# -------------------------

def test_get_policy():
    assert isinstance(get_policy(), PeakPolicy)
    assert isinstance(get_policy("carry-forward"), SequentialCarryForwardPolicy)
    intraday = get_policy("intraday", today_pred_sales=1, today_actual_sales=0)
    assert isinstance(intraday, IntradayPolicy)
    with pytest.raises(ValueError):
        get_policy("sum")


def test_calculate_all_covers_every_meat():
    inventory = InventoryState.from_packs(oyako=1, gokujo=0, karaage=2)
    results = calculate_all(PeakPolicy(), LINEAR, [_target(1, 500_000)], inventory)
    assert set(results) == set(MeatType)
    assert results[MeatType.OYAKO].pack == 0       # ceil(0.5 - 1) -> 0
    assert results[MeatType.GOKUJO].pack == 1
    assert results[MeatType.KARAAGE].pack == 3     # ceil(5 - 2)


def test_result_to_dict_is_jsonable():
    res = PeakPolicy().calculate(LINEAR, MeatType.OYAKO, [_target(1, 500_000)], ShelfStock())
    out = res.to_dict()
    assert out["meat"] == "oyako"
    assert out["trace"]["targets"][0]["date"] == "2025-01-10"
