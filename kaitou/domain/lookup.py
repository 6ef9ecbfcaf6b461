"""
Usage table lookup.

Maps a sales amount to the expected consumption of one meat type using
the calibration rows of the usage table. Two modes are available:

``interpolate``
    Sorts the table by ``sales`` and blends linearly between the two rows
    that bracket the query. Queries outside the table are clamped to the
    boundary rows, never extrapolated. Used by the peak policy.

``nearest``
    Picks the single row whose ``sales`` is closest to the query, keeping
    the first row on ties. Never interpolates. Used by the carry-forward
    and intraday policies.

Both functions are pure and never raise: an empty table yields ``0``.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from kaitou.domain.models import MeatType, UsageRow
from kaitou.domain.policies import to_amount, to_finite

INTERPOLATE = "interpolate"
NEAREST = "nearest"
LOOKUP_MODES = (INTERPOLATE, NEAREST)


def sort_table(table: Iterable[UsageRow]) -> List[UsageRow]:
    """Return the rows sorted ascending by ``sales`` (stable)."""
    return sorted(table, key=lambda row: to_finite(row.sales))


def interpolate_usage(table: Sequence[UsageRow], sales: float, meat: MeatType) -> float:
    """Linearly interpolated consumption of ``meat`` at ``sales``."""
    rows = sort_table(table or [])
    if not rows:
        return 0.0
    sales = to_amount(sales)

    lo_row, hi_row = rows[0], rows[-1]
    if sales <= to_finite(lo_row.sales):
        return to_finite(lo_row.value(meat))
    if sales >= to_finite(hi_row.sales):
        return to_finite(hi_row.value(meat))

    for row in rows:
        if to_finite(row.sales) == sales:
            return to_finite(row.value(meat))

    for lo, hi in zip(rows, rows[1:]):
        lo_sales, hi_sales = to_finite(lo.sales), to_finite(hi.sales)
        if lo_sales <= sales <= hi_sales:
            span = (hi_sales - lo_sales) or 1.0
            lo_val, hi_val = to_finite(lo.value(meat)), to_finite(hi.value(meat))
            return lo_val + (hi_val - lo_val) * (sales - lo_sales) / span
    return 0.0


def nearest_row(table: Sequence[UsageRow], sales: float) -> UsageRow:
    """Row whose ``sales`` is closest to ``sales``.

    With an empty table a zero row at the queried sales is returned so
    that callers can still read ``row.sales`` for display.
    """
    sales = to_amount(sales)
    if not table:
        return UsageRow(sales=sales)
    best = table[0]
    for row in table[1:]:
        # strict comparison keeps the first row on ties
        if abs(to_finite(row.sales) - sales) < abs(to_finite(best.sales) - sales):
            best = row
    return best


def nearest_usage(table: Sequence[UsageRow], sales: float, meat: MeatType) -> float:
    return to_finite(nearest_row(table, sales).value(meat))


def lookup(table: Sequence[UsageRow], sales: float, meat: MeatType, mode: str = INTERPOLATE) -> float:
    """Expected consumption of ``meat`` at ``sales`` using ``mode``."""
    if mode == NEAREST:
        return nearest_usage(table, sales, meat)
    if mode == INTERPOLATE:
        return interpolate_usage(table, sales, meat)
    raise ValueError(f"unknown lookup mode: {mode!r} (expected one of {LOOKUP_MODES})")
