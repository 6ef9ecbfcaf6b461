"""
Calculation policies and small numeric utilities for the thaw estimator.

This module holds the business rules that are not specific to one need
policy: how caller input is coerced into a usable number, how values are
rounded for display, how weather changes the expected sales and how the
shelf stock of a meat converts into kilograms or packs.

None of these functions raise for bad numbers. Non-numeric, non-finite
or negative input is treated as ``0`` so that a calculation always
produces a result.
"""

from __future__ import annotations

from math import floor, isfinite
from typing import Any, Mapping, Optional

from kaitou.config import DEFAULTS, ThawConfig
from kaitou.domain.models import MeatType, ShelfStock


def to_amount(x: Any) -> float:
    """Coerce ``x`` into a finite, non-negative float.

    Examples:
        ``"12"`` → ``12.0``; ``None``, ``"abc"``, ``nan``, ``-3`` → ``0.0``
    """
    if x is None or isinstance(x, bool):
        return 0.0
    try:
        val = float(x)
    except (TypeError, ValueError):
        return 0.0
    if not isfinite(val) or val < 0:
        return 0.0
    return val


def to_finite(x: Any) -> float:
    """Like :func:`to_amount` but keeps negative values."""
    try:
        val = float(x)
    except (TypeError, ValueError):
        return 0.0
    return val if isfinite(val) else 0.0


def round_half_up(x: float) -> float:
    """Round to the nearest integer, halves towards +inf (``2.5`` → ``3``)."""
    return float(floor(x + 0.5))


def r1(x: float) -> float:
    """Round to one decimal place, halves towards +inf."""
    return floor(x * 10 + 0.5) / 10


def weather_factor(weather: Optional[str], factors: Optional[Mapping[str, float]] = None) -> float:
    """Demand multiplier for a weather category.

    Unknown or missing categories leave demand unchanged (``1.0``).
    """
    table = DEFAULTS.weather_factors if factors is None else factors
    if not weather:
        return 1.0
    return float(table.get(str(weather).strip().lower(), 1.0))


def adjust_sales(raw_sales: Any, weather: Optional[str], factors: Optional[Mapping[str, float]] = None) -> float:
    """``round(raw_sales * weather_factor(weather))``."""
    return round_half_up(to_amount(raw_sales) * weather_factor(weather, factors))


def stock_to_kg(meat: MeatType, stock: ShelfStock, config: ThawConfig = DEFAULTS) -> float:
    """Shelf stock in kilograms: ``dan * dan_kg + pack * kg_per_pack``."""
    return (
        to_amount(stock.dan) * config.dan_kg[meat.value]
        + to_amount(stock.pack) * config.kg_per_pack
    )


def stock_to_packs(meat: MeatType, stock: ShelfStock, config: ThawConfig = DEFAULTS) -> float:
    """Shelf stock in packs of ``pack_gram`` grams."""
    pack_gram = config.pack_gram[meat.value] or 1.0
    return to_amount(stock.pack) + to_amount(stock.dan) * config.dan_kg[meat.value] * 1000.0 / pack_gram


def usage_to_packs(meat: MeatType, usage: float, config: ThawConfig = DEFAULTS) -> float:
    """Convert a usage-table value into packs, clamped at ``0``.

    oyako/gokujo usage is in grams and is divided by ``pack_gram``;
    karaage usage is already in packs and is scaled by
    ``karaage_need_factor``.
    """
    usage = to_finite(usage)
    if meat.counted_in_packs:
        packs = usage * config.karaage_need_factor
    else:
        packs = usage / (config.pack_gram[meat.value] or 1.0)
    return max(0.0, packs)
