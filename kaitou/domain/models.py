# kaitou/domain/models.py
"""
Domain models (dataclasses).

Everything here is ephemeral: values are built for one calculation call
and never mutated afterwards. The trace records exist only to show how a
recommendation was reached; no calculation reads them back.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class MeatType(str, Enum):
    OYAKO = "oyako"
    GOKUJO = "gokujo"
    KARAAGE = "karaage"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def usage_column(self) -> str:
        """Column of ``UsageRow`` holding this meat's consumption."""
        return _USAGE_COLUMNS[self]

    @property
    def counted_in_packs(self) -> bool:
        """karaage is tracked in packs in the usage table; the others in grams."""
        return self is MeatType.KARAAGE


_LABELS = {
    MeatType.OYAKO: "親子肉",
    MeatType.GOKUJO: "極上肉",
    MeatType.KARAAGE: "鶏から",
}

_USAGE_COLUMNS = {
    MeatType.OYAKO: "oyako_g",
    MeatType.GOKUJO: "gokujo_g",
    MeatType.KARAAGE: "karaage_pack",
}


@dataclass(frozen=True)
class UsageRow:
    """One calibration point: at ``sales``, this much of each meat is used."""
    sales: float
    oyako_g: float = 0.0
    gokujo_g: float = 0.0
    karaage_pack: float = 0.0

    def value(self, meat: MeatType) -> float:
        return getattr(self, meat.usage_column)


@dataclass(frozen=True)
class PlannedDay:
    """Forecast supplied by the caller for ``base_date + offset``."""
    offset: int
    sales: float
    weather: Optional[str] = None


@dataclass(frozen=True)
class TargetDay:
    """A future business day that today's thawing has to cover."""
    offset: int
    date: date
    sales: float
    weather: Optional[str] = None
    is_holiday: bool = False
    holiday_name: Optional[str] = None


@dataclass(frozen=True)
class ShelfStock:
    """Already-thawed stock of one meat, in shelf units (段) plus packs."""
    dan: float = 0.0
    pack: float = 0.0


@dataclass(frozen=True)
class InventoryState:
    oyako: ShelfStock = field(default_factory=ShelfStock)
    gokujo: ShelfStock = field(default_factory=ShelfStock)
    karaage: ShelfStock = field(default_factory=ShelfStock)

    def for_meat(self, meat: MeatType) -> ShelfStock:
        return getattr(self, meat.value)

    @classmethod
    def from_packs(cls, oyako: float = 0.0, gokujo: float = 0.0, karaage: float = 0.0) -> "InventoryState":
        return cls(ShelfStock(pack=oyako), ShelfStock(pack=gokujo), ShelfStock(pack=karaage))


# -------------------------
# Calculation traces
# -------------------------

@dataclass
class TargetNeed:
    """Per-target row of the peak calculation."""
    offset: int
    date: date
    raw_sales: float
    weather: Optional[str]
    weather_factor: float
    adjusted_sales: float
    raw_need: float
    need_pack: float
    is_holiday: bool = False
    holiday_name: Optional[str] = None


@dataclass
class PeakTrace:
    targets: List[TargetNeed] = field(default_factory=list)
    chosen_offset: Optional[int] = None
    peak_need_pack: float = 0.0
    thawed_now_pack: float = 0.0
    shortfall_pack: float = 0.0   # peak - thawed, before ceil/clamp


@dataclass
class CarryForwardTrace:
    stock_kg: float
    d1: float
    d2: float
    d3: float
    used1: float   # sales of the matched usage rows
    used2: float
    used3: float
    left: float
    short: float
    thaw_kg: float
    thaw_pack: float


@dataclass
class IntradayTrace:
    today_pred_pack: float
    today_so_far_pack: float
    remaining_today: float
    leftover_end_of_day: float
    tomorrow_need: float
    day_after_need: float


Trace = Union[PeakTrace, CarryForwardTrace, IntradayTrace]


@dataclass
class ResultDetail:
    """Recommendation for one meat type plus the trace behind it."""
    meat: MeatType
    policy: str
    pack: float
    gram: Optional[float]
    trace: Trace

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["meat"] = self.meat.value
        return _jsonable(out)


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_jsonable(v) for v in obj]
    if isinstance(obj, date):
        return obj.isoformat()
    return obj
