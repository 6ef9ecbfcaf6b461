# kaitou/config.py
"""
Global settings and default values of the thaw estimator.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict


DATA_DIR = Path(__file__).parent / "data"

# Default reference data files (overridable through the environment)
USAGE_TABLE_PATH = os.environ.get("KAITOU_USAGE_TABLE", str(DATA_DIR / "meat_usage.json"))
HOLIDAYS_PATH = os.environ.get("KAITOU_HOLIDAYS", str(DATA_DIR / "holidays.json"))


def _default_pack_gram() -> Dict[str, float]:
    return {"oyako": 2000.0, "gokujo": 2000.0, "karaage": 2000.0}


def _default_dan_kg() -> Dict[str, float]:
    return {"oyako": 3.0, "gokujo": 3.0, "karaage": 6.0}


def _default_weather_factors() -> Dict[str, float]:
    return {
        "sun": 1.0,
        "cloud": 1.0,
        "rain": 0.9,
        "snow": 0.8,
        "storm": 0.85,
    }


@dataclass(frozen=True)
class ThawConfig:
    """Unit constants and calculation knobs.

    Keys of the per-meat mappings are the ``MeatType`` values
    (``oyako``, ``gokujo``, ``karaage``).
    """
    pack_gram: Dict[str, float] = field(default_factory=_default_pack_gram)
    karaage_need_factor: float = 1.0   # ex.: 0.9 to thaw 10% less karaage
    kg_per_pack: float = 2.0           # carry-forward variant
    dan_kg: Dict[str, float] = field(default_factory=_default_dan_kg)
    weather_factors: Dict[str, float] = field(default_factory=_default_weather_factors)
    include_saturday: bool = False

    def with_overrides(self, **kwargs) -> "ThawConfig":
        """Return a copy with the given fields replaced (``None`` is ignored).

        ``pack_gram`` and ``dan_kg`` may be given partially; missing meats
        keep their current values.
        """
        changes = {}
        for key, val in kwargs.items():
            if val is None:
                continue
            if key in ("pack_gram", "dan_kg", "weather_factors"):
                merged = dict(getattr(self, key))
                merged.update({k: v for k, v in val.items() if v is not None})
                val = merged
            changes[key] = val
        return replace(self, **changes)


# Global instance with the default values
DEFAULTS = ThawConfig()
