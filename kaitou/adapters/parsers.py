"""
Parsing utilities for values typed by the user.

Sales and stock are usually typed with thousands separators
("1,200,000"), weather comes as free text in
English or Japanese, and forecasts for several days are passed to the CLI
as ``OFFSET=SALES[:WEATHER]`` specs. Every function returns ``None`` for
values it cannot interpret.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional, Tuple

_NUM_RE = re.compile(r"^[-+]?\d+(?:\.\d+)?$")

# canonical weather categories and their accepted spellings
_WEATHER_ALIASES = {
    "sun": "sun", "sunny": "sun", "clear": "sun", "fine": "sun", "晴": "sun", "晴れ": "sun",
    "cloud": "cloud", "cloudy": "cloud", "曇": "cloud", "曇り": "cloud", "くもり": "cloud",
    "rain": "rain", "rainy": "rain", "雨": "rain",
    "snow": "snow", "snowy": "snow", "雪": "snow",
    "storm": "storm", "typhoon": "storm", "嵐": "storm", "台風": "storm",
}


def parse_amount(txt) -> Optional[float]:
    """Interpret a number typed with optional thousands separators.

    Examples:
        "1,200,000" → 1200000.0
        " 350000 "  → 350000.0
        "12.5"      → 12.5
        "abc", ""   → None
    """
    if txt is None:
        return None
    if isinstance(txt, (int, float)) and not isinstance(txt, bool):
        return float(txt)
    s = str(txt).strip().replace(",", "").replace("，", "").replace("_", "")
    if not s or not _NUM_RE.match(s):
        return None
    return float(s)


def parse_weather(txt) -> Optional[str]:
    """Map free-text weather into a category (sun, cloud, rain, snow, storm).

    Unrecognised text is returned as ``"unknown"``; empty input as ``None``.
    """
    if txt is None:
        return None
    s = str(txt).strip().lower()
    if not s:
        return None
    return _WEATHER_ALIASES.get(s, "unknown")


def parse_date(txt) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (also ``YYYY/MM/DD``)."""
    if txt is None:
        return None
    if isinstance(txt, datetime):
        return txt.date()
    if isinstance(txt, date):
        return txt
    s = str(txt).strip()
    for fmt in ("%Y-%m-%d", "%Y/%m/%d"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def parse_day_spec(txt) -> Optional[Tuple[int, float, Optional[str]]]:
    """Interpret a CLI forecast spec ``OFFSET=SALES[:WEATHER]``.

    Examples:
        "1=500,000"      → (1, 500000.0, None)
        "2=420000:rain"  → (2, 420000.0, "rain")
        "2=420000:雨"    → (2, 420000.0, "rain")

    Returns:
        ``(offset, sales, weather)`` or ``None`` when the spec is malformed.
    """
    if txt is None:
        return None
    head, sep, tail = str(txt).partition("=")
    if not sep:
        return None
    try:
        offset = int(head.strip())
    except ValueError:
        return None
    if offset < 1:
        return None
    sales_txt, _, weather_txt = tail.partition(":")
    sales = parse_amount(sales_txt)
    if sales is None:
        return None
    return offset, sales, parse_weather(weather_txt)
