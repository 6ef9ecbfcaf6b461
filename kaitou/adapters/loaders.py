# kaitou/adapters/loaders.py
"""
Loaders for the reference data: usage table and holiday calendar.

The usage table can be:
- a JSON list of rows in the ``meat_usage.json`` format
  (``[{"sales": ..., "oyako_g": ..., "gokujo_g": ..., "karaage_pack": ...}]``);
- a CSV or XLSX sheet, read with pandas, whose headers may use synonyms
  ("売上", "親子肉", ...).

The holiday calendar is a JSON object ``{"YYYY-MM-DD": "name"}`` (the
format served by the holidays-jp API).

Notes:
- A missing file is not an error: an empty table / calendar is returned and
  a warning is logged. The calculations then degrade to zero.
- Non-numeric cells become 0. Duplicated ``sales`` keep the first row.
- Rows are returned in file order; the lookup functions sort as needed.
"""

from __future__ import annotations

import json
import re
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from kaitou.config import HOLIDAYS_PATH, USAGE_TABLE_PATH
from kaitou.domain.models import UsageRow
from kaitou.infra.logger import log_file_operation

USAGE_COLUMNS = ("sales", "oyako_g", "gokujo_g", "karaage_pack")


# ---------------------------
# normalisation helpers
# ---------------------------

def _slug(s: str) -> str:
    """Normalise headers: lower case, separators collapsed to one space."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    s = re.sub(r"[^\w]+|_", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


_ALIASES = {
    "sales": "sales",
    "sale": "sales",
    "uriage": "sales",
    "売上": "sales",
    "売上高": "sales",
    "売上予想": "sales",

    "oyako g": "oyako_g",
    "oyako": "oyako_g",
    "親子": "oyako_g",
    "親子肉": "oyako_g",
    "親子 g": "oyako_g",

    "gokujo g": "gokujo_g",
    "gokujo": "gokujo_g",
    "極上": "gokujo_g",
    "極上肉": "gokujo_g",
    "極上 g": "gokujo_g",

    "karaage pack": "karaage_pack",
    "karaage": "karaage_pack",
    "鶏から": "karaage_pack",
    "唐揚げ": "karaage_pack",
    "鶏から pack": "karaage_pack",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename columns through the alias table (unknown headers keep their slug)."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = _ALIASES.get(key, key)
    return df.rename(columns=new_cols)


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".json":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid usage table JSON in {path}: {e}") from e
        if not isinstance(data, list):
            raise ValueError(f"usage table {path} must be a JSON list of rows")
        return pd.DataFrame.from_records(data)
    if suffix == ".xlsx":
        return pd.read_excel(path)
    if suffix == ".xls":
        raise ValueError(f"legacy .xls sheets are not supported, save {path} as .xlsx")
    return pd.read_csv(path)


def usage_rows_from_frame(df: pd.DataFrame) -> List[UsageRow]:
    """Convert a (raw) DataFrame into ``UsageRow`` objects."""
    if df is None or df.empty:
        return []
    df = _normalize_columns(df)
    if "sales" not in df.columns:
        return []
    df = df.copy()
    for col in USAGE_COLUMNS:
        if col not in df.columns:
            df[col] = 0.0
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).clip(lower=0.0)
    df = df.drop_duplicates(subset="sales", keep="first")
    return [
        UsageRow(
            sales=float(r.sales),
            oyako_g=float(r.oyako_g),
            gokujo_g=float(r.gokujo_g),
            karaage_pack=float(r.karaage_pack),
        )
        for r in df[list(USAGE_COLUMNS)].itertuples(index=False)
    ]


# ---------------------------
# public loaders
# ---------------------------

def load_usage_table(path: Optional[str] = None) -> List[UsageRow]:
    """Read the usage table from JSON, CSV or XLSX.

    Returns an empty list when the file does not exist.
    """
    p = Path(path or USAGE_TABLE_PATH)
    if not p.exists():
        log_file_operation("load_usage", str(p), 0, level="warning", missing=True)
        return []
    rows = usage_rows_from_frame(_read_frame(p))
    log_file_operation("load_usage", str(p), len(rows))
    return rows


def load_holidays(path: Optional[str] = None) -> Dict[str, str]:
    """Read the holiday calendar ``{"YYYY-MM-DD": "name"}``.

    Returns an empty dict when the file does not exist.
    """
    p = Path(path or HOLIDAYS_PATH)
    if not p.exists():
        log_file_operation("load_holidays", str(p), 0, level="warning", missing=True)
        return {}
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid holiday JSON in {p}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"holiday calendar {p} must be a JSON object")
    out = {str(k).strip(): str(v) for k, v in data.items() if v is not None}
    log_file_operation("load_holidays", str(p), len(out))
    return out


def make_holiday_lookup(holidays: Optional[Dict[str, Any]]) -> Callable[[date], Optional[str]]:
    """Wrap a ``{"YYYY-MM-DD": name}`` mapping as ``date -> name | None``."""
    holidays = dict(holidays or {})

    def _lookup(d: date) -> Optional[str]:
        name = holidays.get(d.isoformat())
        return str(name) if name else None

    return _lookup
