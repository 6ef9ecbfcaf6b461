# kaitou/adapters/cli.py
"""
Thaw estimator CLI (Typer).

Main commands:
- targets                 -> shows which days today's thawing covers
- peak                    -> calendar-aware estimate (peak of target days)
- carry                   -> three-day carry-forward estimate
- intraday                -> today's remaining use plus the next two days
- table show              -> prints the usage table
- logs                    -> prints the most recent log lines
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from kaitou.adapters.loaders import load_holidays, load_usage_table, make_holiday_lookup
from kaitou.adapters.parsers import parse_amount, parse_date, parse_day_spec
from kaitou.config import DEFAULTS, HOLIDAYS_PATH, USAGE_TABLE_PATH
from kaitou.domain.day_rules import build_targets, target_offsets
from kaitou.domain.models import (
    CarryForwardTrace,
    IntradayTrace,
    InventoryState,
    MeatType,
    PeakTrace,
    PlannedDay,
    ResultDetail,
    ShelfStock,
    TargetDay,
)
from kaitou.domain.policies import to_amount
from kaitou.infra.logger import get_log_summary
from kaitou.usecases.estimate_thaw import run_carry_forward, run_intraday, run_peak


app = typer.Typer(help="Thaw estimator CLI")
console = Console()

_WEEKDAYS = ["日", "月", "火", "水", "木", "金", "土"]


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2))


def _fmt(val: Any, digits: int = 2) -> str:
    if val is None:
        return "-"
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return f"{val:,.{digits}f}"
    return str(val)


def _amount(txt: Optional[str], name: str) -> float:
    """Parse an amount option; empty means 0, garbage is rejected."""
    if txt is None or str(txt).strip() == "":
        return 0.0
    val = parse_amount(txt)
    if val is None:
        raise typer.BadParameter(f"not a number: {txt!r}", param_hint=name)
    return to_amount(val)


def _base_date(txt: Optional[str]) -> date:
    if not txt:
        return date.today()
    d = parse_date(txt)
    if d is None:
        typer.echo(f"Invalid date: {txt!r} (expected YYYY-MM-DD)")
        raise typer.Exit(code=1)
    return d


def _planned(specs: Optional[List[str]]) -> List[PlannedDay]:
    out: List[PlannedDay] = []
    for spec in specs or []:
        parsed = parse_day_spec(spec)
        if parsed is None:
            typer.echo(f"Invalid --sales spec: {spec!r} (expected OFFSET=SALES[:WEATHER])")
            raise typer.Exit(code=1)
        offset, sales, weather = parsed
        out.append(PlannedDay(offset=offset, sales=sales, weather=weather))
    return out


def _inventory(packs: Dict[str, Optional[str]], dans: Dict[str, Optional[str]]) -> InventoryState:
    return InventoryState(**{
        meat.value: ShelfStock(
            dan=_amount(dans.get(meat.value), f"--{meat.value}-dan"),
            pack=_amount(packs.get(meat.value), f"--{meat.value}"),
        )
        for meat in MeatType
    })


def _display_targets(targets: List[TargetDay], title: str = "Target days") -> None:
    if not targets:
        console.print(Panel("No target days (missing forecasts?)", title=title, border_style="yellow"))
        return
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("offset", justify="right")
    table.add_column("date", justify="center")
    table.add_column("sales", justify="right")
    table.add_column("weather")
    table.add_column("holiday")
    for t in targets:
        wd = _WEEKDAYS[(t.date.weekday() + 1) % 7]
        holiday = t.holiday_name or ("weekend" if t.is_holiday else "")
        table.add_row(
            str(t.offset),
            f"{t.date.isoformat()} ({wd})",
            _fmt(t.sales, 0),
            t.weather or "",
            f"[bold red]{holiday}[/]" if holiday else "",
        )
    console.print(table)


def _display_results(results: Dict[MeatType, ResultDetail], title: str) -> None:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("meat")
    table.add_column("pack", justify="right")
    table.add_column("gram", justify="right")
    for meat, res in results.items():
        table.add_row(f"[bold]{meat.label}[/]", _fmt(res.pack, 1), _fmt(res.gram, 0))
    console.print(table)

    for meat, res in results.items():
        _display_trace(meat, res)


def _display_trace(meat: MeatType, res: ResultDetail) -> None:
    trace = res.trace
    if isinstance(trace, PeakTrace):
        if not trace.targets:
            return
        table = Table(title=f"{meat.label}: peak", box=box.SIMPLE)
        for col in ("offset", "sales", "weather", "factor", "adjusted", "need", "need_pack"):
            table.add_column(col, justify="right")
        for row in trace.targets:
            chosen = row.offset == trace.chosen_offset
            table.add_row(
                f"[bold]{row.offset}*[/]" if chosen else str(row.offset),
                _fmt(row.raw_sales, 0),
                row.weather or "",
                _fmt(row.weather_factor),
                _fmt(row.adjusted_sales, 0),
                _fmt(row.raw_need),
                _fmt(row.need_pack),
            )
        console.print(table)
        console.print(
            f"[dim]peak {_fmt(trace.peak_need_pack)} - thawed {_fmt(trace.thawed_now_pack)}"
            f" = {_fmt(trace.shortfall_pack)} ⇒ {res.pack} pack[/dim]"
        )
    elif isinstance(trace, CarryForwardTrace):
        console.print(
            f"[dim]{meat.label}: ① S {trace.stock_kg} - d1 {trace.d1} = left {trace.left}"
            f"  ② d2 {trace.d2} - left = short {trace.short}"
            f"  ③ d3 {trace.d3} + short = {trace.thaw_kg} kg ({trace.thaw_pack} pack)[/dim]"
        )
    elif isinstance(trace, IntradayTrace):
        console.print(
            f"[dim]{meat.label}: today {_fmt(trace.today_pred_pack)} - so far {_fmt(trace.today_so_far_pack)}"
            f" = remaining {_fmt(trace.remaining_today)}; leftover {_fmt(trace.leftover_end_of_day)};"
            f" tomorrow {_fmt(trace.tomorrow_need)} + day after {_fmt(trace.day_after_need)}"
            f" ⇒ {res.pack} pack[/dim]"
        )


def _results_json(results: Dict[MeatType, ResultDetail]) -> Dict[str, Any]:
    return {meat.value: res.to_dict() for meat, res in results.items()}


# -----------------------
# commands
# -----------------------

@app.command("targets")
def cmd_targets(
    base: Optional[str] = typer.Option(None, "--date", help="Base date YYYY-MM-DD (default: today)"),
    include_saturday: bool = typer.Option(DEFAULTS.include_saturday, "--include-saturday/--no-include-saturday", help="On Fridays, also cover Saturday"),
    holidays_path: str = typer.Option(HOLIDAYS_PATH, "--holidays", help="Holiday calendar JSON"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """Show which days today's thawing has to cover."""
    base_date = _base_date(base)
    lookup = make_holiday_lookup(load_holidays(holidays_path))
    offsets = target_offsets(base_date, include_saturday=include_saturday, holiday_lookup=lookup)
    # no forecast needed to show the calendar
    planned = [PlannedDay(offset=o, sales=0.0) for o in offsets]
    targets = build_targets(base_date, planned, include_saturday=include_saturday, holiday_lookup=lookup)
    if as_json:
        _print_json([
            {
                "offset": t.offset,
                "date": t.date.isoformat(),
                "is_holiday": t.is_holiday,
                "holiday_name": t.holiday_name,
            }
            for t in targets
        ])
        return
    _display_targets(targets, title=f"Targets for {base_date.isoformat()}")


@app.command("peak")
def cmd_peak(
    base: Optional[str] = typer.Option(None, "--date", help="Base date YYYY-MM-DD (default: today)"),
    sales: Optional[List[str]] = typer.Option(None, "--sales", "-s", help="OFFSET=SALES[:WEATHER], ex.: 1=500,000:rain"),
    oyako: Optional[str] = typer.Option(None, help="Thawed oyako packs"),
    gokujo: Optional[str] = typer.Option(None, help="Thawed gokujo packs"),
    karaage: Optional[str] = typer.Option(None, help="Thawed karaage packs"),
    oyako_dan: Optional[str] = typer.Option(None, help="Thawed oyako shelf units"),
    gokujo_dan: Optional[str] = typer.Option(None, help="Thawed gokujo shelf units"),
    karaage_dan: Optional[str] = typer.Option(None, help="Thawed karaage shelf units"),
    pack_gram_oyako: Optional[float] = typer.Option(None, help="Grams per oyako pack (ex.: 2000)"),
    pack_gram_gokujo: Optional[float] = typer.Option(None, help="Grams per gokujo pack (ex.: 2500)"),
    karaage_factor: Optional[float] = typer.Option(None, help="karaage demand factor (ex.: 0.9)"),
    include_saturday: bool = typer.Option(DEFAULTS.include_saturday, "--include-saturday/--no-include-saturday", help="On Fridays, also cover Saturday"),
    table_path: str = typer.Option(USAGE_TABLE_PATH, "--table", help="Usage table (JSON/CSV/XLSX)"),
    holidays_path: str = typer.Option(HOLIDAYS_PATH, "--holidays", help="Holiday calendar JSON"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """Thaw enough to cover the busiest target day."""
    base_date = _base_date(base)
    planned = _planned(sales)
    inventory = _inventory(
        {"oyako": oyako, "gokujo": gokujo, "karaage": karaage},
        {"oyako": oyako_dan, "gokujo": gokujo_dan, "karaage": karaage_dan},
    )
    config = DEFAULTS.with_overrides(
        pack_gram={"oyako": pack_gram_oyako, "gokujo": pack_gram_gokujo},
        karaage_need_factor=karaage_factor,
    )
    targets, results = run_peak(
        base_date,
        planned,
        inventory=inventory,
        table=load_usage_table(table_path),
        holidays=load_holidays(holidays_path),
        include_saturday=include_saturday,
        config=config,
    )
    if as_json:
        _print_json({
            "base_date": base_date.isoformat(),
            "offsets": [t.offset for t in targets],
            "results": _results_json(results),
        })
        return
    _display_targets(targets, title=f"Targets for {base_date.isoformat()}")
    _display_results(results, title="今日追加で解凍すべき量")


@app.command("carry")
def cmd_carry(
    tomorrow: Optional[str] = typer.Option(None, help="Sales forecast for tomorrow"),
    day_after: Optional[str] = typer.Option(None, help="Sales forecast for the day after tomorrow"),
    two_days_after: Optional[str] = typer.Option(None, help="Sales forecast three days ahead"),
    oyako: Optional[str] = typer.Option(None, help="oyako packs in stock"),
    gokujo: Optional[str] = typer.Option(None, help="gokujo packs in stock"),
    karaage: Optional[str] = typer.Option(None, help="karaage packs in stock"),
    oyako_dan: Optional[str] = typer.Option(None, help="oyako shelf units in stock"),
    gokujo_dan: Optional[str] = typer.Option(None, help="gokujo shelf units in stock"),
    karaage_dan: Optional[str] = typer.Option(None, help="karaage shelf units in stock"),
    table_path: str = typer.Option(USAGE_TABLE_PATH, "--table", help="Usage table (JSON/CSV/XLSX)"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """Thaw tomorrow morning: three-day carry-forward in kilograms."""
    inventory = _inventory(
        {"oyako": oyako, "gokujo": gokujo, "karaage": karaage},
        {"oyako": oyako_dan, "gokujo": gokujo_dan, "karaage": karaage_dan},
    )
    results = run_carry_forward(
        inventory,
        _amount(tomorrow, "--tomorrow"),
        _amount(day_after, "--day-after"),
        _amount(two_days_after, "--two-days-after"),
        table=load_usage_table(table_path),
    )
    if as_json:
        _print_json(_results_json(results))
        return
    _display_results(results, title="明日の朝に解凍する量")


@app.command("intraday")
def cmd_intraday(
    today_pred: Optional[str] = typer.Option(None, help="Today's sales forecast"),
    today_actual: Optional[str] = typer.Option(None, help="Today's sales so far"),
    tomorrow: Optional[str] = typer.Option(None, help="Sales forecast for tomorrow"),
    day_after: Optional[str] = typer.Option(None, help="Sales forecast for the day after tomorrow"),
    oyako: Optional[str] = typer.Option(None, help="Thawed oyako packs"),
    gokujo: Optional[str] = typer.Option(None, help="Thawed gokujo packs"),
    karaage: Optional[str] = typer.Option(None, help="Thawed karaage packs"),
    table_path: str = typer.Option(USAGE_TABLE_PATH, "--table", help="Usage table (JSON/CSV/XLSX)"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """Thaw what today still needs plus tomorrow and the day after."""
    inventory = _inventory({"oyako": oyako, "gokujo": gokujo, "karaage": karaage}, {})
    results = run_intraday(
        inventory,
        _amount(today_pred, "--today-pred"),
        _amount(today_actual, "--today-actual"),
        _amount(tomorrow, "--tomorrow"),
        _amount(day_after, "--day-after"),
        table=load_usage_table(table_path),
    )
    if as_json:
        _print_json(_results_json(results))
        return
    _display_results(results, title="今日追加で解凍すべき量")


table_app = typer.Typer(help="Usage table")
app.add_typer(table_app, name="table")


@table_app.command("show")
def cmd_table_show(
    table_path: str = typer.Option(USAGE_TABLE_PATH, "--table", help="Usage table (JSON/CSV/XLSX)"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """Print the usage table sorted by sales."""
    rows = sorted(load_usage_table(table_path), key=lambda r: r.sales)
    if as_json:
        _print_json([
            {"sales": r.sales, "oyako_g": r.oyako_g, "gokujo_g": r.gokujo_g, "karaage_pack": r.karaage_pack}
            for r in rows
        ])
        return
    if not rows:
        console.print(Panel("No data", title="Usage table", border_style="yellow"))
        return
    table = Table(title="Usage table", box=box.ROUNDED)
    for col in ("sales", "oyako_g", "gokujo_g", "karaage_pack"):
        table.add_column(col, justify="right")
    for r in rows:
        table.add_row(_fmt(r.sales, 0), _fmt(r.oyako_g, 0), _fmt(r.gokujo_g, 0), _fmt(r.karaage_pack, 1))
    console.print(table)
    console.print(f"[dim]{table_path}[/dim]")


@app.command("logs")
def cmd_logs(
    log_type: str = typer.Argument("calculations", help="calculations | data | system"),
    lines: int = typer.Option(20, help="Number of lines"),
):
    """Print the most recent log lines."""
    summary = get_log_summary(log_type, lines=lines)
    if summary is None:
        typer.echo("Logging is disabled (set KAITOU_LOGGING=1).")
        return
    typer.echo(summary)


# Optional entry point:
def main():
    app()


if __name__ == "__main__":
    main()
