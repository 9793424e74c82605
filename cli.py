"""
CLI entry point for the tradebook application.
"""
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

import pandas as pd
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tradebook.config import Config, load_config
from tradebook.core.calendar_grid import generate_month_grid, month_weeks
from tradebook.core.filters import FilterQuery, filter_and_sort
from tradebook.core.metrics import (
    aggregate,
    count_open_positions,
    daily_pnl_series,
    format_currency,
    trades_in_range,
)
from tradebook.data import FileTradeRepository
from tradebook.errors import TradebookError
from tradebook.reporting import format_profit_factor, generate_all_reports
from tradebook.types import Trade

# Log to stderr to separate from potential data output to stdout.
app = typer.Typer(pretty_exceptions_show_locals=False, help="Trading journal analytics and calendar.")
console = Console(stderr=True)

WEEKDAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    """Trading journal analytics and calendar."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config_or_exit(config_path: Path) -> Config:
    """Helper to load config and exit on failure."""
    try:
        return load_config(config_path)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(code=1)


def _load_trades_or_exit(config: Config) -> List[Trade]:
    """Helper to read the journal and exit on failure."""
    try:
        return FileTradeRepository(config.journal.path).list_trades()
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Journal Error:[/bold red] {e}")
        raise typer.Exit(code=1)


def _parse_month(value: Optional[str]) -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(f"{value}-01")
    except ValueError:
        console.print(f"[bold red]Error:[/bold red] --month must look like YYYY-MM, got {value!r}")
        raise typer.Exit(code=1)


def _pnl_markup(value, currency: str) -> str:
    if value is None:
        return "[dim]-[/dim]"
    color = "green" if value >= 0 else "red"
    return f"[{color}]{format_currency(value, symbol=currency)}[/{color}]"


@app.command()
def trades(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
    status: Optional[str] = typer.Option(None, "--status", help="ALL, OPEN or CLOSED."),
    search: Optional[str] = typer.Option(None, "--search", help="Case-insensitive symbol search."),
    sort: Optional[str] = typer.Option(None, "--sort", help="DATE_DESC, DATE_ASC, PNL_DESC, PNL_ASC or SYMBOL_ASC."),
):
    """List journal trades, filtered and sorted."""
    config = _load_config_or_exit(config_path)
    all_trades = _load_trades_or_exit(config)
    currency = config.journal.currency

    default = config.view
    try:
        query = FilterQuery(
            status=status if status is not None else default.status,
            symbol_search=search if search is not None else default.symbol_search,
            sort_by=sort if sort is not None else default.sort_by,
        )
        selected = filter_and_sort(all_trades, query)
    except TradebookError as e:
        console.print(f"[bold red]Query Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    if not selected:
        console.print("No trades found matching your filters.")
        return

    table = Table(title=f"Trades ({len(selected)} of {len(all_trades)})")
    for column in ["Symbol", "Type", "Entry", "Exit", "Qty", "Entry Date", "Exit Date", "P&L", "P&L %", "Status"]:
        table.add_column(column)
    for t in selected:
        table.add_row(
            t.symbol,
            t.direction.value,
            format_currency(t.entry_price, symbol=currency),
            format_currency(t.exit_price, symbol=currency) if t.exit_price is not None else "-",
            str(t.quantity),
            t.entry_date.isoformat(),
            t.exit_date.isoformat() if t.exit_date is not None else "-",
            _pnl_markup(t.pnl, currency),
            f"{t.pnl_percentage:+.2f}%" if t.pnl_percentage is not None else "-",
            t.status.value,
        )
    console.print(table)


@app.command()
def summary(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
    time_range: Optional[str] = typer.Option(None, "--range", help="MONTHLY, YEARLY or ALL."),
    on: Optional[str] = typer.Option(None, "--date", help="Reference date (YYYY-MM-DD), defaults to today."),
):
    """Show performance metrics for the month, year or whole journal."""
    config = _load_config_or_exit(config_path)
    all_trades = _load_trades_or_exit(config)
    currency = config.journal.currency

    try:
        reference = date.fromisoformat(on) if on else date.today()
    except ValueError:
        console.print(f"[bold red]Error:[/bold red] --date must look like YYYY-MM-DD, got {on!r}")
        raise typer.Exit(code=1)

    try:
        scoped = trades_in_range(all_trades, reference, time_range or config.dashboard.time_range)
    except TradebookError as e:
        console.print(f"[bold red]Query Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    metrics = aggregate(scoped)
    table = Table(title=f"Performance ({(time_range or config.dashboard.time_range).upper()}, {reference.isoformat()})")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total P&L", _pnl_markup(metrics.total_pnl, currency))
    table.add_row("Win Rate", f"{metrics.win_rate:.1f}%")
    table.add_row("Profit Factor", format_profit_factor(metrics.profit_factor))
    table.add_row(
        "Avg Risk/Reward",
        f"{metrics.avg_risk_reward:.2f}" if metrics.avg_risk_reward is not None else "n/a",
    )
    table.add_row("Total Trades", str(metrics.total_trades))
    table.add_row("Open Positions", str(count_open_positions(all_trades)))
    table.add_row("Expectancy", _pnl_markup(metrics.expectancy, currency))
    console.print(table)


@app.command()
def calendar(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
    month: Optional[str] = typer.Option(None, "--month", help="Month to show (YYYY-MM), defaults to the current one."),
):
    """Show a month calendar with the realized P&L of each day."""
    config = _load_config_or_exit(config_path)
    all_trades = _load_trades_or_exit(config)
    reference = _parse_month(month)

    grid = generate_month_grid(reference, pad_trailing=config.dashboard.pad_trailing)
    real_days = [cell.date for cell in grid if not cell.is_placeholder]
    daily = daily_pnl_series(all_trades, start=real_days[0], end=real_days[-1])

    table = Table(title=reference.strftime("%B %Y"), show_lines=True)
    for name in WEEKDAYS:
        table.add_column(name, justify="center")
    for week in month_weeks(grid):
        cells = []
        for cell in week:
            if cell.is_placeholder:
                cells.append("")
                continue
            pnl = daily.get(pd.Timestamp(cell.date), 0.0)
            if pnl:
                color = "green" if pnl > 0 else "red"
                cells.append(f"{cell.day_of_month}\n[{color}]{pnl:+.0f}[/{color}]")
            else:
                cells.append(str(cell.day_of_month))
        table.add_row(*cells)
    console.print(table)


@app.command()
def export(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
):
    """Write summary and ledger reports to the configured output directory."""
    config = _load_config_or_exit(config_path)
    all_trades = _load_trades_or_exit(config)

    run_dir = Path(config.reporting.output_dir)
    run_dir.mkdir(parents=True, exist_ok=True)
    console.print(f"Reports will be saved to: [cyan]{run_dir}[/cyan]")
    generate_all_reports(config, all_trades, run_dir, console)
    console.print("[bold green]Export finished.[/bold green]")


if __name__ == "__main__":
    app()
