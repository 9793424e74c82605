"""
Generating output reports from a trade journal.
"""
import json
from dataclasses import asdict
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import List

import pandas as pd
from rich.console import Console

from tradebook.config import Config
from tradebook.core.metrics import (
    MetricsSummary,
    ProfitFactor,
    aggregate,
    count_open_positions,
    format_currency,
    per_symbol_breakdown,
)
from tradebook.types import Trade

__all__ = ["generate_all_reports", "format_profit_factor"]


def _to_json_serializable(data):
    """Recursively converts non-serializable types in a dictionary."""
    if isinstance(data, dict):
        return {k: _to_json_serializable(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_to_json_serializable(i) for i in data]
    if isinstance(data, Enum):
        return data.value
    # Decimals stay exact as strings.
    if isinstance(data, (Decimal, Path, date)):
        return str(data)
    return data


def format_profit_factor(value) -> str:
    if value is ProfitFactor.INFINITE:
        return "∞"
    if value is ProfitFactor.UNDEFINED:
        return "n/a"
    return f"{value:.2f}"


# impure
def _generate_trade_ledger_csv(trades: List[Trade], output_dir: Path) -> None:
    """Generates a CSV file with all trade details."""
    if not trades:
        return
    ledger = pd.DataFrame([t.model_dump(mode="json") for t in trades])
    ledger.to_csv(output_dir / "trade_ledger.csv", index=False)


# impure
def _generate_summary_json(
    summary: MetricsSummary, trades: List[Trade], config: Config, output_dir: Path
) -> None:
    """Generates a JSON file with summary metrics."""
    breakdown = per_symbol_breakdown(trades)
    report = {
        "journal": config.journal.path,
        "open_positions": count_open_positions(trades),
        "metrics": asdict(summary),
        "per_symbol": breakdown.to_dict(orient="index") if not breakdown.empty else {},
    }
    with (output_dir / "summary.json").open("w", encoding="utf-8") as f:
        json.dump(_to_json_serializable(report), f, indent=2)


# impure
def _generate_summary_markdown(
    summary: MetricsSummary, trades: List[Trade], config: Config, output_dir: Path
) -> None:
    """Generates a Markdown file with a human-readable summary."""
    currency = config.journal.currency
    md = f"# Trading Journal Summary: {config.journal.path.name}\n\n"
    md += "## Key Metrics\n\n"

    rows = [
        ("Total P&L", format_currency(summary.total_pnl, symbol=currency)),
        ("Win Rate [%]", f"{summary.win_rate:.2f}"),
        ("Profit Factor", format_profit_factor(summary.profit_factor)),
        (
            "Avg Risk/Reward",
            f"{summary.avg_risk_reward:.2f}" if summary.avg_risk_reward is not None else "n/a",
        ),
        ("Total Trades", str(summary.total_trades)),
        ("Open Positions", str(count_open_positions(trades))),
        ("Largest Win", format_currency(summary.largest_win, symbol=currency)),
        ("Largest Loss", format_currency(summary.largest_loss, symbol=currency)),
    ]
    for label, value in rows:
        md += f"- **{label}**: {value}\n"

    (output_dir / "summary.md").write_text(md, encoding="utf-8")


# impure
def generate_all_reports(
    config: Config,
    trades: List[Trade],
    run_dir: Path,
    console: Console,
) -> None:
    """
    Orchestrates the generation of all output reports.
    #impure: Writes to the filesystem.
    """
    formats = config.reporting.output_formats
    summary = aggregate(trades)

    if "csv" in formats:
        console.print("Generating trade ledger CSV...")
        _generate_trade_ledger_csv(trades, run_dir)

    if "json" in formats:
        console.print("Generating summary JSON...")
        _generate_summary_json(summary, trades, config, run_dir)

    if "markdown" in formats:
        console.print("Generating summary Markdown...")
        _generate_summary_markdown(summary, trades, config, run_dir)

    console.print("All reports generated.")
