"""
Performance metrics over a trade collection.

Every function here is a pure reduction: the summary is recomputed from the
trades passed in on each call and nothing is cached between calls. Only
CLOSED trades carry realized P&L, so only they enter the P&L math; a missing
P&L is never read as zero.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, List, Optional, Sequence, Union

import pandas as pd

from tradebook.errors import InvalidQueryError
from tradebook.types import CENT, Trade

__all__ = [
    "ProfitFactor",
    "MetricsSummary",
    "TimeRange",
    "aggregate",
    "closed_trades",
    "count_open_positions",
    "trades_in_range",
    "daily_pnl_series",
    "equity_curve",
    "per_symbol_breakdown",
    "format_currency",
]

log = logging.getLogger(__name__)

ZERO = Decimal("0")


class ProfitFactor(str, Enum):
    """Profit factor outcomes that have no numeric value."""

    UNDEFINED = "UNDEFINED"  # no closed trades
    INFINITE = "INFINITE"  # closed trades, but none lost money


class TimeRange(str, Enum):
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"
    ALL = "ALL"


@dataclass(frozen=True)
class MetricsSummary:
    """
    Aggregate statistics for the CLOSED trades of a collection.

    Sums are exact decimals; ratios (win rate, profit factor, averages) are
    rounded half-up to cents.
    """

    total_pnl: Decimal
    win_rate: Decimal
    profit_factor: Union[Decimal, ProfitFactor]
    avg_risk_reward: Optional[Decimal]
    total_trades: int
    winning_trades: int = 0
    losing_trades: int = 0
    gross_profit: Decimal = ZERO
    gross_loss: Decimal = ZERO
    average_win: Decimal = ZERO
    average_loss: Decimal = ZERO
    largest_win: Decimal = ZERO
    largest_loss: Decimal = ZERO
    expectancy: Decimal = ZERO


def _round(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def closed_trades(trades: Sequence[Trade]) -> List[Trade]:
    return [t for t in trades if t.is_closed]


def count_open_positions(trades: Sequence[Trade]) -> int:
    return sum(1 for t in trades if not t.is_closed)


def aggregate(trades: Sequence[Trade]) -> MetricsSummary:
    """
    Reduces a trade collection to a `MetricsSummary`.

    Args:
        trades: Any mix of OPEN and CLOSED trades. OPEN trades are ignored.

    Returns:
        The summary. With no closed trades every figure is zero and the profit
        factor is `ProfitFactor.UNDEFINED`; with closed trades but no losses it
        is `ProfitFactor.INFINITE`. `avg_risk_reward` averages only the trades
        that have a risk basis (a stop loss) and is None if none do.
    """
    closed = closed_trades(trades)
    if not closed:
        return MetricsSummary(
            total_pnl=ZERO,
            win_rate=ZERO,
            profit_factor=ProfitFactor.UNDEFINED,
            avg_risk_reward=None,
            total_trades=0,
        )

    # Closed trades always carry pnl; see Trade._check_lifecycle.
    pnls = [t.pnl for t in closed]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    total_trades = len(closed)

    total_pnl = sum(pnls, ZERO)
    gross_profit = sum(wins, ZERO)
    gross_loss = -sum(losses, ZERO)

    win_rate = _round(Decimal(len(wins)) / total_trades * 100)
    loss_rate = Decimal(len(losses)) / total_trades

    profit_factor: Union[Decimal, ProfitFactor]
    if gross_loss == 0:
        profit_factor = ProfitFactor.INFINITE
    else:
        profit_factor = _round(gross_profit / gross_loss)

    ratios = [t.risk_reward for t in closed if t.risk_reward is not None]
    avg_risk_reward = _round(sum(ratios, ZERO) / len(ratios)) if ratios else None

    average_win = gross_profit / len(wins) if wins else ZERO
    average_loss = -gross_loss / len(losses) if losses else ZERO
    # Expected P&L per trade from the win/loss distribution.
    expectancy = Decimal(len(wins)) / total_trades * average_win + loss_rate * average_loss

    summary = MetricsSummary(
        total_pnl=total_pnl,
        win_rate=win_rate,
        profit_factor=profit_factor,
        avg_risk_reward=avg_risk_reward,
        total_trades=total_trades,
        winning_trades=len(wins),
        losing_trades=len(losses),
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        average_win=_round(average_win),
        average_loss=_round(average_loss),
        largest_win=max(wins) if wins else ZERO,
        largest_loss=min(losses) if losses else ZERO,
        expectancy=_round(expectancy),
    )
    log.debug(f"Aggregated {total_trades} closed trades: total_pnl={total_pnl}.")
    return summary


def trades_in_range(trades: Sequence[Trade], reference_date: date, time_range: Any) -> List[Trade]:
    """
    Scopes CLOSED trades to the month or year containing `reference_date`,
    by exit date. `TimeRange.ALL` keeps every closed trade.
    """
    if not isinstance(time_range, TimeRange):
        try:
            time_range = TimeRange(str(time_range).strip().upper())
        except ValueError:
            allowed = ", ".join(r.value for r in TimeRange)
            raise InvalidQueryError(f"Unknown time range {time_range!r}; expected one of: {allowed}")

    closed = closed_trades(trades)
    if time_range is TimeRange.ALL:
        return closed
    if time_range is TimeRange.YEARLY:
        return [t for t in closed if t.exit_date.year == reference_date.year]
    return [
        t for t in closed
        if (t.exit_date.year, t.exit_date.month) == (reference_date.year, reference_date.month)
    ]


def daily_pnl_series(
    trades: Sequence[Trade],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> pd.Series:
    """
    Realized P&L per exit date, the data series behind the P&L chart.

    Totals per day are summed as decimals and only then converted to floats
    rounded to cents. With `start` and `end` the series covers every day of
    that window, days without exits being 0.0.

    Returns:
        A float Series named "pnl" indexed by a DatetimeIndex, ascending.
    """
    totals = {}
    for trade in closed_trades(trades):
        totals[trade.exit_date] = totals.get(trade.exit_date, ZERO) + trade.pnl

    days = sorted(totals)
    series = pd.Series(
        [float(_round(totals[d])) for d in days],
        index=pd.DatetimeIndex(pd.to_datetime(days)),
        dtype="float64",
        name="pnl",
    )

    if start is not None and end is not None:
        window = pd.date_range(start=start, end=end, freq="D")
        series = series.reindex(window, fill_value=0.0)
        series.name = "pnl"
    elif start is not None:
        series = series[series.index >= pd.Timestamp(start)]
    elif end is not None:
        series = series[series.index <= pd.Timestamp(end)]
    return series


def equity_curve(daily_pnl: pd.Series) -> pd.Series:
    """Cumulative realized P&L over a daily P&L series."""
    return daily_pnl.cumsum().round(2).rename("equity")


def per_symbol_breakdown(trades: Sequence[Trade]) -> pd.DataFrame:
    """
    Per-symbol statistics for the CLOSED trades.

    Returns:
        A DataFrame indexed by symbol, with columns for:
        - trade_count
        - total_pnl
        - hit_rate (fraction of trades with positive P&L)
        Empty if there are no closed trades.
    """
    closed = closed_trades(trades)
    if not closed:
        return pd.DataFrame()

    df = pd.DataFrame(
        {"symbol": [t.symbol for t in closed], "pnl": [float(t.pnl) for t in closed]}
    )

    hit_rate = lambda x: (x > 0).mean()
    hit_rate.__name__ = "hit_rate"

    grouped = df.groupby("symbol")["pnl"]
    breakdown = grouped.agg(["count", "sum", hit_rate])
    breakdown.rename(columns={"count": "trade_count", "sum": "total_pnl"}, inplace=True)
    breakdown["total_pnl"] = breakdown["total_pnl"].round(2)
    return breakdown


def format_currency(value: Any, decimals: int = 2, symbol: str = "$") -> str:
    """Formats an amount for display, e.g. 1229.08 -> "$1,229.08", -90 -> "-$90.00"."""
    amount = Decimal(str(value))
    quantum = Decimal(1).scaleb(-decimals)
    amount = amount.quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{decimals}f}"
