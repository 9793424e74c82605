"""
Shared fixtures for the tradebook tests.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List

import pytest

from tradebook.types import Trade, parse_trades

# The five-trade journal used throughout the dashboard views.
SAMPLE_RECORDS: List[Dict[str, Any]] = [
    {
        "id": "1", "symbol": "AAPL", "direction": "BUY", "entry_price": "182.63", "exit_price": "189.97",
        "quantity": 50, "entry_date": "2025-02-15", "exit_date": "2025-03-01",
        "pnl": "366.83", "pnl_percentage": "4.02", "status": "CLOSED",
    },
    {
        "id": "2", "symbol": "MSFT", "direction": "BUY", "entry_price": "412.78", "exit_price": "425.22",
        "quantity": 25, "entry_date": "2025-02-20", "exit_date": "2025-03-05",
        "pnl": "311.00", "pnl_percentage": "3.01", "status": "CLOSED",
    },
    {
        "id": "3", "symbol": "NVDA", "direction": "SELL", "entry_price": "882.35", "exit_price": "845.60",
        "quantity": 15, "entry_date": "2025-02-28", "exit_date": "2025-03-10",
        "pnl": "551.25", "pnl_percentage": "4.17", "status": "CLOSED",
    },
    {
        "id": "4", "symbol": "TSLA", "direction": "BUY", "entry_price": "176.54", "exit_price": None,
        "quantity": 40, "entry_date": "2025-03-15", "exit_date": None,
        "pnl": None, "pnl_percentage": None, "status": "OPEN",
    },
    {
        "id": "5", "symbol": "AMZN", "direction": "BUY", "entry_price": "178.75", "exit_price": None,
        "quantity": 30, "entry_date": "2025-03-18", "exit_date": None,
        "pnl": None, "pnl_percentage": None, "status": "OPEN",
    },
]


@pytest.fixture
def sample_trades() -> List[Trade]:
    """The sample journal: three closed winners and two open positions."""
    return parse_trades(SAMPLE_RECORDS)


@pytest.fixture
def make_trade() -> Callable[..., Trade]:
    """
    A factory for trades. Defaults to a closed long AAPL trade; pass `pnl` to
    set the realized figure (the exit price follows from it), or
    `status="OPEN"` for an open one.
    """
    counter = iter(range(1, 10_000))

    def _make(**overrides: Any) -> Trade:
        record: Dict[str, Any] = {
            "id": str(next(counter)),
            "symbol": "AAPL",
            "direction": "LONG",
            "entry_price": Decimal("100"),
            "exit_price": Decimal("110"),
            "quantity": Decimal("10"),
            "entry_date": date(2025, 3, 3),
            "exit_date": date(2025, 3, 7),
            "status": "CLOSED",
        }
        if overrides.get("status") == "OPEN":
            record.update(exit_price=None, exit_date=None)
        record.update(overrides)
        if overrides.get("pnl") is not None and "exit_price" not in overrides:
            # Place the exit where the prices produce the requested pnl.
            sign = -1 if record["direction"] == "SHORT" else 1
            record["exit_price"] = record["entry_price"] + sign * overrides["pnl"] / record["quantity"]
        return Trade(**record)

    return _make
