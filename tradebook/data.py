"""
Read access to the trade journal.

The engine never queries a subset of the journal: a repository hands back the
full collection and all filtering happens client-side.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Protocol, Sequence

import pandas as pd
import yaml

from tradebook.types import Trade, parse_trades

__all__ = ["TradeRepository", "InMemoryTradeRepository", "FileTradeRepository"]

log = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}
_CSV_SUFFIXES = {".csv"}


class TradeRepository(Protocol):
    def list_trades(self) -> List[Trade]:
        """Returns every trade in the journal of the current user."""
        ...


class InMemoryTradeRepository:
    """A repository over trades that are already validated."""

    def __init__(self, trades: Sequence[Trade]) -> None:
        self._trades = list(trades)

    def list_trades(self) -> List[Trade]:
        return list(self._trades)


class FileTradeRepository:
    """
    A read-only repository over a journal file.

    YAML files hold either a list of trade records or a mapping with a
    `trades` list. CSV files hold one trade per row with the record field
    names as headers; empty cells mean "not set".
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    # impure
    def list_trades(self) -> List[Trade]:
        """
        Loads and validates every record in the file.
        #impure: Reads from the filesystem.
        """
        if not self.path.is_file():
            raise FileNotFoundError(f"Trade journal not found: {self.path}")

        suffix = self.path.suffix.lower()
        if suffix in _YAML_SUFFIXES:
            records = self._read_yaml()
        elif suffix in _CSV_SUFFIXES:
            records = self._read_csv()
        else:
            raise ValueError(f"Unsupported journal format '{suffix}' for {self.path}")

        trades = parse_trades(records)
        log.info(f"Loaded {len(trades)} trades from {self.path}.")
        return trades

    def _read_yaml(self) -> List[Dict[str, Any]]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML syntax in {self.path}: {e}") from e

        if raw is None:
            return []
        if isinstance(raw, dict):
            if "trades" not in raw:
                raise ValueError(f"Journal {self.path} must contain a 'trades' list.")
            raw = raw["trades"]
        if not isinstance(raw, list):
            raise ValueError(f"Journal {self.path} must contain a list of trades.")
        return raw

    def _read_csv(self) -> List[Dict[str, Any]]:
        # Read everything as text and let the Trade model parse the values.
        # Only empty cells are missing; tickers such as NA stay text.
        df = pd.read_csv(self.path, dtype=str, keep_default_na=False, na_values=[""])
        if df.empty:
            return []
        df = df.astype(object).where(df.notna(), None)
        return df.to_dict(orient="records")
