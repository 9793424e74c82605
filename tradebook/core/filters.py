"""
Filtering and ordering of a trade collection.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Sequence, Type, TypeVar

from tradebook.errors import InvalidQueryError
from tradebook.types import Trade

__all__ = [
    "StatusFilter",
    "SortKey",
    "FilterQuery",
    "filter_trades",
    "sort_trades",
    "filter_and_sort",
]

log = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class StatusFilter(str, Enum):
    ALL = "ALL"
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class SortKey(str, Enum):
    DATE_DESC = "DATE_DESC"
    DATE_ASC = "DATE_ASC"
    PNL_DESC = "PNL_DESC"
    PNL_ASC = "PNL_ASC"
    SYMBOL_ASC = "SYMBOL_ASC"


def _coerce(enum_cls: Type[E], value: Any, field_name: str) -> E:
    """Turns a string into a member of `enum_cls`, case-insensitively."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().upper())
        except ValueError:
            pass
    allowed = ", ".join(m.value for m in enum_cls)
    raise InvalidQueryError(f"Unknown {field_name} {value!r}; expected one of: {allowed}")


@dataclass(frozen=True)
class FilterQuery:
    """The user's current view over the journal."""

    status: StatusFilter = StatusFilter.ALL
    symbol_search: str = ""
    sort_by: SortKey = SortKey.DATE_DESC

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", _coerce(StatusFilter, self.status, "status"))
        object.__setattr__(self, "sort_by", _coerce(SortKey, self.sort_by, "sort key"))
        if not isinstance(self.symbol_search, str):
            raise InvalidQueryError(f"symbol_search must be a string, got {self.symbol_search!r}")


def _matches(trade: Trade, status: StatusFilter, needle: str) -> bool:
    if status is not StatusFilter.ALL and trade.status.value != status.value:
        return False
    return not needle or needle in trade.symbol.casefold()


def filter_trades(trades: Sequence[Trade], query: FilterQuery) -> List[Trade]:
    """
    Keeps the trades that satisfy both the status and the symbol predicates.

    The symbol search is a case-insensitive substring match; an empty search
    places no constraint. Input order is preserved.
    """
    status = _coerce(StatusFilter, query.status, "status")
    needle = query.symbol_search.casefold()
    return [t for t in trades if _matches(t, status, needle)]


def sort_trades(trades: Sequence[Trade], sort_by: SortKey) -> List[Trade]:
    """
    Orders trades by the requested key.

    Every ordering is stable: trades with equal keys keep their input order.
    For the P&L keys, trades without a P&L (open positions) always come last,
    in input order, whichever direction is requested.
    """
    sort_by = _coerce(SortKey, sort_by, "sort key")

    if sort_by is SortKey.DATE_DESC:
        # sorted() stays stable with reverse=True.
        return sorted(trades, key=lambda t: t.entry_date, reverse=True)
    if sort_by is SortKey.DATE_ASC:
        return sorted(trades, key=lambda t: t.entry_date)
    if sort_by is SortKey.SYMBOL_ASC:
        return sorted(trades, key=lambda t: t.symbol.casefold())

    with_pnl = [t for t in trades if t.pnl is not None]
    without_pnl = [t for t in trades if t.pnl is None]
    ranked = sorted(with_pnl, key=lambda t: t.pnl, reverse=sort_by is SortKey.PNL_DESC)
    return ranked + without_pnl


def filter_and_sort(trades: Sequence[Trade], query: FilterQuery) -> List[Trade]:
    """Applies the query's filters, then its ordering."""
    selected = filter_trades(trades, query)
    ordered = sort_trades(selected, query.sort_by)
    log.debug(
        f"Query {query.status.value}/{query.symbol_search!r}/{query.sort_by.value} "
        f"kept {len(ordered)} of {len(trades)} trades."
    )
    return ordered
