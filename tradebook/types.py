"""
Shared data structures for the application.

A `Trade` is the single record type every other module consumes. It is
validated once, when it is built, so the analytics code downstream can trust
its invariants instead of re-checking them.
"""
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from tradebook.errors import ValidationError

__all__ = ["Direction", "TradeStatus", "Trade", "parse_trades", "CENT"]

CENT = Decimal("0.01")

# A recorded pnl may differ from the price-derived figure by fees and
# commissions, up to this fraction of the position cost.
PNL_TOLERANCE = Decimal("0.01")
# Recorded percentages are rounded to cents.
PCT_TOLERANCE = Decimal("0.01")

# Order-side spellings used by older journal exports.
_DIRECTION_ALIASES = {"BUY": "LONG", "SELL": "SHORT"}


class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.LONG else -1


class TradeStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class Trade(BaseModel):
    """
    Represents one position in the journal, open or closed.

    A closed trade always carries `pnl` and `pnl_percentage`. When the store
    did not record them they are derived from the entry and exit fields:

        pnl = (exit_price - entry_price) * quantity * direction.sign
        pnl_percentage = pnl / (entry_price * quantity) * 100

    A recorded `pnl` is kept as the realized figure frozen at close time. It
    must agree in sign with the derived figure and stay within 1% of the cost
    of it (fees). A recorded `pnl_percentage` must match the formula above to
    within 0.01.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique identifier of the trade.")
    symbol: str = Field(..., min_length=1, description="Instrument ticker.")
    direction: Direction = Field(..., description="Directional bias of the position.")
    entry_price: Decimal = Field(..., gt=0, description="The price at which the trade was entered.")
    exit_price: Optional[Decimal] = Field(None, gt=0, description="The price at which the trade was exited.")
    quantity: Decimal = Field(..., gt=0, description="Share or contract count.")
    entry_date: date = Field(..., description="The date of trade entry.")
    exit_date: Optional[date] = Field(None, description="The date of trade exit.")
    status: TradeStatus = Field(..., description="OPEN until exit fields are supplied.")
    pnl: Optional[Decimal] = Field(None, description="Realized profit or loss.")
    pnl_percentage: Optional[Decimal] = Field(None, description="Realized P&L as a percentage of cost.")
    stop_loss: Optional[Decimal] = Field(None, gt=0, description="Protective stop, the risk basis.")
    notes: str = Field("", description="Free-form journal notes.")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Stores with integer primary keys hand us ints.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("symbol")
    @classmethod
    def _strip_symbol(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("symbol must not be blank")
        return value

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("direction", mode="before")
    @classmethod
    def _accept_order_side(cls, value: Any) -> Any:
        if isinstance(value, str):
            key = value.strip().upper()
            return _DIRECTION_ALIASES.get(key, key)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _check_lifecycle(self) -> "Trade":
        has_exit_price = self.exit_price is not None
        has_exit_date = self.exit_date is not None

        if self.status is TradeStatus.OPEN:
            if has_exit_price or has_exit_date:
                raise ValueError("OPEN trade must not carry exit_price or exit_date")
            if self.pnl is not None or self.pnl_percentage is not None:
                raise ValueError("OPEN trade must not carry pnl or pnl_percentage")
            return self

        if not (has_exit_price and has_exit_date):
            raise ValueError("CLOSED trade requires both exit_price and exit_date")

        cost = self.entry_price * self.quantity
        derived = (self.exit_price - self.entry_price) * self.quantity * self.direction.sign

        # The model is frozen; derived fields are filled in once, here.
        if self.pnl is None:
            object.__setattr__(self, "pnl", derived)
        else:
            _check_recorded_pnl(self.pnl, derived, cost)

        expected_pct = self.pnl / cost * 100
        if self.pnl_percentage is None:
            pct = expected_pct.quantize(CENT, rounding=ROUND_HALF_UP)
            object.__setattr__(self, "pnl_percentage", pct)
        elif abs(self.pnl_percentage - expected_pct) > PCT_TOLERANCE:
            raise ValueError(
                f"pnl_percentage {self.pnl_percentage} does not match "
                f"pnl / (entry_price * quantity) * 100 = {expected_pct:.4f}"
            )
        return self

    @property
    def is_closed(self) -> bool:
        return self.status is TradeStatus.CLOSED

    @property
    def risk_reward(self) -> Optional[Decimal]:
        """
        Realized reward-to-risk multiple: pnl divided by the amount at risk
        between entry and stop. None when the trade is open, has no stop, or
        the stop sits on the entry price.
        """
        if self.pnl is None or self.stop_loss is None:
            return None
        risk = abs(self.entry_price - self.stop_loss) * self.quantity
        if risk == 0:
            return None
        return self.pnl / risk

    def close(self, exit_price: Any, exit_date: date) -> "Trade":
        """Returns a new CLOSED trade; this one is left untouched."""
        if self.is_closed:
            raise ValidationError(f"Trade {self.id} is already closed")
        record = self.model_dump()
        record.update(
            exit_price=exit_price,
            exit_date=exit_date,
            status=TradeStatus.CLOSED,
            pnl=None,
            pnl_percentage=None,
        )
        return _build_trade(record, label=f"id={self.id}")


def _check_recorded_pnl(recorded: Decimal, derived: Decimal, cost: Decimal) -> None:
    if derived != 0 and recorded != 0 and (recorded > 0) != (derived > 0):
        raise ValueError(
            f"recorded pnl {recorded} has the opposite sign of the price-derived pnl {derived}"
        )
    allowed = cost * PNL_TOLERANCE
    if abs(recorded - derived) > allowed:
        raise ValueError(
            f"recorded pnl {recorded} differs from the price-derived pnl {derived} "
            f"by more than {allowed:.2f}"
        )


def _build_trade(record: Any, label: str) -> Trade:
    try:
        return Trade.model_validate(record)
    except PydanticValidationError as e:
        raise ValidationError(f"Malformed trade ({label}): {e}") from e


def parse_trades(records: Iterable[Mapping[str, Any]]) -> List[Trade]:
    """
    Validates raw trade records into `Trade` objects.

    This is the boundary where records from a store enter the engine. Any
    malformed record (e.g. CLOSED without an exit price) or a repeated id
    fails the whole batch with a `ValidationError`.
    """
    trades: List[Trade] = []
    seen: Dict[str, int] = {}
    for index, record in enumerate(records):
        record_id = record.get("id") if isinstance(record, Mapping) else None
        trade = _build_trade(record, label=f"record #{index}, id={record_id!r}")
        if trade.id in seen:
            raise ValidationError(
                f"Duplicate trade id {trade.id!r} in records #{seen[trade.id]} and #{index}"
            )
        seen[trade.id] = index
        trades.append(trade)
    return trades
