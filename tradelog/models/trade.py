"""Trade data models — typed representations of journal trade records."""

from dataclasses import asdict, dataclass, fields
from typing import Optional


DIRECTIONS = ("long", "short")
STATUSES = ("planned", "open", "closed", "canceled")
POSITION_SIZE_UNITS = ("shares", "contracts", "units", "currency")

# Allowed status moves.  A closed trade may be re-saved (edits re-derive),
# but never reopened; canceled is terminal.
STATUS_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "planned": ("planned", "open", "closed", "canceled"),
    "open": ("open", "closed", "canceled"),
    "closed": ("closed",),
    "canceled": ("canceled",),
}

# Columns only the derivation step may write.
DERIVED_FIELDS = (
    "pnl_absolute",
    "pnl_percentage",
    "risk_reward_ratio",
    "duration_minutes",
)


@dataclass(frozen=True)
class Trade:
    """A single logged trade, as stored in the ``trades`` table."""

    symbol: str
    direction: str  # "long" or "short"
    status: str = "planned"
    position_size: float = 0.0
    position_size_unit: str = "shares"
    entry_date: Optional[str] = None  # ISO-8601
    exit_date: Optional[str] = None
    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    fees: float = 0.0
    commissions: float = 0.0
    slippage: float = 0.0
    pnl_absolute: Optional[float] = None
    pnl_percentage: Optional[float] = None
    risk_reward_ratio: Optional[float] = None
    duration_minutes: Optional[int] = None
    setup_type: Optional[str] = None
    timeframe: Optional[str] = None
    market_condition: Optional[str] = None
    strategy_id: Optional[int] = None
    notes: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Trade":
        """Build a ``Trade`` from a DB row, ignoring unknown columns."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in row.items() if k in known})

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TradeMetrics:
    """Derived per-trade metrics.  ``None`` means not computable."""

    pnl_absolute: Optional[float] = None
    pnl_percentage: Optional[float] = None
    risk_reward_ratio: Optional[float] = None
    duration_minutes: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)
