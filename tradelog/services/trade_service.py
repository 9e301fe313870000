"""Trade service — lifecycle rules and the derivation contract.

Every trade write goes through here.  Input is validated, the status
transition is checked, and the derived columns are recomputed from the
raw fields before the row is persisted.  Nothing else writes
``pnl_absolute``, ``pnl_percentage``, ``risk_reward_ratio`` or
``duration_minutes``.
"""

import logging
import math
from dataclasses import fields, replace
from datetime import datetime, timezone
from typing import Optional

from tradelog.metrics.derivation import derive_trade_metrics, parse_timestamp
from tradelog.metrics.stats import (
    TradeStatistics,
    compute_strategy_performance,
    compute_trade_statistics,
)
from tradelog.models.trade import (
    DERIVED_FIELDS,
    DIRECTIONS,
    POSITION_SIZE_UNITS,
    STATUS_TRANSITIONS,
    STATUSES,
    Trade,
)

logger = logging.getLogger("tradelog")

_READ_ONLY_FIELDS = ("id", "created_at", "updated_at", *DERIVED_FIELDS)
_WRITABLE_FIELDS = tuple(
    f.name for f in fields(Trade) if f.name not in _READ_ONLY_FIELDS
)

# Bound on prices, sizes and costs; keeps P&L and its sums finite.
MAX_AMOUNT = 1e12
_AMOUNT_FIELDS = (
    "entry_price", "exit_price", "stop_loss", "take_profit",
    "position_size", "fees", "commissions", "slippage",
)


def check_transition(current: str, new: str) -> None:
    """Raise ``ValueError`` if *current* → *new* is not a legal move."""
    if new not in STATUSES:
        raise ValueError(f"status must be one of {', '.join(STATUSES)}, got '{new}'")
    if new not in STATUS_TRANSITIONS[current]:
        raise ValueError(f"Cannot move trade from '{current}' to '{new}'")


def validate_trade(trade: Trade) -> None:
    """Reject records the metrics engine must never see.

    Raises ``ValueError`` naming the offending field.
    """
    if not trade.symbol or not trade.symbol.strip():
        raise ValueError("symbol is required")
    if trade.direction not in DIRECTIONS:
        raise ValueError(f"direction must be 'long' or 'short', got '{trade.direction}'")
    if trade.status not in STATUSES:
        raise ValueError(f"status must be one of {', '.join(STATUSES)}, got '{trade.status}'")
    if trade.position_size_unit not in POSITION_SIZE_UNITS:
        raise ValueError(
            f"position_size_unit must be one of {', '.join(POSITION_SIZE_UNITS)}, "
            f"got '{trade.position_size_unit}'"
        )
    for name in _AMOUNT_FIELDS:
        value = getattr(trade, name)
        if value is not None and not (
            math.isfinite(value) and abs(value) <= MAX_AMOUNT
        ):
            raise ValueError(f"{name} must be a finite number up to {MAX_AMOUNT:g}, got {value}")
    if trade.position_size is None or trade.position_size <= 0:
        raise ValueError(f"position_size must be positive, got {trade.position_size}")
    for name in ("fees", "commissions", "slippage"):
        value = getattr(trade, name)
        if value is None or value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")
    for name in ("entry_price", "exit_price"):
        value = getattr(trade, name)
        if value is not None and value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")
    if trade.entry_date and trade.exit_date:
        if parse_timestamp(trade.exit_date) < parse_timestamp(trade.entry_date):
            raise ValueError("exit_date must not be before entry_date")


def normalise_dates(trade: Trade) -> Trade:
    """Return *trade* with its dates rewritten as UTC ISO-8601.

    Stored dates then sort chronologically as plain text.
    """
    updates = {}
    for name in ("entry_date", "exit_date"):
        value = getattr(trade, name)
        if not value:
            continue
        try:
            parsed = parse_timestamp(value)
        except ValueError:
            raise ValueError(f"{name} must be an ISO-8601 timestamp, got '{value}'") from None
        updates[name] = parsed.astimezone(timezone.utc).isoformat()
    return replace(trade, **updates)


def apply_derivation(trade: Trade) -> Trade:
    """Return *trade* with its derived columns recomputed.

    P&L is kept only for closed trades; any other status clears it.
    """
    metrics = derive_trade_metrics(trade)
    closed = trade.status == "closed"
    return replace(
        trade,
        pnl_absolute=metrics.pnl_absolute if closed else None,
        pnl_percentage=metrics.pnl_percentage if closed else None,
        risk_reward_ratio=metrics.risk_reward_ratio,
        duration_minutes=metrics.duration_minutes,
    )


def _check_writable(data: dict) -> None:
    blocked = sorted(k for k in data if k in _READ_ONLY_FIELDS)
    if blocked:
        raise ValueError(f"Read-only field(s) cannot be set: {', '.join(blocked)}")
    unknown = sorted(k for k in data if k not in _WRITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown trade field(s): {', '.join(unknown)}")


class TradeService:
    """Lifecycle-aware trade operations on top of a ``TradeRepo``.

    Args:
        trade_repo: A ``TradeRepo`` instance (or duck-type for tests).
    """

    def __init__(self, trade_repo) -> None:
        self._repo = trade_repo

    # ── Lifecycle ────────────────────────────────────────────────────────

    def create_trade(self, data: dict) -> Trade:
        """Validate, derive, and persist a new trade."""
        _check_writable(data)
        missing = [k for k in ("symbol", "direction") if k not in data]
        if missing:
            raise ValueError(f"Missing required trade field(s): {', '.join(missing)}")
        trade = normalise_dates(Trade(**data))
        validate_trade(trade)
        trade = apply_derivation(trade)
        trade_id = self._repo.insert_trade(trade)
        logger.info(
            "Trade %d created: %s %s (%s)",
            trade_id, trade.direction, trade.symbol, trade.status,
        )
        return self._repo.get_trade(trade_id)

    def update_trade(self, trade_id: int, updates: dict) -> Optional[Trade]:
        """Apply a partial update and re-derive.

        Returns the stored trade, or ``None`` if *trade_id* does not exist.
        """
        _check_writable(updates)
        current = self._repo.get_trade(trade_id)
        if current is None:
            return None
        if "status" in updates:
            check_transition(current.status, updates["status"])

        trade = replace(current, **updates)
        trade = normalise_dates(trade)
        validate_trade(trade)
        trade = apply_derivation(trade)
        self._repo.update_trade(trade_id, trade)
        if trade.status != current.status:
            logger.info(
                "Trade %d moved %s -> %s", trade_id, current.status, trade.status,
            )
        return self._repo.get_trade(trade_id)

    def open_trade(
        self,
        trade_id: int,
        entry_price: Optional[float] = None,
        entry_date: Optional[str] = None,
    ) -> Optional[Trade]:
        """Commit the entry of a planned trade."""
        updates: dict = {"status": "open"}
        if entry_price is not None:
            updates["entry_price"] = entry_price
        if entry_date is not None:
            updates["entry_date"] = entry_date
        else:
            current = self._repo.get_trade(trade_id)
            if current is not None and not current.entry_date:
                updates["entry_date"] = _utc_now()
        return self.update_trade(trade_id, updates)

    def close_trade(
        self,
        trade_id: int,
        exit_price: float,
        exit_date: Optional[str] = None,
    ) -> Optional[Trade]:
        """Commit the exit of a trade, which triggers P&L derivation.

        A trade is closed once; later corrections go through
        ``update_trade``.
        """
        current = self._repo.get_trade(trade_id)
        if current is None:
            return None
        if current.status == "closed":
            raise ValueError(f"Trade {trade_id} is already closed")
        return self.update_trade(
            trade_id,
            {"status": "closed", "exit_price": exit_price,
             "exit_date": exit_date or _utc_now()},
        )

    def cancel_trade(self, trade_id: int) -> Optional[Trade]:
        return self.update_trade(trade_id, {"status": "canceled"})

    def delete_trade(self, trade_id: int) -> bool:
        deleted = self._repo.delete_trade(trade_id)
        if deleted:
            logger.info("Trade %d deleted", trade_id)
        return deleted

    # ── Read ─────────────────────────────────────────────────────────────

    def get_trade(self, trade_id: int) -> Optional[Trade]:
        return self._repo.get_trade(trade_id)

    def get_trades_by_ids(self, trade_ids: list[int]) -> list[Trade]:
        return self._repo.get_trades_by_ids(trade_ids)

    def list_trades(
        self,
        limit: Optional[int] = 20,
        status: Optional[str] = None,
        symbol: Optional[str] = None,
        strategy_id: Optional[int] = None,
    ) -> dict:
        if status is not None and status not in STATUSES:
            raise ValueError(f"status must be one of {', '.join(STATUSES)}, got '{status}'")
        return self._repo.get_trades(
            limit=limit, status_filter=status, symbol=symbol,
            strategy_id=strategy_id,
        )

    def get_statistics(self, strategy_id: Optional[int] = None) -> TradeStatistics:
        """Summary statistics over all closed trades (optionally one strategy)."""
        closed = self._repo.get_trades(
            limit=None, status_filter="closed", strategy_id=strategy_id,
        )["trades"]
        return compute_trade_statistics(closed)

    def get_strategy_performance(self, strategy_id: int) -> dict:
        closed = self._repo.get_trades(
            limit=None, status_filter="closed", strategy_id=strategy_id,
        )["trades"]
        return compute_strategy_performance(strategy_id, closed)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
