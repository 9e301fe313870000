"""Per-trade metric derivation — pure math, no I/O.

Turns raw trade fields into P&L, percentage return, risk/reward ratio,
holding duration, and return on risk.  A metric whose inputs are missing
(or whose result is mathematically undefined) is returned as ``None``;
zero is a legitimate value and is never used as a stand-in.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from tradelog.models.trade import DIRECTIONS, Trade, TradeMetrics


@dataclass(frozen=True)
class PnL:
    """Net profit and loss for a trade with both prices known."""
    pnl_absolute: float
    pnl_percentage: Optional[float]  # None when entry price is zero or tiny


@dataclass(frozen=True)
class RiskReward:
    """Distances from entry to stop and target, in the trade direction."""
    risk: float
    reward: float
    ratio: Optional[float]  # None when risk <= 0


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def _check_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be 'long' or 'short', got '{direction}'")


def calculate_pnl(
    direction: str,
    entry_price: Optional[float],
    exit_price: Optional[float],
    position_size: float,
    fees: float = 0.0,
    commissions: float = 0.0,
    slippage: float = 0.0,
) -> Optional[PnL]:
    """Calculate net P&L after costs.

    Args:
        direction: ``"long"`` or ``"short"``.
        entry_price: Fill price on entry.
        exit_price: Fill price on exit.
        position_size: Size in any unit (shares, contracts, ...).
        fees: Exchange/broker fees.
        commissions: Commissions paid.
        slippage: Slippage cost.

    Returns:
        ``PnL`` with absolute P&L and percentage return on the entry price.
        ``None`` if either price is missing or the P&L overflows.
    """
    _check_direction(direction)
    if entry_price is None or exit_price is None:
        return None

    if direction == "long":
        price_delta = exit_price - entry_price
    else:
        price_delta = entry_price - exit_price

    costs = (fees or 0.0) + (commissions or 0.0) + (slippage or 0.0)
    pnl_absolute = price_delta * position_size - costs
    if not math.isfinite(pnl_absolute):
        return None

    pnl_percentage: Optional[float] = None
    if entry_price != 0:
        pnl_percentage = _finite_or_none((price_delta / entry_price) * 100.0)

    return PnL(pnl_absolute=pnl_absolute, pnl_percentage=pnl_percentage)


def calculate_risk_reward(
    direction: str,
    entry_price: Optional[float],
    stop_loss: Optional[float],
    take_profit: Optional[float],
) -> Optional[RiskReward]:
    """Calculate risk, reward and their ratio from the planned levels.

    Risk is the distance from entry to stop in the loss direction.  A
    non-positive risk means the stop sits on the wrong side of entry; the
    ratio is then ``None`` and the caller decides how to render it.

    Returns:
        ``RiskReward``, or ``None`` if any of the three prices is missing.
    """
    _check_direction(direction)
    if entry_price is None or stop_loss is None or take_profit is None:
        return None

    if direction == "long":
        risk = entry_price - stop_loss
        reward = take_profit - entry_price
    else:
        risk = stop_loss - entry_price
        reward = entry_price - take_profit

    ratio = _finite_or_none(reward / risk) if risk > 0 else None
    return RiskReward(risk=risk, reward=reward, ratio=ratio)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp.  Naive values are taken as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def calculate_duration_minutes(
    entry_date: Optional[str],
    exit_date: Optional[str],
) -> Optional[int]:
    """Holding time in whole minutes, rounded half-up.

    Raises ``ValueError`` when the exit precedes the entry.  Returns
    ``None`` if either date is missing.
    """
    if not entry_date or not exit_date:
        return None
    delta = parse_timestamp(exit_date) - parse_timestamp(entry_date)
    seconds = delta.total_seconds()
    if seconds < 0:
        raise ValueError(
            f"exit_date {exit_date} is before entry_date {entry_date}"
        )
    return math.floor(seconds / 60.0 + 0.5)


def calculate_return_on_risk(
    pnl_percentage: Optional[float],
    risk_reward_ratio: Optional[float],
) -> Optional[float]:
    """Percentage return scaled by the planned risk/reward ratio.

    ``pnl_percentage / (risk_reward_ratio * 100)``; ``None`` when either
    input is missing or the ratio is zero.
    """
    if pnl_percentage is None or risk_reward_ratio is None:
        return None
    if risk_reward_ratio == 0:
        return None
    return _finite_or_none(pnl_percentage / (risk_reward_ratio * 100.0))


def derive_trade_metrics(trade: Trade) -> TradeMetrics:
    """Compute every derivable metric for *trade*.

    Status is not consulted here; the trade service decides which
    derived fields are persisted for which lifecycle state.
    """
    pnl = calculate_pnl(
        direction=trade.direction,
        entry_price=trade.entry_price,
        exit_price=trade.exit_price,
        position_size=trade.position_size,
        fees=trade.fees,
        commissions=trade.commissions,
        slippage=trade.slippage,
    )
    rr = calculate_risk_reward(
        direction=trade.direction,
        entry_price=trade.entry_price,
        stop_loss=trade.stop_loss,
        take_profit=trade.take_profit,
    )
    return TradeMetrics(
        pnl_absolute=pnl.pnl_absolute if pnl else None,
        pnl_percentage=pnl.pnl_percentage if pnl else None,
        risk_reward_ratio=rr.ratio if rr else None,
        duration_minutes=calculate_duration_minutes(
            trade.entry_date, trade.exit_date,
        ),
    )
