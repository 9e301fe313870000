"""Trade statistics — pure functions over a collection of closed trades."""

import math
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from tradelog.models.trade import Trade


@dataclass(frozen=True)
class TradeStatistics:
    """Summary statistics for a set of closed trades.

    ``profit_factor`` is ``math.inf`` when there are winners and no
    losers, and ``1.0`` when there are neither.
    """

    total_trades: int
    winning_trades: int
    losing_trades: int
    break_even_trades: int
    win_rate: float  # percentage, 0–100
    total_pnl: float
    average_pnl: float
    average_win: float
    average_loss: float  # negative or zero
    largest_win: float
    largest_loss: float  # most negative or zero
    profit_factor: float

    @property
    def profit_factor_infinite(self) -> bool:
        return math.isinf(self.profit_factor)

    def to_dict(self) -> dict:
        """JSON-safe dict.  An infinite profit factor is rendered as
        ``None`` with ``profit_factor_infinite`` set."""
        data = asdict(self)
        data["profit_factor_infinite"] = self.profit_factor_infinite
        if self.profit_factor_infinite:
            data["profit_factor"] = None
        return data


def compute_trade_statistics(trades: Iterable[Trade]) -> TradeStatistics:
    """Compute summary statistics from a collection of trades.

    Only ``closed`` trades with a derived ``pnl_absolute`` are counted;
    a closed trade without P&L is not-yet-computable, not break-even.

    The result does not depend on input order: sums go through
    ``math.fsum`` and extremes through ``max``/``min``.
    """
    pnls = [
        t.pnl_absolute for t in trades
        if t.status == "closed" and t.pnl_absolute is not None
    ]
    total = len(pnls)
    winners = [p for p in pnls if p > 0]
    losers = [p for p in pnls if p < 0]

    winning = len(winners)
    losing = len(losers)
    break_even = total - winning - losing

    win_rate = (winning / total) * 100.0 if total > 0 else 0.0
    total_pnl = math.fsum(pnls)
    average_pnl = total_pnl / total if total > 0 else 0.0

    average_win = math.fsum(winners) / winning if winning else 0.0
    average_loss = math.fsum(losers) / losing if losing else 0.0
    largest_win = max(winners) if winners else 0.0
    largest_loss = min(losers) if losers else 0.0

    return TradeStatistics(
        total_trades=total,
        winning_trades=winning,
        losing_trades=losing,
        break_even_trades=break_even,
        win_rate=win_rate,
        total_pnl=total_pnl,
        average_pnl=average_pnl,
        average_win=average_win,
        average_loss=average_loss,
        largest_win=largest_win,
        largest_loss=largest_loss,
        profit_factor=_profit_factor(average_win, average_loss, winning),
    )


def compute_strategy_performance(
    strategy_id: int,
    trades: Iterable[Trade],
) -> dict:
    """Statistics for the closed trades attributed to *strategy_id*."""
    own = [t for t in trades if t.strategy_id == strategy_id]
    return {"strategy_id": strategy_id, **compute_trade_statistics(own).to_dict()}


def average_duration_minutes(trades: Iterable[Trade]) -> Optional[int]:
    """Mean holding time of closed trades, rounded half-up to minutes.

    ``None`` when no closed trade has a duration.
    """
    durations = [
        t.duration_minutes for t in trades
        if t.status == "closed" and t.duration_minutes is not None
    ]
    if not durations:
        return None
    return math.floor(math.fsum(durations) / len(durations) + 0.5)


# ── Helpers ──────────────────────────────────────────────────────────────


def _profit_factor(
    average_win: float,
    average_loss: float,
    winning: int,
) -> float:
    """Average win magnitude over average loss magnitude.

    No losers: ``inf`` if there are winners, else ``1.0`` (neutral).
    """
    if average_loss != 0:
        return abs(average_win) / abs(average_loss)
    if winning > 0:
        return math.inf
    return 1.0
