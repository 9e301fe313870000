"""CLI report — prints trade statistics to the console."""

import math
from typing import Optional

from tradelog.metrics.stats import TradeStatistics


def format_currency(value: float) -> str:
    """``1234.5`` → ``$1,234.50``; negatives as ``-$50.00``."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_percentage(value: float) -> str:
    """Format a value already expressed in percent (``50`` → ``50.00%``)."""
    return f"{value:.2f}%"


def format_duration(minutes: Optional[int]) -> str:
    """``45`` → ``45m``, ``135`` → ``2h 15m``, ``1575`` → ``1d 2h 15m``."""
    if minutes is None:
        return "N/A"
    if minutes < 60:
        return f"{minutes}m"
    hours, remaining_minutes = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {remaining_minutes}m"
    days, remaining_hours = divmod(hours, 24)
    return f"{days}d {remaining_hours}h {remaining_minutes}m"


def format_profit_factor(value: float) -> str:
    if math.isinf(value):
        return "∞"
    return f"{value:.2f}"


def print_statistics(
    stats: TradeStatistics,
    title: str = "All strategies",
    average_duration: Optional[int] = None,
) -> str:
    """Format and print a statistics summary.

    Args:
        stats: Result of ``compute_trade_statistics``.
        title: Label for the header line.
        average_duration: Mean holding time in minutes, if known.

    Returns:
        The formatted string (also printed to stdout).
    """
    lines = [
        f"──────────────── TradeLog Statistics: {title} ────────────────",
        f"  Closed Trades:   {stats.total_trades}",
        f"  Winners:         {stats.winning_trades}",
        f"  Losers:          {stats.losing_trades}",
        f"  Break-even:      {stats.break_even_trades}",
        f"  Win Rate:        {format_percentage(stats.win_rate)}",
        f"  Total P&L:       {format_currency(stats.total_pnl)}",
        f"  Average P&L:     {format_currency(stats.average_pnl)}",
        f"  Average Win:     {format_currency(stats.average_win)}",
        f"  Average Loss:    {format_currency(stats.average_loss)}",
        f"  Largest Win:     {format_currency(stats.largest_win)}",
        f"  Largest Loss:    {format_currency(stats.largest_loss)}",
        f"  Avg Duration:    {format_duration(average_duration)}",
        f"  Profit Factor:   {format_profit_factor(stats.profit_factor)}",
        "──────────────────────────────────────────────────",
    ]
    output = "\n".join(lines)
    print(output)
    return output
