"""Trade repository — SQLite CRUD for the trades table."""

from datetime import datetime, timezone
from typing import Optional

from tradelog.models.trade import Trade
from tradelog.repos.db import get_connection


# Every column except the ones SQLite manages.
_COLUMNS = (
    "symbol", "direction", "status", "entry_date", "exit_date",
    "entry_price", "exit_price", "stop_loss", "take_profit",
    "position_size", "position_size_unit", "fees", "commissions",
    "slippage", "pnl_absolute", "pnl_percentage", "risk_reward_ratio",
    "duration_minutes", "setup_type", "timeframe", "market_condition",
    "strategy_id", "notes",
)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TradeRepo:
    """Data access layer for trade records.

    Writes go through ``TradeService`` so derived columns stay consistent;
    the repo itself stores whatever it is given.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    # ── Write ────────────────────────────────────────────────────────────

    def insert_trade(self, trade: Trade) -> int:
        """Insert *trade* and return its new ``id``."""
        row = trade.to_dict()
        placeholders = ", ".join("?" for _ in _COLUMNS)
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                f"INSERT INTO trades ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                tuple(row[c] for c in _COLUMNS),
            )
            conn.commit()
            return cur.lastrowid
        finally:
            conn.close()

    def update_trade(self, trade_id: int, trade: Trade) -> bool:
        """Overwrite every writable column of *trade_id*.

        Returns ``True`` if a row was updated.
        """
        row = trade.to_dict()
        assignments = ", ".join(f"{c} = ?" for c in _COLUMNS)
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                f"UPDATE trades SET {assignments}, updated_at = ? WHERE id = ?",
                (*(row[c] for c in _COLUMNS), _utc_now(), trade_id),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def delete_trade(self, trade_id: int) -> bool:
        """Delete a trade.  Returns ``True`` if a row was removed."""
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute("DELETE FROM trades WHERE id = ?", (trade_id,))
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_trade(self, trade_id: int) -> Optional[Trade]:
        """Return a single trade, or ``None``."""
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT * FROM trades WHERE id = ?", (trade_id,)
            ).fetchone()
            return Trade.from_row(dict(row)) if row else None
        finally:
            conn.close()

    def get_trades(
        self,
        limit: Optional[int] = 20,
        status_filter: Optional[str] = None,
        symbol: Optional[str] = None,
        strategy_id: Optional[int] = None,
    ) -> dict:
        """Return trades, newest entry first.

        Args:
            limit: Maximum rows returned; ``None`` for no limit.
            status_filter: Only trades in this lifecycle status.
            symbol: Only trades on this symbol.
            strategy_id: Only trades attributed to this strategy.

        Returns:
            ``{"trades": [Trade, ...], "total": int}`` where ``total`` is
            the unlimited count for the same filters.
        """
        conn = get_connection(self._db_path)
        try:
            conditions: list[str] = []
            params: list = []

            if status_filter:
                conditions.append("status = ?")
                params.append(status_filter)
            if symbol:
                conditions.append("symbol = ?")
                params.append(symbol)
            if strategy_id is not None:
                conditions.append("strategy_id = ?")
                params.append(strategy_id)

            where_clause = ""
            if conditions:
                where_clause = "WHERE " + " AND ".join(conditions)

            rows = conn.execute(
                f"SELECT * FROM trades {where_clause} "
                "ORDER BY entry_date IS NULL, entry_date DESC, id DESC LIMIT ?",
                (*params, -1 if limit is None else limit),
            ).fetchall()
            total = conn.execute(
                f"SELECT COUNT(*) FROM trades {where_clause}",
                params,
            ).fetchone()[0]

            trades = [Trade.from_row(dict(row)) for row in rows]
            return {"trades": trades, "total": total}
        finally:
            conn.close()

    def get_trades_by_ids(self, trade_ids: list[int]) -> list[Trade]:
        """Return the trades whose ids are in *trade_ids* (order by id)."""
        if not trade_ids:
            return []
        placeholders = ", ".join("?" for _ in trade_ids)
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                f"SELECT * FROM trades WHERE id IN ({placeholders}) ORDER BY id",
                tuple(trade_ids),
            ).fetchall()
            return [Trade.from_row(dict(row)) for row in rows]
        finally:
            conn.close()
