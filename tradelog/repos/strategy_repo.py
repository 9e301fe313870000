"""Strategy repository — SQLite CRUD for the strategies table."""

import json
from datetime import datetime, timezone
from typing import Optional

from tradelog.models.journal import Strategy
from tradelog.repos.db import get_connection


_COLUMNS = (
    "name", "description", "category", "market_condition", "timeframes",
    "asset_classes", "risk_reward_min", "win_rate_expected",
    "position_size_percentage", "max_risk_percentage", "is_active",
    "is_public",
)
_JSON_COLUMNS = ("timeframes", "asset_classes")


def _to_db(column: str, value):
    if column in _JSON_COLUMNS:
        return json.dumps(list(value or []))
    if isinstance(value, bool):
        return int(value)
    return value


class StrategyRepo:
    """Data access layer for strategies.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    # ── Write ────────────────────────────────────────────────────────────

    def insert_strategy(self, strategy: Strategy) -> int:
        """Insert *strategy* and return its new ``id``."""
        row = strategy.to_dict()
        placeholders = ", ".join("?" for _ in _COLUMNS)
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                f"INSERT INTO strategies ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                tuple(_to_db(c, row[c]) for c in _COLUMNS),
            )
            conn.commit()
            return cur.lastrowid
        finally:
            conn.close()

    def update_strategy(self, strategy_id: int, updates: dict) -> bool:
        """Apply a partial update.  Unknown keys raise ``ValueError``."""
        unknown = set(updates) - set(_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown strategy field(s): {', '.join(sorted(unknown))}")
        if not updates:
            return self.get_strategy(strategy_id) is not None

        columns = list(updates)
        assignments = ", ".join(f"{c} = ?" for c in columns)
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                f"UPDATE strategies SET {assignments}, updated_at = ? WHERE id = ?",
                (
                    *(_to_db(c, updates[c]) for c in columns),
                    datetime.now(timezone.utc).isoformat(),
                    strategy_id,
                ),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def delete_strategy(self, strategy_id: int) -> bool:
        """Delete a strategy; its trades keep existing with no strategy."""
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                "DELETE FROM strategies WHERE id = ?", (strategy_id,)
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_strategy(self, strategy_id: int) -> Optional[Strategy]:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT * FROM strategies WHERE id = ?", (strategy_id,)
            ).fetchone()
            return Strategy.from_row(dict(row)) if row else None
        finally:
            conn.close()

    def get_strategies(self, active_only: bool = False) -> list[Strategy]:
        """Return strategies ordered by name."""
        where_clause = "WHERE is_active = 1" if active_only else ""
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                f"SELECT * FROM strategies {where_clause} ORDER BY name, id"
            ).fetchall()
            return [Strategy.from_row(dict(row)) for row in rows]
        finally:
            conn.close()
