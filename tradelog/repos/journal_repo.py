"""Journal repository — SQLite operations for journal entries and their
trade links."""

from datetime import datetime, timezone
from typing import Optional

from tradelog.models.journal import JournalEntry
from tradelog.repos.db import get_connection


_COLUMNS = (
    "title", "content", "mood_rating", "focus_rating", "energy_rating",
    "confidence_rating", "is_public",
)


class JournalRepo:
    """Data access layer for journal entries.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    # ── Write ────────────────────────────────────────────────────────────

    def insert_entry(self, entry: JournalEntry) -> int:
        """Insert *entry* and return its new ``id``."""
        row = entry.to_dict()
        row["is_public"] = int(row["is_public"])
        placeholders = ", ".join("?" for _ in _COLUMNS)
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                f"INSERT INTO journal_entries ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                tuple(row[c] for c in _COLUMNS),
            )
            conn.commit()
            return cur.lastrowid
        finally:
            conn.close()

    def update_entry(self, entry_id: int, updates: dict) -> bool:
        """Apply a partial update.  Unknown keys raise ``ValueError``."""
        unknown = set(updates) - set(_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown journal field(s): {', '.join(sorted(unknown))}")
        if not updates:
            return self.get_entry(entry_id) is not None

        columns = list(updates)
        values = [
            int(updates[c]) if c == "is_public" else updates[c] for c in columns
        ]
        assignments = ", ".join(f"{c} = ?" for c in columns)
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                f"UPDATE journal_entries SET {assignments}, updated_at = ? WHERE id = ?",
                (*values, datetime.now(timezone.utc).isoformat(), entry_id),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def delete_entry(self, entry_id: int) -> bool:
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                "DELETE FROM journal_entries WHERE id = ?", (entry_id,)
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def link_trade(self, entry_id: int, trade_id: int) -> bool:
        """Attach a trade to an entry.

        Returns ``False`` if the link already existed.  Missing entry or
        trade ids raise ``sqlite3.IntegrityError``.
        """
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                "INSERT OR IGNORE INTO journal_entry_trades (entry_id, trade_id) "
                "VALUES (?, ?)",
                (entry_id, trade_id),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_entry(self, entry_id: int) -> Optional[JournalEntry]:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT * FROM journal_entries WHERE id = ?", (entry_id,)
            ).fetchone()
            return JournalEntry.from_row(dict(row)) if row else None
        finally:
            conn.close()

    def get_entries(self, limit: int = 50) -> list[JournalEntry]:
        """Return entries, newest first."""
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                "SELECT * FROM journal_entries "
                "ORDER BY created_at DESC, id DESC LIMIT ?",
                (limit,),
            ).fetchall()
            return [JournalEntry.from_row(dict(row)) for row in rows]
        finally:
            conn.close()

    def get_trade_ids(self, entry_id: int) -> list[int]:
        """Return the ids of trades linked to *entry_id*."""
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                "SELECT trade_id FROM journal_entry_trades "
                "WHERE entry_id = ? ORDER BY trade_id",
                (entry_id,),
            ).fetchall()
            return [row["trade_id"] for row in rows]
        finally:
            conn.close()
