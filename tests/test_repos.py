"""Tests for the SQLite repositories and schema setup."""

import sqlite3

import pytest

from tradelog.models.journal import JournalEntry, Strategy
from tradelog.models.trade import Trade
from tradelog.repos.db import get_connection, init_db
from tradelog.repos.journal_repo import JournalRepo
from tradelog.repos.strategy_repo import StrategyRepo
from tradelog.repos.trade_repo import TradeRepo


# ── Helpers ──────────────────────────────────────────────────────────────


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "test.db")
    init_db(path)
    return path


def _trade(**overrides) -> Trade:
    data = dict(
        symbol="AAPL", direction="long", status="planned", position_size=100,
        entry_price=175.23, stop_loss=170.0, take_profit=190.0,
        entry_date="2025-01-02T14:30:00+00:00",
    )
    data.update(overrides)
    return Trade(**data)


# ── Schema ───────────────────────────────────────────────────────────────


class TestInitDb:

    def test_creates_tables(self, db_path):
        conn = get_connection(db_path)
        try:
            names = {
                row["name"] for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table'"
                ).fetchall()
            }
        finally:
            conn.close()
        assert {"trades", "strategies", "journal_entries",
                "journal_entry_trades"} <= names

    def test_init_is_idempotent(self, db_path):
        init_db(db_path)
        init_db(db_path)

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "trades.db"
        init_db(str(path))
        assert path.exists()

    def test_rejects_unknown_direction(self, db_path):
        repo = TradeRepo(db_path)
        with pytest.raises(sqlite3.IntegrityError):
            repo.insert_trade(_trade(direction="sideways"))


# ── Trades ───────────────────────────────────────────────────────────────


class TestTradeRepo:

    def test_insert_and_get(self, db_path):
        repo = TradeRepo(db_path)
        trade_id = repo.insert_trade(_trade())
        assert trade_id >= 1
        stored = repo.get_trade(trade_id)
        assert stored.id == trade_id
        assert stored.symbol == "AAPL"
        assert stored.entry_price == 175.23
        assert stored.fees == 0.0
        assert stored.created_at is not None

    def test_get_missing_returns_none(self, db_path):
        assert TradeRepo(db_path).get_trade(999) is None

    def test_update_trade(self, db_path):
        repo = TradeRepo(db_path)
        trade_id = repo.insert_trade(_trade())
        before = repo.get_trade(trade_id)
        updated = _trade(status="open", notes="filled at open")
        assert repo.update_trade(trade_id, updated) is True
        stored = repo.get_trade(trade_id)
        assert stored.status == "open"
        assert stored.notes == "filled at open"
        assert stored.updated_at != before.updated_at

    def test_update_missing_returns_false(self, db_path):
        assert TradeRepo(db_path).update_trade(42, _trade()) is False

    def test_delete_trade(self, db_path):
        repo = TradeRepo(db_path)
        trade_id = repo.insert_trade(_trade())
        assert repo.delete_trade(trade_id) is True
        assert repo.get_trade(trade_id) is None
        assert repo.delete_trade(trade_id) is False

    def test_get_trades_filters(self, db_path):
        repo = TradeRepo(db_path)
        repo.insert_trade(_trade(symbol="AAPL", status="closed"))
        repo.insert_trade(_trade(symbol="MSFT", status="closed"))
        repo.insert_trade(_trade(symbol="AAPL", status="open"))

        closed = repo.get_trades(status_filter="closed")
        assert closed["total"] == 2
        assert {t.symbol for t in closed["trades"]} == {"AAPL", "MSFT"}

        aapl = repo.get_trades(symbol="AAPL")
        assert aapl["total"] == 2

        both = repo.get_trades(symbol="AAPL", status_filter="open")
        assert both["total"] == 1
        assert both["trades"][0].status == "open"

    def test_get_trades_limit_and_total(self, db_path):
        repo = TradeRepo(db_path)
        for _ in range(5):
            repo.insert_trade(_trade())
        result = repo.get_trades(limit=2)
        assert len(result["trades"]) == 2
        assert result["total"] == 5
        assert len(repo.get_trades(limit=None)["trades"]) == 5

    def test_get_trades_newest_entry_first(self, db_path):
        repo = TradeRepo(db_path)
        repo.insert_trade(_trade(symbol="OLD", entry_date="2025-01-01T00:00:00+00:00"))
        repo.insert_trade(_trade(symbol="NONE", entry_date=None))
        repo.insert_trade(_trade(symbol="NEW", entry_date="2025-02-01T00:00:00+00:00"))
        symbols = [t.symbol for t in repo.get_trades()["trades"]]
        assert symbols == ["NEW", "OLD", "NONE"]

    def test_get_trades_by_strategy(self, db_path):
        strategy_id = StrategyRepo(db_path).insert_strategy(Strategy(name="Breakout"))
        repo = TradeRepo(db_path)
        repo.insert_trade(_trade(strategy_id=strategy_id))
        repo.insert_trade(_trade())
        result = repo.get_trades(strategy_id=strategy_id)
        assert result["total"] == 1
        assert result["trades"][0].strategy_id == strategy_id

    def test_get_trades_by_ids(self, db_path):
        repo = TradeRepo(db_path)
        ids = [repo.insert_trade(_trade()) for _ in range(3)]
        found = repo.get_trades_by_ids([ids[2], ids[0]])
        assert [t.id for t in found] == [ids[0], ids[2]]
        assert repo.get_trades_by_ids([]) == []

    def test_unknown_strategy_rejected(self, db_path):
        with pytest.raises(sqlite3.IntegrityError):
            TradeRepo(db_path).insert_trade(_trade(strategy_id=12345))


# ── Strategies ───────────────────────────────────────────────────────────


class TestStrategyRepo:

    def test_insert_and_get_round_trips_lists(self, db_path):
        repo = StrategyRepo(db_path)
        strategy_id = repo.insert_strategy(Strategy(
            name="Opening Range Breakout",
            timeframes=["5m", "15m"],
            asset_classes=["stocks"],
            risk_reward_min=2.0,
        ))
        stored = repo.get_strategy(strategy_id)
        assert stored.timeframes == ["5m", "15m"]
        assert stored.asset_classes == ["stocks"]
        assert stored.is_active is True
        assert stored.is_public is False

    def test_get_strategies_sorted_and_active_filter(self, db_path):
        repo = StrategyRepo(db_path)
        repo.insert_strategy(Strategy(name="Zeta"))
        repo.insert_strategy(Strategy(name="Alpha"))
        repo.insert_strategy(Strategy(name="Mid", is_active=False))
        assert [s.name for s in repo.get_strategies()] == ["Alpha", "Mid", "Zeta"]
        assert [s.name for s in repo.get_strategies(active_only=True)] == ["Alpha", "Zeta"]

    def test_partial_update(self, db_path):
        repo = StrategyRepo(db_path)
        strategy_id = repo.insert_strategy(Strategy(name="Swing"))
        assert repo.update_strategy(
            strategy_id, {"is_active": False, "timeframes": ["1d"]},
        ) is True
        stored = repo.get_strategy(strategy_id)
        assert stored.is_active is False
        assert stored.timeframes == ["1d"]
        assert stored.name == "Swing"

    def test_update_unknown_field_raises(self, db_path):
        repo = StrategyRepo(db_path)
        strategy_id = repo.insert_strategy(Strategy(name="Swing"))
        with pytest.raises(ValueError, match="Unknown strategy field"):
            repo.update_strategy(strategy_id, {"owner": "me"})

    def test_update_missing_returns_false(self, db_path):
        assert StrategyRepo(db_path).update_strategy(7, {"name": "x"}) is False

    def test_delete_detaches_trades(self, db_path):
        strategies = StrategyRepo(db_path)
        trades = TradeRepo(db_path)
        strategy_id = strategies.insert_strategy(Strategy(name="Scalp"))
        trade_id = trades.insert_trade(_trade(strategy_id=strategy_id))
        assert strategies.delete_strategy(strategy_id) is True
        assert trades.get_trade(trade_id).strategy_id is None


# ── Journal ──────────────────────────────────────────────────────────────


class TestJournalRepo:

    def test_insert_and_get(self, db_path):
        repo = JournalRepo(db_path)
        entry_id = repo.insert_entry(JournalEntry(
            title="Monday review", content="Chased the open.", mood_rating=4,
        ))
        stored = repo.get_entry(entry_id)
        assert stored.title == "Monday review"
        assert stored.mood_rating == 4
        assert stored.is_public is False

    def test_entries_newest_first(self, db_path):
        repo = JournalRepo(db_path)
        first = repo.insert_entry(JournalEntry(title="first"))
        second = repo.insert_entry(JournalEntry(title="second"))
        assert [e.id for e in repo.get_entries()] == [second, first]

    def test_update_and_delete(self, db_path):
        repo = JournalRepo(db_path)
        entry_id = repo.insert_entry(JournalEntry(title="draft"))
        assert repo.update_entry(entry_id, {"title": "final", "is_public": True})
        stored = repo.get_entry(entry_id)
        assert stored.title == "final"
        assert stored.is_public is True
        assert repo.delete_entry(entry_id) is True
        assert repo.get_entry(entry_id) is None

    def test_link_trades(self, db_path):
        journal = JournalRepo(db_path)
        trades = TradeRepo(db_path)
        entry_id = journal.insert_entry(JournalEntry(title="Linked"))
        t1 = trades.insert_trade(_trade())
        t2 = trades.insert_trade(_trade())
        assert journal.link_trade(entry_id, t2) is True
        assert journal.link_trade(entry_id, t1) is True
        assert journal.link_trade(entry_id, t1) is False
        assert journal.get_trade_ids(entry_id) == [t1, t2]

    def test_deleting_trade_removes_link(self, db_path):
        journal = JournalRepo(db_path)
        trades = TradeRepo(db_path)
        entry_id = journal.insert_entry(JournalEntry(title="Linked"))
        trade_id = trades.insert_trade(_trade())
        journal.link_trade(entry_id, trade_id)
        trades.delete_trade(trade_id)
        assert journal.get_trade_ids(entry_id) == []

    def test_link_missing_trade_raises(self, db_path):
        journal = JournalRepo(db_path)
        entry_id = journal.insert_entry(JournalEntry(title="Linked"))
        with pytest.raises(sqlite3.IntegrityError):
            journal.link_trade(entry_id, 404)
