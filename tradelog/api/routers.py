"""Internal API routers — /trades, /strategies, /journal endpoints.

No business logic, no DB access. Delegates to the trade service and repos.
"""

import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from tradelog.api.schemas import (
    JournalEntryCreate,
    JournalEntryUpdate,
    StrategyCreate,
    StrategyUpdate,
    TradeClose,
    TradeCreate,
    TradeOpen,
    TradeUpdate,
)
from tradelog.metrics.derivation import calculate_return_on_risk
from tradelog.models.journal import JournalEntry, Strategy

logger = logging.getLogger("tradelog")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_trade_service = None   # Set via configure_routers()
_strategy_repo = None   # Set via configure_routers()
_journal_repo = None    # Set via configure_routers()


def configure_routers(
    trade_service,
    strategy_repo=None,
    journal_repo=None,
) -> None:
    """Inject dependencies from the application startup.

    Args:
        trade_service: A ``TradeService`` instance (or duck-type for tests).
        strategy_repo: A ``StrategyRepo`` instance.
        journal_repo: A ``JournalRepo`` instance.
    """
    global _trade_service, _strategy_repo, _journal_repo  # noqa: PLW0603
    _trade_service = trade_service
    _strategy_repo = strategy_repo
    _journal_repo = journal_repo


def _require(dependency, name: str):
    if dependency is None:
        raise HTTPException(status_code=503, detail=f"{name} not configured")
    return dependency


def _not_found(kind: str, item_id: int) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{kind} {item_id} not found")


def _trade_payload(trade) -> dict:
    data = trade.to_dict()
    data["return_on_risk"] = calculate_return_on_risk(
        trade.pnl_percentage, trade.risk_reward_ratio,
    )
    return data


def _call_service(action):
    """Run a service call, mapping input errors to HTTP 422."""
    try:
        return action()
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except sqlite3.IntegrityError as exc:
        raise HTTPException(status_code=422, detail=f"Integrity error: {exc}") from exc


# ── Trades ───────────────────────────────────────────────────────────────


@router.get("/trades")
async def get_trades(
    limit: int = Query(default=20, ge=1, le=500),
    status: Optional[str] = Query(default=None),
    symbol: Optional[str] = Query(default=None),
    strategy_id: Optional[int] = Query(default=None),
):
    """Return trades, newest entry first."""
    service = _require(_trade_service, "Trade service")
    result = _call_service(lambda: service.list_trades(
        limit=limit, status=status,
        symbol=symbol.upper() if symbol else None,
        strategy_id=strategy_id,
    ))
    return {
        "trades": [t.to_dict() for t in result["trades"]],
        "total": result["total"],
    }


@router.get("/trades/statistics")
async def get_trade_statistics(
    strategy_id: Optional[int] = Query(default=None),
):
    """Return summary statistics over closed trades."""
    service = _require(_trade_service, "Trade service")
    return service.get_statistics(strategy_id=strategy_id).to_dict()


@router.post("/trades", status_code=201)
async def create_trade(body: TradeCreate):
    """Log a new trade.  Derived metrics are computed server-side."""
    service = _require(_trade_service, "Trade service")
    trade = _call_service(lambda: service.create_trade(body.model_dump()))
    return _trade_payload(trade)


@router.get("/trades/{trade_id}")
async def get_trade(trade_id: int):
    """Return a single trade with its return on risk."""
    service = _require(_trade_service, "Trade service")
    trade = service.get_trade(trade_id)
    if trade is None:
        raise _not_found("Trade", trade_id)
    return _trade_payload(trade)


@router.patch("/trades/{trade_id}")
async def update_trade(trade_id: int, body: TradeUpdate):
    """Edit a trade.  Status changes must follow the lifecycle."""
    service = _require(_trade_service, "Trade service")
    trade = _call_service(
        lambda: service.update_trade(trade_id, body.model_dump(exclude_unset=True))
    )
    if trade is None:
        raise _not_found("Trade", trade_id)
    return _trade_payload(trade)


@router.post("/trades/{trade_id}/open")
async def open_trade(trade_id: int, body: TradeOpen):
    service = _require(_trade_service, "Trade service")
    trade = _call_service(lambda: service.open_trade(
        trade_id, entry_price=body.entry_price, entry_date=body.entry_date,
    ))
    if trade is None:
        raise _not_found("Trade", trade_id)
    return _trade_payload(trade)


@router.post("/trades/{trade_id}/close")
async def close_trade(trade_id: int, body: TradeClose):
    """Commit the exit of a trade and return it with P&L filled in."""
    service = _require(_trade_service, "Trade service")
    trade = _call_service(lambda: service.close_trade(
        trade_id, exit_price=body.exit_price, exit_date=body.exit_date,
    ))
    if trade is None:
        raise _not_found("Trade", trade_id)
    return _trade_payload(trade)


@router.post("/trades/{trade_id}/cancel")
async def cancel_trade(trade_id: int):
    service = _require(_trade_service, "Trade service")
    trade = _call_service(lambda: service.cancel_trade(trade_id))
    if trade is None:
        raise _not_found("Trade", trade_id)
    return _trade_payload(trade)


@router.delete("/trades/{trade_id}")
async def delete_trade(trade_id: int):
    service = _require(_trade_service, "Trade service")
    if not service.delete_trade(trade_id):
        raise _not_found("Trade", trade_id)
    return {"status": "deleted", "id": trade_id}


# ── Strategies ───────────────────────────────────────────────────────────


@router.get("/strategies")
async def get_strategies(active: bool = Query(default=False)):
    """Return strategies ordered by name (``active=true`` for active only)."""
    repo = _require(_strategy_repo, "Strategy repo")
    return {"strategies": [s.to_dict() for s in repo.get_strategies(active_only=active)]}


@router.post("/strategies", status_code=201)
async def create_strategy(body: StrategyCreate):
    repo = _require(_strategy_repo, "Strategy repo")
    strategy_id = repo.insert_strategy(Strategy(**body.model_dump()))
    logger.info("Strategy %d created: %s", strategy_id, body.name)
    return repo.get_strategy(strategy_id).to_dict()


@router.get("/strategies/{strategy_id}")
async def get_strategy(strategy_id: int):
    repo = _require(_strategy_repo, "Strategy repo")
    strategy = repo.get_strategy(strategy_id)
    if strategy is None:
        raise _not_found("Strategy", strategy_id)
    return strategy.to_dict()


@router.patch("/strategies/{strategy_id}")
async def update_strategy(strategy_id: int, body: StrategyUpdate):
    repo = _require(_strategy_repo, "Strategy repo")
    if not repo.update_strategy(strategy_id, body.model_dump(exclude_unset=True)):
        raise _not_found("Strategy", strategy_id)
    return repo.get_strategy(strategy_id).to_dict()


@router.delete("/strategies/{strategy_id}")
async def delete_strategy(strategy_id: int):
    repo = _require(_strategy_repo, "Strategy repo")
    if not repo.delete_strategy(strategy_id):
        raise _not_found("Strategy", strategy_id)
    logger.info("Strategy %d deleted", strategy_id)
    return {"status": "deleted", "id": strategy_id}


@router.get("/strategies/{strategy_id}/performance")
async def get_strategy_performance(strategy_id: int):
    """Return statistics for the strategy's closed trades."""
    repo = _require(_strategy_repo, "Strategy repo")
    service = _require(_trade_service, "Trade service")
    if repo.get_strategy(strategy_id) is None:
        raise _not_found("Strategy", strategy_id)
    return service.get_strategy_performance(strategy_id)


# ── Journal ──────────────────────────────────────────────────────────────


@router.get("/journal")
async def get_journal_entries(limit: int = Query(default=50, ge=1, le=500)):
    """Return journal entries, newest first."""
    repo = _require(_journal_repo, "Journal repo")
    return {"entries": [e.to_dict() for e in repo.get_entries(limit=limit)]}


@router.post("/journal", status_code=201)
async def create_journal_entry(body: JournalEntryCreate):
    repo = _require(_journal_repo, "Journal repo")
    entry_id = repo.insert_entry(JournalEntry(**body.model_dump()))
    return repo.get_entry(entry_id).to_dict()


@router.get("/journal/{entry_id}")
async def get_journal_entry(entry_id: int):
    repo = _require(_journal_repo, "Journal repo")
    entry = repo.get_entry(entry_id)
    if entry is None:
        raise _not_found("Journal entry", entry_id)
    return entry.to_dict()


@router.patch("/journal/{entry_id}")
async def update_journal_entry(entry_id: int, body: JournalEntryUpdate):
    repo = _require(_journal_repo, "Journal repo")
    if not repo.update_entry(entry_id, body.model_dump(exclude_unset=True)):
        raise _not_found("Journal entry", entry_id)
    return repo.get_entry(entry_id).to_dict()


@router.delete("/journal/{entry_id}")
async def delete_journal_entry(entry_id: int):
    repo = _require(_journal_repo, "Journal repo")
    if not repo.delete_entry(entry_id):
        raise _not_found("Journal entry", entry_id)
    return {"status": "deleted", "id": entry_id}


@router.post("/journal/{entry_id}/trades/{trade_id}", status_code=201)
async def link_trade_to_entry(entry_id: int, trade_id: int):
    """Attach a trade to a journal entry."""
    repo = _require(_journal_repo, "Journal repo")
    service = _require(_trade_service, "Trade service")
    if repo.get_entry(entry_id) is None:
        raise _not_found("Journal entry", entry_id)
    if service.get_trade(trade_id) is None:
        raise _not_found("Trade", trade_id)
    created = repo.link_trade(entry_id, trade_id)
    return {"entry_id": entry_id, "trade_id": trade_id, "created": created}


@router.get("/journal/{entry_id}/trades")
async def get_entry_trades(entry_id: int):
    """Return the trades linked to a journal entry."""
    repo = _require(_journal_repo, "Journal repo")
    service = _require(_trade_service, "Trade service")
    if repo.get_entry(entry_id) is None:
        raise _not_found("Journal entry", entry_id)
    trades = service.get_trades_by_ids(repo.get_trade_ids(entry_id))
    return {"trades": [t.to_dict() for t in trades]}
