"""TradeLog — application entry point.

Boots the FastAPI internal server and provides the CLI entry point for
database setup, serving the API, and printing statistics.
"""

import logging

from fastapi import FastAPI

from tradelog.api.routers import router

app = FastAPI(title="TradeLog Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("tradelog")


@app.get("/health")
async def health():
    return {"status": "ok"}


def build_services(db_path: str) -> dict:
    """Create the repos and trade service for *db_path*."""
    from tradelog.repos.journal_repo import JournalRepo
    from tradelog.repos.strategy_repo import StrategyRepo
    from tradelog.repos.trade_repo import TradeRepo
    from tradelog.services.trade_service import TradeService

    return {
        "trade_service": TradeService(TradeRepo(db_path)),
        "strategy_repo": StrategyRepo(db_path),
        "journal_repo": JournalRepo(db_path),
    }


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the chosen command."""
    import argparse

    from tradelog.config import load_config
    from tradelog.repos.db import init_db

    parser = argparse.ArgumentParser(description="TradeLog trading journal")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="Create the database schema")
    serve = sub.add_parser("serve", help="Run the internal API server")
    serve.add_argument("--port", type=int, help="Override API_PORT")
    stats = sub.add_parser("stats", help="Print statistics for closed trades")
    stats.add_argument("--strategy", type=int, help="Limit to one strategy id")
    args = parser.parse_args(argv)

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    init_db(config.db_path)

    if args.command == "init-db":
        logger.info("Database ready at %s", config.db_path)
    elif args.command == "serve":
        _run_server(config, port=args.port or config.api_port)
    elif args.command == "stats":
        _print_stats(config.db_path, args.strategy)


def _run_server(config, port: int) -> None:
    """Wire the routers to the database and serve the API."""
    import uvicorn

    from tradelog.api.routers import configure_routers

    configure_routers(**build_services(config.db_path))
    logger.info("API available at http://%s:%d", config.api_host, port)
    uvicorn.run(app, host=config.api_host, port=port, log_level=config.log_level.lower())


def _print_stats(db_path: str, strategy_id: int | None) -> None:
    from tradelog.cli.report import print_statistics
    from tradelog.metrics.stats import average_duration_minutes, compute_trade_statistics

    service = build_services(db_path)["trade_service"]
    closed = service.list_trades(
        limit=None, status="closed", strategy_id=strategy_id,
    )["trades"]
    title = f"Strategy {strategy_id}" if strategy_id is not None else "All strategies"
    print_statistics(
        compute_trade_statistics(closed),
        title=title,
        average_duration=average_duration_minutes(closed),
    )


if __name__ == "__main__":
    _run_cli()
