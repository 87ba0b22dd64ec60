"""CLI entry point for the signal service.

Usage:
    python -m signal_service run                 # monitor loop
    python -m signal_service once                # single check-and-refill cycle
    python -m signal_service evaluate BTCUSDT ETHUSDT
    python -m signal_service list --status active
"""

import argparse
import asyncio
import logging
import signal as os_signal
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncIterator

import orjson

from signal_core.models.signal import SignalStatus
from signal_core.protocols import SignalStore
from signal_service.clients import BinanceMarketData, HttpInsightSource
from signal_service.config import Settings, get_settings
from signal_service.engine_config import load_engine_config
from signal_service.services import (
    ReplacementEngine,
    SignalEvaluator,
    SignalLifecycleManager,
    SignalMonitor,
)
from signal_service.storage import HistoryCache, InMemorySignalStore
from signal_service.storage.database import Database, init_database
from signal_service.storage.signal_repo import SqlSignalStore

logger = logging.getLogger("signal_service")


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    # Reduce noise from third-party libraries
    for name in ("httpx", "httpcore", "sqlalchemy", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING)


@dataclass
class Components:
    store: SignalStore
    evaluator: SignalEvaluator
    monitor: SignalMonitor


@asynccontextmanager
async def build_components(settings: Settings) -> AsyncIterator[Components]:
    """Wire adapters and services from settings; closes them on exit."""
    engine_config = load_engine_config(settings.engine_config_path or None)

    db: Database | None = None
    if settings.database_url:
        db = await init_database(settings.database_url)
        store: SignalStore = SqlSignalStore(db)
    else:
        logger.warning("DATABASE_URL not set, signals are kept in memory only")
        store = InMemorySignalStore()

    market_data = BinanceMarketData(
        base_url=settings.binance_base_url, interval=settings.binance_interval
    )
    insights = HttpInsightSource(
        sentiment_url=settings.sentiment_url,
        prediction_url=settings.prediction_url,
        timeout=settings.call_timeout_seconds,
    )

    evaluator = SignalEvaluator(
        market_data,
        insights,
        config=engine_config,
        history_cache=HistoryCache(
            ttl=settings.history_cache_ttl_seconds,
            max_symbols=settings.history_cache_max_symbols,
        ),
        history_bars=settings.history_bars,
        call_timeout=settings.call_timeout_seconds,
        max_concurrency=settings.max_concurrency,
    )
    lifecycle = SignalLifecycleManager(
        store,
        market_data,
        call_timeout=settings.call_timeout_seconds,
        max_concurrency=settings.max_concurrency,
    )
    replacement = ReplacementEngine(evaluator, store, settings.symbols, engine_config)
    monitor = SignalMonitor(
        lifecycle,
        replacement,
        store,
        target_pool_size=settings.target_pool_size,
        interval=settings.monitor_interval_seconds,
    )

    try:
        yield Components(store=store, evaluator=evaluator, monitor=monitor)
    finally:
        await market_data.close()
        await insights.close()
        if db is not None:
            await db.close()


def _json_default(value):
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError


def _dumps(payload) -> str:
    return orjson.dumps(
        payload, default=_json_default, option=orjson.OPT_INDENT_2
    ).decode()


async def cmd_run(settings: Settings) -> None:
    async with build_components(settings) as c:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (os_signal.SIGINT, os_signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop.set)
            except NotImplementedError:
                pass  # Windows: fall back to KeyboardInterrupt

        await c.monitor.start()
        logger.info(
            f"Monitoring {len(settings.symbols)} symbols, pool size "
            f"{settings.target_pool_size}, every {settings.monitor_interval_seconds}s"
        )
        try:
            await stop.wait()
        finally:
            logger.info("Shutting down...")
            await c.monitor.stop()


async def cmd_once(settings: Settings) -> None:
    async with build_components(settings) as c:
        result = await c.monitor.run_cycle()
        print(_dumps(result))


async def cmd_evaluate(settings: Settings, symbols: list[str]) -> None:
    async with build_components(settings) as c:
        for symbol in symbols:
            analysis = await c.evaluator.analyze(symbol.upper())
            if analysis is None:
                print(_dumps({"symbol": symbol.upper(), "error": "no usable history"}))
                continue
            print(
                _dumps(
                    {
                        "symbol": analysis.symbol,
                        "price": analysis.price,
                        "direction": analysis.score.direction,
                        "success_rate": analysis.score.success_rate,
                        "direction_score": analysis.score.direction_score,
                        "breakdown": analysis.score.breakdown,
                        "success": analysis.score.success,
                        "indicators": analysis.indicators,
                        "patterns": list(analysis.patterns),
                        "signal": (
                            analysis.signal.model_dump(mode="json")
                            if analysis.signal
                            else None
                        ),
                    }
                )
            )


async def cmd_list(settings: Settings, status: str | None) -> None:
    async with build_components(settings) as c:
        signals = await c.store.query(SignalStatus(status) if status else None)

    if not signals:
        print("No signals found.")
        return

    print(
        f"{'ID':<34} {'Symbol':<10} {'Dir':<5} {'Entry':>14} {'Target':>14} "
        f"{'Stop':>14} {'Success':>8} {'Status':<10}"
    )
    print("-" * 116)
    for s in signals:
        print(
            f"{s.id:<34} {s.symbol:<10} {s.direction.value:<5} {s.entry_price:>14} "
            f"{s.target_price:>14} {s.stop_loss_price:>14} {s.success_rate:>8.2f} "
            f"{s.status.value:<10}"
        )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="signal_service",
        description="Generate, track and replace trade signals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m signal_service run
  python -m signal_service once
  python -m signal_service evaluate BTCUSDT ETHUSDT
  python -m signal_service list --status active
        """,
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Run the monitor loop until interrupted")
    sub.add_parser("once", help="Run a single check-and-refill cycle")

    evaluate = sub.add_parser("evaluate", help="Score symbols and print the result")
    evaluate.add_argument("symbols", nargs="+", help="Symbols, e.g. BTCUSDT")

    list_cmd = sub.add_parser("list", help="List stored signals")
    list_cmd.add_argument(
        "--status",
        choices=[s.value for s in SignalStatus],
        default=None,
        help="Only show signals with this status",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)
    settings = get_settings()

    if args.command == "run":
        coro = cmd_run(settings)
    elif args.command == "once":
        coro = cmd_once(settings)
    elif args.command == "evaluate":
        coro = cmd_evaluate(settings, args.symbols)
    else:
        coro = cmd_list(settings, args.status)

    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
