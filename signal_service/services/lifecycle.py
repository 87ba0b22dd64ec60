"""Signal lifecycle manager.

Polls the current price of every ACTIVE signal and closes the ones whose
target or stop has been crossed. Closing goes through the store's
conditional update, so a signal closed elsewhere (another worker, an earlier
tick) is reported as a conflict instead of being closed twice.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable

from signal_core.models.signal import Signal, SignalStatus
from signal_core.protocols import MarketDataSource, SignalStore, StatusUpdate, Unavailable

logger = logging.getLogger(__name__)

# Callback for close events (receives the closed copy of the signal)
CloseCallback = Callable[[Signal], Awaitable[None]]


class CheckOutcome(str, Enum):
    UNCHANGED = "unchanged"  # Price between stop and target
    CLOSED = "closed"
    UNAVAILABLE = "unavailable"  # Price fetch failed or timed out
    CONFLICT = "conflict"  # Store refused the update
    SKIPPED = "skipped"  # Terminal, or already being checked


@dataclass
class CheckResult:
    outcome: CheckOutcome
    signal: Signal
    price: Decimal | None = None


@dataclass
class TickResult:
    """Summary of one pass over the active signals."""

    checked: int = 0
    closed: list[Signal] = field(default_factory=list)
    unavailable: int = 0
    conflicts: int = 0
    failed: int = 0


class SignalLifecycleManager:
    """
    Track ACTIVE signals and move them to COMPLETED / CANCELLED.

    This service:
    1. Loads ACTIVE signals from the store
    2. Fetches each symbol's current price (with a timeout)
    3. Closes signals whose target or stop has been reached
    4. Notifies close callbacks
    """

    def __init__(
        self,
        store: SignalStore,
        market_data: MarketDataSource,
        call_timeout: float = 10.0,
        max_concurrency: int = 8,
    ):
        """
        Args:
            store: Signal store (the only shared mutable resource)
            market_data: Current price source
            call_timeout: Seconds allowed for each price fetch
            max_concurrency: Maximum signals checked at once
        """
        self.store = store
        self.market_data = market_data
        self.call_timeout = call_timeout
        self.max_concurrency = max_concurrency

        # Signal IDs currently being checked in this process
        self._in_flight: set[str] = set()
        self._close_callbacks: list[CloseCallback] = []

    def on_close(self, callback: CloseCallback) -> None:
        """Register callback for close events.

        Note: Duplicate callbacks are ignored.
        """
        if callback not in self._close_callbacks:
            self._close_callbacks.append(callback)

    def off_close(self, callback: CloseCallback) -> None:
        """Unregister callback for close events."""
        if callback in self._close_callbacks:
            self._close_callbacks.remove(callback)

    async def _fetch_price(self, symbol: str) -> Decimal | None:
        try:
            price = await asyncio.wait_for(
                self.market_data.fetch_current_price(symbol), self.call_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Price fetch timed out for {symbol}")
            return None
        except Exception as e:
            logger.warning(f"Price fetch failed for {symbol}: {e}")
            return None

        if isinstance(price, Unavailable):
            logger.warning(f"Price unavailable for {symbol}: {price.reason}")
            return None
        return price

    async def check_signal(self, signal: Signal) -> CheckResult:
        """
        Evaluate one signal against the current price.

        A failed price fetch leaves the signal untouched for this tick.
        """
        if not signal.is_active or signal.id in self._in_flight:
            return CheckResult(CheckOutcome.SKIPPED, signal)

        self._in_flight.add(signal.id)
        try:
            price = await self._fetch_price(signal.symbol)
            if price is None:
                return CheckResult(CheckOutcome.UNAVAILABLE, signal)

            new_status = signal.check_price(price)
            if new_status == SignalStatus.ACTIVE:
                return CheckResult(CheckOutcome.UNCHANGED, signal, price)

            closed_at = datetime.now(timezone.utc)
            update = await self.store.update_status(
                signal.id, new_status, closed_at=closed_at, close_price=price
            )
            if update == StatusUpdate.CONFLICT:
                logger.warning(
                    f"Signal {signal.id} ({signal.symbol}) already closed, "
                    f"dropping {new_status.value}"
                )
                return CheckResult(CheckOutcome.CONFLICT, signal, price)

            closed = signal.close(new_status, price=price, closed_at=closed_at)
            logger.info(
                f"Signal {closed.id} {closed.status.value.upper()}: "
                f"{closed.symbol} {closed.direction.value.upper()} "
                f"entry={closed.entry_price} exit={price}"
            )
            await self._notify(closed)
            return CheckResult(CheckOutcome.CLOSED, closed, price)
        finally:
            self._in_flight.discard(signal.id)

    async def _notify(self, signal: Signal) -> None:
        for callback in self._close_callbacks:
            try:
                await callback(signal)
            except Exception as e:
                logger.error(f"Close callback error: {e}")

    async def tick(self) -> TickResult:
        """Check every ACTIVE signal once, concurrently."""
        active = await self.store.query(SignalStatus.ACTIVE)
        result = TickResult(checked=len(active))
        if not active:
            return result

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(signal: Signal) -> CheckResult:
            async with semaphore:
                return await self.check_signal(signal)

        outcomes = await asyncio.gather(
            *(bounded(s) for s in active), return_exceptions=True
        )

        for signal, outcome in zip(active, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Lifecycle check failed for {signal.id}: {outcome}")
                result.failed += 1
            elif outcome.outcome == CheckOutcome.CLOSED:
                result.closed.append(outcome.signal)
            elif outcome.outcome == CheckOutcome.UNAVAILABLE:
                result.unavailable += 1
            elif outcome.outcome == CheckOutcome.CONFLICT:
                result.conflicts += 1

        logger.info(
            f"Lifecycle tick: {result.checked} checked, {len(result.closed)} closed, "
            f"{result.unavailable} unavailable, {result.conflicts} conflicts"
        )
        return result
