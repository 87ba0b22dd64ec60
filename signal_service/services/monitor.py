"""Signal monitor: periodic lifecycle check plus pool refill."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from signal_core.models.signal import Signal, SignalStatus
from signal_core.protocols import SignalStore
from signal_service.services.lifecycle import SignalLifecycleManager
from signal_service.services.replacement import ReplacementEngine

logger = logging.getLogger(__name__)

# Default check interval (5 minutes)
DEFAULT_INTERVAL = 300.0

SignalClosedCallback = Callable[[Signal], Awaitable[None]]
# Receives (closed signal or None, new signal)
SignalReplacedCallback = Callable[[Signal | None, Signal], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]


@dataclass
class CycleResult:
    checked: int = 0
    closed: int = 0
    replaced: int = 0
    active_count: int = 0
    below_target: bool = False


class SignalMonitor:
    """
    Keep the active signal pool at ``target_pool_size``.

    Each cycle:
    1. Runs one lifecycle tick (closing signals that hit target or stop)
    2. Counts the remaining ACTIVE signals
    3. Asks the replacement engine for the missing ones
    """

    def __init__(
        self,
        lifecycle: SignalLifecycleManager,
        replacement: ReplacementEngine,
        store: SignalStore,
        target_pool_size: int = 5,
        interval: float = DEFAULT_INTERVAL,
    ):
        self.lifecycle = lifecycle
        self.replacement = replacement
        self.store = store
        self.target_pool_size = target_pool_size
        self.interval = interval

        self._closed_callbacks: list[SignalClosedCallback] = []
        self._replaced_callbacks: list[SignalReplacedCallback] = []
        self._error_callbacks: list[ErrorCallback] = []

        self._running = False
        self._task: asyncio.Task | None = None
        self.last_result: CycleResult | None = None

    def on_signal_closed(self, callback: SignalClosedCallback) -> None:
        if callback not in self._closed_callbacks:
            self._closed_callbacks.append(callback)

    def on_signal_replaced(self, callback: SignalReplacedCallback) -> None:
        if callback not in self._replaced_callbacks:
            self._replaced_callbacks.append(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        if callback not in self._error_callbacks:
            self._error_callbacks.append(callback)

    async def _call(self, callbacks: list, *args) -> None:
        for callback in callbacks:
            try:
                await callback(*args)
            except Exception as e:
                logger.error(f"Monitor callback error: {e}")

    async def run_cycle(self) -> CycleResult:
        """Run one check-and-refill cycle."""
        tick = await self.lifecycle.tick()
        for signal in tick.closed:
            await self._call(self._closed_callbacks, signal)

        active = await self.store.query(SignalStatus.ACTIVE)
        needed = self.target_pool_size - len(active)

        replaced: list[Signal] = []
        if needed > 0:
            outcome = await self.replacement.replace(needed, closed=tick.closed)
            replaced = outcome.signals
            by_id = {s.id: s for s in tick.closed}
            for signal in replaced:
                previous = by_id.get(signal.replaces) if signal.replaces else None
                await self._call(self._replaced_callbacks, previous, signal)

        active_count = len(active) + len(replaced)
        result = CycleResult(
            checked=tick.checked,
            closed=len(tick.closed),
            replaced=len(replaced),
            active_count=active_count,
            below_target=active_count < self.target_pool_size,
        )
        self.last_result = result

        logger.info(
            f"Monitor cycle: {result.checked} checked, {result.closed} closed, "
            f"{result.replaced} replaced, {result.active_count}/"
            f"{self.target_pool_size} active"
        )
        if result.below_target:
            logger.warning(
                f"Active pool below target size ({result.active_count}/"
                f"{self.target_pool_size}), retrying next cycle"
            )
        return result

    async def start(self) -> None:
        """Start the periodic monitor loop."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the monitor loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def _run(self) -> None:
        """Main monitor loop."""
        while self._running:
            try:
                await self.run_cycle()
            except Exception as e:
                logger.error(f"Monitor cycle failed: {e}")
                await self._call(self._error_callbacks, e)

            if self._running:
                await asyncio.sleep(self.interval)
