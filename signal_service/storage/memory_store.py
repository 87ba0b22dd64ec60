"""In-memory signal store."""

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal

from signal_core.models.signal import Signal, SignalStatus
from signal_core.protocols import StatusUpdate

logger = logging.getLogger(__name__)


class InMemorySignalStore:
    """Signal store kept in a dict, for tests and database-less runs.

    A lock makes the read-compare-write in update_status atomic with respect
    to other coroutines.
    """

    def __init__(self, signals: list[Signal] | None = None):
        self._signals: dict[str, Signal] = {}
        self._lock = asyncio.Lock()
        for signal in signals or []:
            self._signals[signal.id] = signal

    async def query(self, status: SignalStatus | None = None) -> list[Signal]:
        async with self._lock:
            signals = list(self._signals.values())
        if status is not None:
            signals = [s for s in signals if s.status == status]
        return sorted(signals, key=lambda s: s.created_at)

    async def insert(self, signal: Signal) -> Signal:
        async with self._lock:
            if signal.id in self._signals:
                raise ValueError(f"Signal {signal.id} already exists")
            self._signals[signal.id] = signal
        return signal

    async def get_by_id(self, signal_id: str) -> Signal | None:
        async with self._lock:
            return self._signals.get(signal_id)

    async def update_status(
        self,
        signal_id: str,
        new_status: SignalStatus,
        closed_at: datetime | None = None,
        close_price: Decimal | None = None,
    ) -> StatusUpdate:
        if not new_status.is_terminal:
            raise ValueError(f"update_status requires a terminal status, got {new_status}")

        async with self._lock:
            current = self._signals.get(signal_id)
            if current is None or not current.is_active:
                logger.warning(
                    f"Status update conflict for signal {signal_id} -> {new_status.value}"
                )
                return StatusUpdate.CONFLICT

            self._signals[signal_id] = current.close(
                new_status,
                price=close_price,
                closed_at=closed_at or datetime.now(timezone.utc),
            )
        return StatusUpdate.SUCCESS

    def __len__(self) -> int:
        return len(self._signals)
