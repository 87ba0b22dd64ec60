"""Collaborator protocols for market data, insights and persistence.

Any backend (exchange client, HTTP service, PostgreSQL, in-memory) can
implement these protocols to be used by the engine services.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Protocol, Sequence, runtime_checkable

from signal_core.models.analysis import MlPrediction, SentimentReading
from signal_core.models.price import PriceBar
from signal_core.models.signal import Signal, SignalStatus


@dataclass(frozen=True)
class Unavailable:
    """Explicit "no data" result returned instead of fabricated values."""

    reason: str = "unavailable"


class StatusUpdate(str, Enum):
    """Outcome of a conditional status update."""

    SUCCESS = "success"
    CONFLICT = "conflict"


@runtime_checkable
class MarketDataSource(Protocol):
    """Protocol that price data providers must implement."""

    async def fetch_price_history(
        self, symbol: str, bars_needed: int
    ) -> list[PriceBar] | Unavailable:
        """Get up to ``bars_needed`` bars in ascending time order."""
        ...

    async def fetch_current_price(self, symbol: str) -> Decimal | Unavailable:
        """Get the latest traded price."""
        ...


@runtime_checkable
class InsightSource(Protocol):
    """Protocol for sentiment and ML prediction providers."""

    async def fetch_sentiment(self, symbol: str) -> SentimentReading | Unavailable:
        ...

    async def fetch_ml_prediction(
        self, symbol: str, recent_prices: Sequence[Decimal]
    ) -> MlPrediction | Unavailable:
        ...


@runtime_checkable
class SignalStore(Protocol):
    """Protocol that signal storage backends must implement."""

    async def query(self, status: SignalStatus | None = None) -> list[Signal]:
        """Get signals, optionally filtered by status, oldest first."""
        ...

    async def insert(self, signal: Signal) -> Signal:
        """Persist a new signal and return the stored copy."""
        ...

    async def get_by_id(self, signal_id: str) -> Signal | None:
        """Get a single signal by its ID."""
        ...

    async def update_status(
        self,
        signal_id: str,
        new_status: SignalStatus,
        closed_at: datetime | None = None,
        close_price: Decimal | None = None,
    ) -> StatusUpdate:
        """Move an ACTIVE signal to a terminal status.

        Returns CONFLICT when the stored signal is already terminal or does
        not exist. Raises ValueError for a non-terminal ``new_status``.
        """
        ...
