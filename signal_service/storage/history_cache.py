"""Price history cache.

Holds recently fetched bars per symbol so a replacement cycle that touches
the same symbol twice, or a monitor loop running every few minutes, does not
refetch daily history on each pass. Staleness only affects recommendation
freshness, never signal invariants.

The cache is an explicit object owned by whoever builds the evaluator; there
is no module-level state.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from signal_core.models.price import PriceBar

logger = logging.getLogger(__name__)

# TTL for historical bars (1 hour)
DEFAULT_TTL = 3600.0

# Maximum symbols to keep (prevents unbounded growth)
DEFAULT_MAX_SYMBOLS = 500


@dataclass
class _Entry:
    bars: list[PriceBar]
    stored_at: float
    # Source had no older bars than these (e.g. a recent listing)
    complete: bool = False


class HistoryCache:
    """TTL cache of price bars keyed by symbol, oldest-first eviction."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        max_symbols: int = DEFAULT_MAX_SYMBOLS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_symbols = max_symbols
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self.hits = 0
        self.misses = 0

    def get(self, symbol: str, bars_needed: int) -> list[PriceBar] | None:
        """Return cached bars if fresh and long enough, else None.

        An entry marked complete is returned even when shorter than
        ``bars_needed``: it already holds the whole available history.
        """
        entry = self._entries.get(symbol)
        if entry is None:
            self.misses += 1
            return None

        if self._clock() - entry.stored_at > self.ttl:
            del self._entries[symbol]
            self.misses += 1
            return None

        if len(entry.bars) < bars_needed and not entry.complete:
            self.misses += 1
            return None

        self.hits += 1
        return entry.bars[-bars_needed:]

    def put(self, symbol: str, bars: list[PriceBar], complete: bool = False) -> None:
        # Re-inserting moves the symbol to the end (newest)
        self._entries.pop(symbol, None)
        self._entries[symbol] = _Entry(
            bars=list(bars), stored_at=self._clock(), complete=complete
        )
        self._evict()

    def invalidate(self, symbol: str | None = None) -> None:
        """Drop one symbol, or everything when ``symbol`` is None."""
        if symbol is None:
            self._entries.clear()
        else:
            self._entries.pop(symbol, None)

    def _evict(self) -> None:
        now = self._clock()
        stale = [s for s, e in self._entries.items() if now - e.stored_at > self.ttl]
        for symbol in stale:
            del self._entries[symbol]

        removed = len(stale)
        while len(self._entries) > self.max_symbols:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            removed += 1

        if removed > 0:
            logger.debug(f"Evicted {removed} history cache entries")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._entries
