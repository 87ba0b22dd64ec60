"""Tests for the price history cache."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from signal_core.models.price import PriceBar
from signal_service.storage.history_cache import HistoryCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def make_bars(n):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    one = Decimal("1")
    return [
        PriceBar(timestamp=start + timedelta(days=i), open=one, high=one, low=one, close=one)
        for i in range(n)
    ]


class TestHistoryCache:
    """Tests for HistoryCache."""

    def test_hit_and_miss(self):
        cache = HistoryCache(ttl=60, clock=FakeClock())
        assert cache.get("BTCUSDT", 10) is None

        cache.put("BTCUSDT", make_bars(20))
        bars = cache.get("BTCUSDT", 10)

        assert bars is not None
        assert len(bars) == 10
        assert bars[-1].timestamp == make_bars(20)[-1].timestamp
        assert cache.hits == 1
        assert cache.misses == 1

    def test_too_short_is_miss(self):
        cache = HistoryCache(clock=FakeClock())
        cache.put("BTCUSDT", make_bars(5))
        assert cache.get("BTCUSDT", 10) is None

    def test_complete_short_history_hits(self):
        """A recent listing with every available bar cached is a hit."""
        cache = HistoryCache(clock=FakeClock())
        cache.put("NEWUSDT", make_bars(40), complete=True)

        bars = cache.get("NEWUSDT", 200)

        assert bars is not None
        assert len(bars) == 40
        assert cache.hits == 1

    def test_expires_after_ttl(self):
        clock = FakeClock()
        cache = HistoryCache(ttl=3600, clock=clock)
        cache.put("BTCUSDT", make_bars(5))

        clock.now += 3599
        assert cache.get("BTCUSDT", 5) is not None

        clock.now += 2
        assert cache.get("BTCUSDT", 5) is None
        assert "BTCUSDT" not in cache

    def test_evicts_oldest_over_capacity(self):
        clock = FakeClock()
        cache = HistoryCache(max_symbols=2, clock=clock)

        cache.put("A", make_bars(1))
        clock.now += 1
        cache.put("B", make_bars(1))
        clock.now += 1
        cache.put("C", make_bars(1))

        assert len(cache) == 2
        assert "A" not in cache
        assert "B" in cache and "C" in cache

    def test_refresh_moves_symbol_to_newest(self):
        cache = HistoryCache(max_symbols=2, clock=FakeClock())
        cache.put("A", make_bars(1))
        cache.put("B", make_bars(1))
        cache.put("A", make_bars(2))
        cache.put("C", make_bars(1))

        assert "A" in cache
        assert "B" not in cache

    def test_invalidate(self):
        cache = HistoryCache(clock=FakeClock())
        cache.put("A", make_bars(1))
        cache.put("B", make_bars(1))

        cache.invalidate("A")
        assert "A" not in cache and "B" in cache

        cache.invalidate()
        assert len(cache) == 0
