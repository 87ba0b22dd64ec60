"""Tests for candlestick pattern detection."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from signal_core.indicators.patterns import (
    RELIABILITY,
    detect_patterns,
    is_bearish_engulfing,
    is_bullish_engulfing,
    is_bullish_harami,
    is_doji,
    is_evening_star,
    is_hammer,
    is_morning_star,
    is_shooting_star,
    pattern_accuracy,
)
from signal_core.models.analysis import PatternPolarity
from signal_core.models.price import PriceBar

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_bar(o, h, l, c, i=0):
    return PriceBar(
        timestamp=START + timedelta(days=i),
        open=Decimal(str(o)),
        high=Decimal(str(h)),
        low=Decimal(str(l)),
        close=Decimal(str(c)),
        volume=Decimal("1"),
    )


def plain_bar(i, base=100.0):
    """Bullish bar with a healthy body and no special shape."""
    return make_bar(base, base + 3, base - 1, base + 2, i)


class TestSingleBarShapes:
    """Tests for doji / hammer / shooting star."""

    def test_doji(self):
        assert is_doji(make_bar(100, 105, 95, 100.5))
        assert not is_doji(make_bar(100, 105, 95, 103))

    def test_zero_range_doji(self):
        assert is_doji(make_bar(100, 100, 100, 100))

    def test_hammer(self):
        # body 1, lower shadow 5, upper shadow 0.5
        assert is_hammer(make_bar(100, 101.5, 95, 101))
        assert not is_shooting_star(make_bar(100, 101.5, 95, 101))

    def test_shooting_star(self):
        # body 1, upper shadow 5, lower shadow 0.5
        assert is_shooting_star(make_bar(101, 106, 99.5, 100))
        assert not is_hammer(make_bar(101, 106, 99.5, 100))


class TestMultiBarShapes:
    """Tests for engulfing / harami / stars."""

    def test_bullish_engulfing(self):
        prev = make_bar(102, 103, 99, 100)
        cur = make_bar(99.5, 104, 99, 103)
        assert is_bullish_engulfing(prev, cur)
        assert not is_bearish_engulfing(prev, cur)

    def test_bearish_engulfing(self):
        prev = make_bar(100, 103, 99, 102)
        cur = make_bar(102.5, 103, 98, 99)
        assert is_bearish_engulfing(prev, cur)

    def test_bullish_harami(self):
        prev = make_bar(105, 106, 99, 100)
        cur = make_bar(101, 104, 100.5, 103)
        assert is_bullish_harami(prev, cur)

    def test_morning_star(self):
        first = make_bar(110, 111, 99, 100)
        second = make_bar(99, 101, 97, 99.1)
        third = make_bar(100, 109, 99, 108)
        assert is_morning_star(first, second, third)
        assert not is_evening_star(first, second, third)

    def test_evening_star(self):
        first = make_bar(100, 111, 99, 110)
        second = make_bar(111, 113, 109, 111.1)
        third = make_bar(110, 111, 101, 102)
        assert is_evening_star(first, second, third)


class TestDetectPatterns:
    """Tests for detect_patterns and accuracy."""

    def test_fewer_than_three_bars(self):
        bars = [plain_bar(0), plain_bar(1)]
        assert detect_patterns(bars) == []

    def test_detects_bullish_engulfing_at_last_bar(self):
        bars = [
            plain_bar(0),
            make_bar(102, 103, 99, 100, 1),
            make_bar(99.5, 104, 99, 103, 2),
        ]
        patterns = detect_patterns(bars)

        names = {p.name for p in patterns}
        assert "bullish_engulfing" in names
        engulfing = next(p for p in patterns if p.name == "bullish_engulfing")
        assert engulfing.polarity is PatternPolarity.BULLISH
        assert engulfing.reliability == RELIABILITY["bullish_engulfing"] == 5
        assert engulfing.position == 2
        assert engulfing.timestamp == bars[2].timestamp
        # Not enough history for a backtest
        assert engulfing.accuracy == 0.5

    def test_accuracy_default_with_short_history(self):
        bars = [plain_bar(i) for i in range(50)]
        assert pattern_accuracy(bars, "hammer", PatternPolarity.BULLISH, 49) == 0.5

    def test_accuracy_from_history(self):
        """Hammers followed by a rally score 1.0."""
        bars = []
        price = 100.0
        for i in range(130):
            if i % 10 == 0:
                # hammer: body 1, long lower shadow
                bars.append(make_bar(price, price + 1.2, price - 5, price + 1, i))
                price += 1
            else:
                bars.append(make_bar(price, price + 2.5, price - 0.5, price + 2, i))
                price += 2

        accuracy = pattern_accuracy(
            bars, "hammer", PatternPolarity.BULLISH, position=120, lookback=100
        )
        assert accuracy == pytest.approx(1.0)

    def test_accuracy_without_occurrences_is_default(self):
        bars = [plain_bar(i, base=100.0 + 2 * i) for i in range(130)]
        accuracy = pattern_accuracy(
            bars, "evening_star", PatternPolarity.BEARISH, position=120
        )
        assert accuracy == 0.5
