"""Candlestick pattern detection.

Detectors classify one to three bar shapes from body/shadow ratios. Every
detection carries a fixed reliability weight (1..5) and a historical accuracy
obtained by replaying the same detector over a lookback window.
"""

from decimal import Decimal
from typing import Callable, Optional, Sequence

from signal_core.models.analysis import CandlestickPattern, PatternPolarity
from signal_core.models.price import PriceBar

DOJI_BODY_RATIO = Decimal("0.1")
ACCURACY_HORIZON = 5
DEFAULT_ACCURACY = 0.5

RELIABILITY = {
    "doji": 3,
    "hammer": 4,
    "shooting_star": 4,
    "bullish_engulfing": 5,
    "bearish_engulfing": 5,
    "bullish_harami": 3,
    "bearish_harami": 3,
    "morning_star": 5,
    "evening_star": 5,
}


# =============================================================================
# Single-bar shapes
# =============================================================================

def is_doji(bar: PriceBar) -> bool:
    """Body smaller than 10% of the full range."""
    if bar.range_size == 0:
        return bar.body_size == 0
    return bar.body_size / bar.range_size < DOJI_BODY_RATIO


def is_hammer(bar: PriceBar) -> bool:
    """Long lower shadow (> 2x body), short upper shadow (< body)."""
    body = bar.body_size
    return body > 0 and bar.lower_shadow > 2 * body and bar.upper_shadow < body


def is_shooting_star(bar: PriceBar) -> bool:
    """Long upper shadow (> 2x body), short lower shadow (< body)."""
    body = bar.body_size
    return body > 0 and bar.upper_shadow > 2 * body and bar.lower_shadow < body


# =============================================================================
# Multi-bar shapes
# =============================================================================

def is_bullish_engulfing(prev: PriceBar, cur: PriceBar) -> bool:
    return (
        prev.is_bearish
        and cur.is_bullish
        and cur.open < prev.close
        and cur.close > prev.open
    )


def is_bearish_engulfing(prev: PriceBar, cur: PriceBar) -> bool:
    return (
        prev.is_bullish
        and cur.is_bearish
        and cur.open > prev.close
        and cur.close < prev.open
    )


def is_bullish_harami(prev: PriceBar, cur: PriceBar) -> bool:
    return (
        prev.is_bearish
        and cur.is_bullish
        and cur.open > prev.close
        and cur.close < prev.open
    )


def is_bearish_harami(prev: PriceBar, cur: PriceBar) -> bool:
    return (
        prev.is_bullish
        and cur.is_bearish
        and cur.open < prev.close
        and cur.close > prev.open
    )


def is_morning_star(first: PriceBar, second: PriceBar, third: PriceBar) -> bool:
    midpoint = (first.open + first.close) / 2
    return (
        first.is_bearish
        and is_doji(second)
        and third.is_bullish
        and third.close > midpoint
    )


def is_evening_star(first: PriceBar, second: PriceBar, third: PriceBar) -> bool:
    midpoint = (first.open + first.close) / 2
    return (
        first.is_bullish
        and is_doji(second)
        and third.is_bearish
        and third.close < midpoint
    )


# =============================================================================
# Detection at a position
# =============================================================================

# (name, polarity, bars needed, predicate over the trailing bars)
_Detector = tuple[str, PatternPolarity, int, Callable[..., bool]]

_DETECTORS: list[_Detector] = [
    ("hammer", PatternPolarity.BULLISH, 1, is_hammer),
    ("shooting_star", PatternPolarity.BEARISH, 1, is_shooting_star),
    ("bullish_engulfing", PatternPolarity.BULLISH, 2, is_bullish_engulfing),
    ("bearish_engulfing", PatternPolarity.BEARISH, 2, is_bearish_engulfing),
    ("bullish_harami", PatternPolarity.BULLISH, 2, is_bullish_harami),
    ("bearish_harami", PatternPolarity.BEARISH, 2, is_bearish_harami),
    ("morning_star", PatternPolarity.BULLISH, 3, is_morning_star),
    ("evening_star", PatternPolarity.BEARISH, 3, is_evening_star),
]


def _doji_polarity(bars: Sequence[PriceBar], position: int) -> PatternPolarity:
    # A doji reads as a reversal of the preceding bar's move
    if position > 0 and bars[position - 1].is_bullish:
        return PatternPolarity.BEARISH
    return PatternPolarity.BULLISH


def _matches_at(
    bars: Sequence[PriceBar], position: int
) -> list[tuple[str, PatternPolarity]]:
    found: list[tuple[str, PatternPolarity]] = []

    if is_doji(bars[position]):
        found.append(("doji", _doji_polarity(bars, position)))

    for name, polarity, needed, predicate in _DETECTORS:
        start = position - needed + 1
        if start < 0:
            continue
        if predicate(*bars[start : position + 1]):
            found.append((name, polarity))

    return found


def pattern_accuracy(
    bars: Sequence[PriceBar],
    name: str,
    polarity: PatternPolarity,
    position: int,
    lookback: int = 100,
) -> float:
    """
    Historical hit rate of a pattern before ``position``.

    Replays the detector over the ``lookback`` bars preceding ``position``.
    A detection at bar i succeeds when the close ``ACCURACY_HORIZON`` bars
    later beats the open of bar i + 1 in the pattern's polarity.

    Returns:
        Success fraction in [0, 1]; 0.5 when history is insufficient or the
        pattern never occurred.
    """
    if position < lookback:
        return DEFAULT_ACCURACY

    successes = 0
    total = 0
    for i in range(position - lookback, position):
        future_index = i + ACCURACY_HORIZON
        if future_index >= len(bars) or i + 1 >= len(bars):
            continue
        if (name, polarity) not in _matches_at(bars, i):
            continue

        next_open = bars[i + 1].open
        future_close = bars[future_index].close
        total += 1
        if polarity is PatternPolarity.BULLISH:
            successes += future_close > next_open
        else:
            successes += future_close < next_open

    if total == 0:
        return DEFAULT_ACCURACY
    return successes / total


def detect_patterns(
    bars: Sequence[PriceBar],
    lookback: int = 100,
    position: Optional[int] = None,
) -> list[CandlestickPattern]:
    """
    Detect candlestick patterns ending at ``position`` (default: last bar).

    Args:
        bars: Bars in ascending time order
        lookback: Bars replayed to estimate each pattern's accuracy
        position: Bar index to inspect

    Returns:
        Detected patterns; empty for fewer than 3 bars
    """
    if len(bars) < 3:
        return []

    if position is None:
        position = len(bars) - 1

    return [
        CandlestickPattern(
            name=name,
            polarity=polarity,
            reliability=RELIABILITY[name],
            position=position,
            timestamp=bars[position].timestamp,
            accuracy=pattern_accuracy(bars, name, polarity, position, lookback),
        )
        for name, polarity in _matches_at(bars, position)
    ]
