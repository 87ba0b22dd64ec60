"""Technical indicators for signal scoring.

All functions accept Decimal or float sequences and return plain floats.
Short input never raises: each indicator falls back to a neutral value or to
the mean of whatever data is available, so the scorer always has a complete
IndicatorSet to work with.
"""

from decimal import Decimal
from typing import Sequence, Union

import numpy as np

from signal_core.models.analysis import (
    BollingerBands,
    IndicatorSet,
    MacdValues,
    PriceChanges,
    StochasticValues,
)
from signal_core.models.config import IndicatorConfig
from signal_core.models.price import PriceBar

Number = Union[Decimal, float, int]

NEUTRAL_RSI = 50.0
NEUTRAL_STOCHASTIC = 50.0


def _to_array(values: Sequence[Number]) -> np.ndarray:
    return np.array([float(v) for v in values], dtype=np.float64)


# =============================================================================
# Moving averages
# =============================================================================

def sma(values: Sequence[Number], period: int) -> float:
    """
    Simple Moving Average of the trailing ``period`` values.

    Falls back to the mean of all values when fewer than ``period`` are
    available, and to 0.0 for empty input.
    """
    arr = _to_array(values)
    if len(arr) == 0:
        return 0.0
    return float(np.mean(arr[-period:]))


def ema_series(values: Sequence[Number], period: int) -> list[float]:
    """
    Exponential Moving Average series.

    Seeded with the mean of the first ``period`` values, then smoothed with
    multiplier ``2 / (period + 1)``. The first element corresponds to input
    index ``period - 1``; an empty list is returned for short input.

    Args:
        values: Sequence of values
        period: EMA period

    Returns:
        EMA values aligned to the end of the input
    """
    arr = _to_array(values)
    if period <= 0 or len(arr) < period:
        return []

    multiplier = 2.0 / (period + 1)
    result = np.empty(len(arr) - period + 1, dtype=np.float64)
    result[0] = np.mean(arr[:period])

    for i in range(1, len(result)):
        result[i] = arr[period - 1 + i] * multiplier + result[i - 1] * (1 - multiplier)

    return result.tolist()


def ema(values: Sequence[Number], period: int) -> float:
    """Latest EMA value (SMA fallback when shorter than ``period``)."""
    series = ema_series(values, period)
    if not series:
        return sma(values, period)
    return series[-1]


def std_dev(values: Sequence[Number], period: int) -> float:
    """Population standard deviation of the trailing window."""
    arr = _to_array(values)
    if len(arr) == 0:
        return 0.0
    return float(np.std(arr[-period:]))


# =============================================================================
# Oscillators
# =============================================================================

def rsi(closes: Sequence[Number], period: int = 14) -> float:
    """
    Relative Strength Index with Wilder smoothing.

    Returns 50 when there are fewer than ``period + 1`` closes and 100 when
    the average loss is zero.
    """
    arr = _to_array(closes)
    if len(arr) < period + 1:
        return NEUTRAL_RSI

    deltas = np.diff(arr)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return float(min(max(100.0 - 100.0 / (1.0 + rs), 0.0), 100.0))


def macd(
    closes: Sequence[Number],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MacdValues:
    """
    MACD line, signal line and histogram.

    line = EMA(fast) - EMA(slow); signal = EMA(signal) of the line series
    (mean of the line when it is shorter than ``signal``). The histogram is
    always exactly ``line - signal``. Fewer than ``slow`` closes yields zeros.
    """
    if len(closes) < slow:
        return MacdValues(line=0.0, signal=0.0, histogram=0.0)

    fast_series = np.array(ema_series(closes, fast))
    slow_series = np.array(ema_series(closes, slow))
    line_series = fast_series[-len(slow_series):] - slow_series

    line = float(line_series[-1])
    signal_value = ema(line_series.tolist(), signal)
    return MacdValues(line=line, signal=signal_value, histogram=line - signal_value)


def bollinger_bands(
    closes: Sequence[Number],
    period: int = 20,
    k: float = 2.0,
) -> BollingerBands:
    """Bollinger Bands: SMA middle band +/- ``k`` standard deviations."""
    middle = sma(closes, period)
    width = k * std_dev(closes, period)
    return BollingerBands(upper=middle + width, middle=middle, lower=middle - width)


def _percent_k(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, end: int, period: int
) -> float:
    start = end - period + 1
    highest_high = float(np.max(highs[start : end + 1]))
    lowest_low = float(np.min(lows[start : end + 1]))
    if highest_high == lowest_low:
        return NEUTRAL_STOCHASTIC
    return (float(closes[end]) - lowest_low) / (highest_high - lowest_low) * 100.0


def stochastic(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
    period: int = 14,
    smooth_d: bool = True,
) -> StochasticValues:
    """
    Stochastic oscillator.

    %K = (close - lowest low) / (highest high - lowest low) * 100, 50 for a
    flat range. With ``smooth_d`` %D is the 3-period SMA of %K; without it %D
    equals %K. Short input yields {50, 50}.
    """
    n = len(closes)
    if n < period or period <= 0:
        return StochasticValues(k=NEUTRAL_STOCHASTIC, d=NEUTRAL_STOCHASTIC)

    h, l, c = _to_array(highs), _to_array(lows), _to_array(closes)
    k = _percent_k(h, l, c, n - 1, period)

    if not smooth_d:
        return StochasticValues(k=k, d=k)

    first = max(period - 1, n - 3)
    recent_k = [_percent_k(h, l, c, end, period) for end in range(first, n)]
    return StochasticValues(k=k, d=float(np.mean(recent_k)))


# =============================================================================
# Volatility & volume
# =============================================================================

def true_range(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
) -> list[float]:
    """
    True Range series.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close)); the
    first bar uses high - low.
    """
    n = len(highs)
    if n == 0:
        return []

    h, l, c = _to_array(highs), _to_array(lows), _to_array(closes)
    tr = np.empty(n, dtype=np.float64)
    tr[0] = h[0] - l[0]
    if n > 1:
        prev = c[:-1]
        tr[1:] = np.maximum(
            h[1:] - l[1:],
            np.maximum(np.abs(h[1:] - prev), np.abs(l[1:] - prev)),
        )
    return tr.tolist()


def atr(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
    period: int = 14,
) -> float:
    """Average True Range: mean of the trailing ``period`` true ranges."""
    tr = true_range(highs, lows, closes)
    if not tr:
        return 0.0
    return float(np.mean(tr[-period:]))


def price_changes(closes: Sequence[Number]) -> PriceChanges:
    """Percentage change of the last close vs 1, 5 and 20 bars back."""
    arr = _to_array(closes)

    def pct(bars_back: int) -> float:
        if len(arr) <= bars_back or arr[-1 - bars_back] == 0:
            return 0.0
        base = arr[-1 - bars_back]
        return float((arr[-1] - base) / base * 100.0)

    return PriceChanges(change_1=pct(1), change_5=pct(5), change_20=pct(20))


def volume_ratio(volumes: Sequence[Number], period: int = 10) -> float:
    """Latest volume relative to the mean of the preceding ``period`` volumes.

    1.0 when there is no history or the average is zero.
    """
    arr = _to_array(volumes)
    if len(arr) < 2:
        return 1.0
    average = float(np.mean(arr[-period - 1 : -1]))
    if average <= 0:
        return 1.0
    return float(arr[-1] / average)


# =============================================================================
# IndicatorCalculator class
# =============================================================================

class IndicatorCalculator:
    """Calculator for the full indicator set used by the composite scorer."""

    def __init__(self, config: IndicatorConfig | None = None):
        self.config = config or IndicatorConfig()

    def calculate(self, bars: Sequence[PriceBar]) -> IndicatorSet:
        """
        Calculate all indicators for the given bars.

        Args:
            bars: Bars in ascending time order

        Returns:
            Latest indicator values
        """
        cfg = self.config
        closes = [b.close for b in bars]
        highs = [b.high for b in bars]
        lows = [b.low for b in bars]

        sma_long = sma(closes, cfg.sma_long) if len(closes) >= cfg.sma_long else None

        return IndicatorSet(
            sma20=sma(closes, cfg.sma_short),
            sma50=sma(closes, cfg.sma_medium),
            sma200=sma_long,
            ema12=ema(closes, cfg.ema_fast),
            ema26=ema(closes, cfg.ema_slow),
            rsi=rsi(closes, cfg.rsi_period),
            macd=macd(closes, cfg.ema_fast, cfg.ema_slow, cfg.macd_signal),
            bollinger=bollinger_bands(closes, cfg.bollinger_period, cfg.bollinger_k),
            stochastic=stochastic(
                highs,
                lows,
                closes,
                cfg.stochastic_period,
                smooth_d=cfg.stochastic_smooth_d,
            ),
            atr=atr(highs, lows, closes, cfg.atr_period),
        )

    def changes(self, bars: Sequence[PriceBar]) -> PriceChanges:
        return price_changes([b.close for b in bars])

    def volume_ratio(self, bars: Sequence[PriceBar]) -> float:
        return volume_ratio([b.volume for b in bars], self.config.volume_period)
