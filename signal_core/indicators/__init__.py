"""Technical indicators and candlestick patterns (pure math, no I/O)."""

from signal_core.indicators.indicators import (
    IndicatorCalculator,
    atr,
    bollinger_bands,
    ema,
    ema_series,
    macd,
    price_changes,
    rsi,
    sma,
    std_dev,
    stochastic,
    true_range,
    volume_ratio,
)
from signal_core.indicators.patterns import detect_patterns, pattern_accuracy

__all__ = [
    "IndicatorCalculator",
    "atr",
    "bollinger_bands",
    "detect_patterns",
    "ema",
    "ema_series",
    "macd",
    "pattern_accuracy",
    "price_changes",
    "rsi",
    "sma",
    "std_dev",
    "stochastic",
    "true_range",
    "volume_ratio",
]
