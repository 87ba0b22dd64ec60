"""Ephemeral analysis structures produced during one evaluation.

These are hot-path value objects (plain frozen dataclasses, not pydantic
models). Nothing here is persisted; each evaluation owns the instances it
creates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from signal_core.models.signal import Direction


@dataclass(frozen=True)
class MacdValues:
    line: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float

    @property
    def width(self) -> float:
        """Band width relative to the middle band (0 when middle is 0)."""
        if self.middle == 0:
            return 0.0
        return (self.upper - self.lower) / self.middle


@dataclass(frozen=True)
class StochasticValues:
    k: float
    d: float


@dataclass(frozen=True)
class IndicatorSet:
    """Latest indicator values for one symbol."""

    sma20: float
    sma50: float
    sma200: float | None
    ema12: float
    ema26: float
    rsi: float
    macd: MacdValues
    bollinger: BollingerBands
    stochastic: StochasticValues
    atr: float


@dataclass(frozen=True)
class PriceChanges:
    """Percentage change of the last close vs 1, 5 and 20 bars back."""

    change_1: float = 0.0
    change_5: float = 0.0
    change_20: float = 0.0


@dataclass(frozen=True)
class SentimentReading:
    score: float = 0.0  # -1 (bearish) .. 1 (bullish)
    magnitude: float = 0.5  # 0 .. 1


class MlTrend(str, Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class MlPrediction:
    trend: MlTrend = MlTrend.NEUTRAL
    confidence: float = 50.0  # 0 .. 100


NEUTRAL_SENTIMENT = SentimentReading()
NEUTRAL_PREDICTION = MlPrediction()


class PatternPolarity(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"

    def agrees_with(self, direction: Direction) -> bool:
        if direction == Direction.BUY:
            return self is PatternPolarity.BULLISH
        return self is PatternPolarity.BEARISH


@dataclass(frozen=True)
class CandlestickPattern:
    """A detected candlestick pattern at a bar position."""

    name: str
    polarity: PatternPolarity
    reliability: int  # 1 .. 5
    position: int
    timestamp: datetime | None
    accuracy: float = 0.5  # historical hit rate, 0 .. 1


@dataclass(frozen=True)
class FactorScores:
    """Per-factor fractions (0..1) for one direction."""

    price_trend: float = 0.0
    ma_alignment: float = 0.0
    rsi_zone: float = 0.0
    macd_posture: float = 0.0
    bollinger_position: float = 0.0
    stochastic_zone: float = 0.0
    volume_surge: float = 0.0
    sentiment: float = 0.0
    ml_trend: float = 0.0


@dataclass(frozen=True)
class ScoreBreakdown:
    """Directional scoring detail for both directions."""

    buy: FactorScores
    sell: FactorScores
    buy_score: float
    sell_score: float

    def factors_for(self, direction: Direction) -> FactorScores:
        return self.buy if direction == Direction.BUY else self.sell


@dataclass(frozen=True)
class SuccessBreakdown:
    """Success-rate bucket points for the chosen direction."""

    trend: float = 0.0
    oscillators: float = 0.0
    volatility_volume: float = 0.0
    sentiment_ml: float = 0.0
    patterns: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.trend
            + self.oscillators
            + self.volatility_volume
            + self.sentiment_ml
            + self.patterns
        )


@dataclass(frozen=True)
class ScoringInputs:
    """Everything the composite scorer looks at for one symbol."""

    price: float
    indicators: IndicatorSet
    changes: PriceChanges
    volume_ratio: float = 1.0
    sentiment: SentimentReading = NEUTRAL_SENTIMENT
    prediction: MlPrediction = NEUTRAL_PREDICTION
    patterns: tuple[CandlestickPattern, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ScoreResult:
    direction: Direction
    success_rate: float
    direction_score: float
    breakdown: ScoreBreakdown
    success: SuccessBreakdown
