"""Data models for the signal engine."""

from signal_core.models.analysis import (
    NEUTRAL_PREDICTION,
    NEUTRAL_SENTIMENT,
    BollingerBands,
    CandlestickPattern,
    FactorScores,
    IndicatorSet,
    MacdValues,
    MlPrediction,
    MlTrend,
    PatternPolarity,
    PriceChanges,
    ScoreBreakdown,
    ScoreResult,
    ScoringInputs,
    SentimentReading,
    StochasticValues,
    SuccessBreakdown,
)
from signal_core.models.config import (
    EngineConfig,
    FactoryConfig,
    IndicatorConfig,
    QualityThresholds,
    ReplacementConfig,
    ScoringWeights,
    SuccessWeights,
)
from signal_core.models.price import PriceBar, PriceSeries
from signal_core.models.signal import Direction, Signal, SignalStatus, TimeframeClass

__all__ = [
    "BollingerBands",
    "CandlestickPattern",
    "Direction",
    "EngineConfig",
    "FactorScores",
    "FactoryConfig",
    "IndicatorConfig",
    "IndicatorSet",
    "MacdValues",
    "MlPrediction",
    "MlTrend",
    "NEUTRAL_PREDICTION",
    "NEUTRAL_SENTIMENT",
    "PatternPolarity",
    "PriceBar",
    "PriceChanges",
    "PriceSeries",
    "QualityThresholds",
    "ReplacementConfig",
    "ScoreBreakdown",
    "ScoreResult",
    "ScoringInputs",
    "ScoringWeights",
    "SentimentReading",
    "Signal",
    "SignalStatus",
    "StochasticValues",
    "SuccessBreakdown",
    "SuccessWeights",
    "TimeframeClass",
]
