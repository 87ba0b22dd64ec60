"""Engine configuration models."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class IndicatorConfig(BaseModel):
    """Indicator periods."""

    sma_short: int = 20
    sma_medium: int = 50
    sma_long: int = 200
    ema_fast: int = 12
    ema_slow: int = 26
    macd_signal: int = 9
    rsi_period: int = 14
    bollinger_period: int = 20
    bollinger_k: float = 2.0
    stochastic_period: int = 14
    # False keeps %D equal to %K (unsmoothed); True uses SMA(3) of %K
    stochastic_smooth_d: bool = True
    atr_period: int = 14
    volume_period: int = 10
    pattern_lookback: int = 100


class ScoringWeights(BaseModel):
    """Directional score weights (points, must total 100)."""

    price_trend: float = 20
    ma_alignment: float = 15
    rsi_zone: float = 15
    macd_posture: float = 15
    bollinger_position: float = 10
    stochastic_zone: float = 10
    volume_surge: float = 5
    sentiment: float = 5
    ml_trend: float = 5

    @model_validator(mode="after")
    def _validate(self):
        total = sum(self.model_dump().values())
        if abs(total - 100) > 1e-9:
            raise ValueError(f"scoring weights must total 100, got {total}")
        return self


class SuccessWeights(BaseModel):
    """Success-rate bucket weights (points, must total 100)."""

    trend: float = 25
    oscillators: float = 25
    volatility_volume: float = 20
    sentiment_ml: float = 15
    patterns: float = 15

    @model_validator(mode="after")
    def _validate(self):
        total = sum(self.model_dump().values())
        if abs(total - 100) > 1e-9:
            raise ValueError(f"success weights must total 100, got {total}")
        return self


class FactoryConfig(BaseModel):
    """Level placement and timeframe classification."""

    stop_atr_mult: Decimal = Decimal("2")
    target_atr_mult: Decimal = Decimal("6")

    # Absolute % change thresholds for DAY / SHORT / MEDIUM
    day_change_pct: float = 3.0
    short_change_pct: float = 10.0
    medium_change_pct: float = 20.0


class QualityThresholds(BaseModel):
    """Minimums a candidate must meet to count as high quality."""

    min_success_rate: float = Field(default=75.0, gt=0)
    min_direction_score: float = Field(default=70.0, gt=0)
    min_risk_reward: float = Field(default=2.5, gt=0)

    # Proximity score weights for candidates below the bar
    success_rate_weight: float = 0.5
    direction_score_weight: float = 0.3
    risk_reward_weight: float = 0.2


class ReplacementConfig(BaseModel):
    """Candidate pool sizing for the replacement engine."""

    pool_multiplier: int = 3
    min_pool_size: int = 50
    # Skip symbols that already hold an active signal
    exclude_active_symbols: bool = True


class EngineConfig(BaseModel):
    """All tunables of the signal engine."""

    indicators: IndicatorConfig = IndicatorConfig()
    scoring: ScoringWeights = ScoringWeights()
    success: SuccessWeights = SuccessWeights()
    factory: FactoryConfig = FactoryConfig()
    quality: QualityThresholds = QualityThresholds()
    replacement: ReplacementConfig = ReplacementConfig()

    # Symbols with fewer bars are not evaluated at all
    min_bars: int = 30
