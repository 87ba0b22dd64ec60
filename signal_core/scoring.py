"""Composite scorer.

Turns an indicator snapshot plus external insights into a direction, a 0-100
directional score and a 0-100 success rate. Every factor is a fraction in
[0, 1] multiplied by its configured weight, so each contribution can be
inspected on its own through the returned breakdowns.
"""

from typing import Sequence

from signal_core.models.analysis import (
    CandlestickPattern,
    FactorScores,
    MlTrend,
    ScoreBreakdown,
    ScoreResult,
    ScoringInputs,
    SuccessBreakdown,
)
from signal_core.models.config import ScoringWeights, SuccessWeights
from signal_core.models.signal import Direction


VOLUME_SURGE_RATIO = 1.5
MAX_RELIABILITY = 5


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _fraction(checks: Sequence[bool]) -> float:
    if not checks:
        return 0.0
    return sum(1 for c in checks if c) / len(checks)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class CompositeScorer:
    """Deterministic multi-factor scorer."""

    def __init__(
        self,
        weights: ScoringWeights | None = None,
        success_weights: SuccessWeights | None = None,
    ):
        self.weights = weights or ScoringWeights()
        self.success_weights = success_weights or SuccessWeights()

    # -------------------------------------------------------------------------
    # Directional factors
    # -------------------------------------------------------------------------

    def factors(self, inputs: ScoringInputs, direction: Direction) -> FactorScores:
        """Factor fractions for one direction (SELL mirrors BUY)."""
        ind = inputs.indicators
        ch = inputs.changes
        sign = direction.sign
        price = inputs.price

        price_trend = _fraction(
            [sign * ch.change_1 > 0, sign * ch.change_5 > 0, sign * ch.change_20 > 0]
        )

        ma_checks = [sign * (price - ind.sma20) > 0, sign * (ind.sma20 - ind.sma50) > 0]
        if ind.sma200 is not None:
            ma_checks.append(sign * (ind.sma50 - ind.sma200) > 0)
        ma_alignment = _fraction(ma_checks)

        # Distance of RSI from the favourable extreme, in the direction's frame
        rsi = ind.rsi if direction == Direction.BUY else 100.0 - ind.rsi
        if rsi < 30:
            rsi_zone = 1.0
        elif rsi < 50:
            rsi_zone = 0.6
        elif rsi < 70:
            rsi_zone = 0.3
        else:
            rsi_zone = 0.0

        macd_posture = _fraction(
            [sign * ind.macd.line > 0, sign * ind.macd.histogram > 0]
        )

        bands = ind.bollinger
        if direction == Direction.BUY:
            if price <= bands.lower:
                bollinger_position = 1.0
            elif price < bands.middle:
                bollinger_position = 0.5
            else:
                bollinger_position = 0.0
        else:
            if price >= bands.upper:
                bollinger_position = 1.0
            elif price > bands.middle:
                bollinger_position = 0.5
            else:
                bollinger_position = 0.0

        k, d = ind.stochastic.k, ind.stochastic.d
        if direction == Direction.BUY:
            if k < 20:
                stochastic_zone = 1.0
            elif k > d and k < 80:
                stochastic_zone = 0.5
            else:
                stochastic_zone = 0.0
        else:
            if k > 80:
                stochastic_zone = 1.0
            elif k < d and k > 20:
                stochastic_zone = 0.5
            else:
                stochastic_zone = 0.0

        volume_surge = (
            1.0
            if inputs.volume_ratio >= VOLUME_SURGE_RATIO and sign * ch.change_1 > 0
            else 0.0
        )

        oriented_sentiment = sign * inputs.sentiment.score
        if oriented_sentiment > 0.2:
            sentiment = 1.0
        elif oriented_sentiment > 0:
            sentiment = 0.5
        else:
            sentiment = 0.0

        wanted_trend = MlTrend.UP if direction == Direction.BUY else MlTrend.DOWN
        if inputs.prediction.trend == wanted_trend:
            ml_trend = _clamp(inputs.prediction.confidence, 0.0, 100.0) / 100.0
        else:
            ml_trend = 0.0

        return FactorScores(
            price_trend=price_trend,
            ma_alignment=ma_alignment,
            rsi_zone=rsi_zone,
            macd_posture=macd_posture,
            bollinger_position=bollinger_position,
            stochastic_zone=stochastic_zone,
            volume_surge=volume_surge,
            sentiment=sentiment,
            ml_trend=ml_trend,
        )

    def weighted(self, factors: FactorScores) -> float:
        w = self.weights
        total = (
            factors.price_trend * w.price_trend
            + factors.ma_alignment * w.ma_alignment
            + factors.rsi_zone * w.rsi_zone
            + factors.macd_posture * w.macd_posture
            + factors.bollinger_position * w.bollinger_position
            + factors.stochastic_zone * w.stochastic_zone
            + factors.volume_surge * w.volume_surge
            + factors.sentiment * w.sentiment
            + factors.ml_trend * w.ml_trend
        )
        return round(_clamp(total), 2)

    # -------------------------------------------------------------------------
    # Success-rate rubric
    # -------------------------------------------------------------------------

    @staticmethod
    def _volatility_quality(inputs: ScoringInputs) -> float:
        if inputs.price <= 0:
            return 0.0
        relative_atr = inputs.indicators.atr / inputs.price
        if relative_atr <= 0.03:
            return 1.0
        if relative_atr <= 0.06:
            return 0.5
        return 0.0

    @staticmethod
    def pattern_confluence(
        patterns: Sequence[CandlestickPattern], direction: Direction
    ) -> float:
        """Pattern support for ``direction`` in [0, 1]; 0.5 with no patterns."""
        aligned = 0.0
        opposing = 0.0
        for pattern in patterns:
            strength = pattern.reliability / MAX_RELIABILITY * pattern.accuracy
            if pattern.polarity.agrees_with(direction):
                aligned += strength
            else:
                opposing += strength
        return _clamp(0.5 + 0.5 * aligned - 0.5 * opposing, 0.0, 1.0)

    def success(
        self, inputs: ScoringInputs, direction: Direction, factors: FactorScores
    ) -> SuccessBreakdown:
        sw = self.success_weights

        trend = sw.trend * _mean([factors.price_trend, factors.ma_alignment])
        oscillators = sw.oscillators * _mean(
            [factors.rsi_zone, factors.macd_posture, factors.stochastic_zone]
        )
        volume_quality = min(inputs.volume_ratio / VOLUME_SURGE_RATIO, 1.0)
        volatility_volume = sw.volatility_volume * _mean(
            [self._volatility_quality(inputs), max(volume_quality, 0.0)]
        )
        sentiment_ml = sw.sentiment_ml * _mean([factors.sentiment, factors.ml_trend])
        patterns = sw.patterns * self.pattern_confluence(inputs.patterns, direction)

        return SuccessBreakdown(
            trend=trend,
            oscillators=oscillators,
            volatility_volume=volatility_volume,
            sentiment_ml=sentiment_ml,
            patterns=patterns,
        )

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def score(self, inputs: ScoringInputs) -> ScoreResult:
        """
        Score both directions and pick the stronger one.

        Ties favour BUY. Both output scores are clamped to [0, 100].
        """
        buy = self.factors(inputs, Direction.BUY)
        sell = self.factors(inputs, Direction.SELL)
        buy_score = self.weighted(buy)
        sell_score = self.weighted(sell)

        direction = Direction.BUY if buy_score >= sell_score else Direction.SELL
        chosen = buy if direction == Direction.BUY else sell

        success = self.success(inputs, direction, chosen)
        success_rate = round(_clamp(success.total), 2)

        return ScoreResult(
            direction=direction,
            success_rate=success_rate,
            direction_score=max(buy_score, sell_score),
            breakdown=ScoreBreakdown(
                buy=buy, sell=sell, buy_score=buy_score, sell_score=sell_score
            ),
            success=success,
        )
