"""Tests for the composite scorer."""

from datetime import datetime, timezone

import pytest

from signal_core.models.analysis import (
    BollingerBands,
    CandlestickPattern,
    IndicatorSet,
    MacdValues,
    MlPrediction,
    MlTrend,
    PatternPolarity,
    PriceChanges,
    ScoringInputs,
    SentimentReading,
    StochasticValues,
)
from signal_core.models.config import ScoringWeights, SuccessWeights
from signal_core.models.signal import Direction
from signal_core.scoring import CompositeScorer


def make_indicators(**overrides) -> IndicatorSet:
    """Neutral-ish indicator snapshot around a price of 100."""
    values = dict(
        sma20=100.0,
        sma50=100.0,
        sma200=100.0,
        ema12=100.0,
        ema26=100.0,
        rsi=50.0,
        macd=MacdValues(line=0.0, signal=0.0, histogram=0.0),
        bollinger=BollingerBands(upper=105.0, middle=100.0, lower=95.0),
        stochastic=StochasticValues(k=50.0, d=50.0),
        atr=2.0,
    )
    values.update(overrides)
    return IndicatorSet(**values)


def bullish_inputs() -> ScoringInputs:
    return ScoringInputs(
        price=101.0,
        indicators=make_indicators(
            sma20=99.0,
            sma50=97.0,
            sma200=90.0,
            rsi=28.0,
            macd=MacdValues(line=1.5, signal=1.0, histogram=0.5),
            bollinger=BollingerBands(upper=110.0, middle=102.0, lower=94.0),
            stochastic=StochasticValues(k=15.0, d=12.0),
        ),
        changes=PriceChanges(change_1=1.0, change_5=3.0, change_20=8.0),
        volume_ratio=2.0,
        sentiment=SentimentReading(score=0.6, magnitude=0.8),
        prediction=MlPrediction(trend=MlTrend.UP, confidence=80.0),
        patterns=(
            CandlestickPattern(
                name="hammer",
                polarity=PatternPolarity.BULLISH,
                reliability=4,
                position=199,
                timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
                accuracy=0.7,
            ),
        ),
    )


def bearish_inputs() -> ScoringInputs:
    return ScoringInputs(
        price=99.0,
        indicators=make_indicators(
            sma20=101.0,
            sma50=103.0,
            sma200=110.0,
            rsi=75.0,
            macd=MacdValues(line=-1.5, signal=-1.0, histogram=-0.5),
            bollinger=BollingerBands(upper=98.0, middle=95.0, lower=92.0),
            stochastic=StochasticValues(k=85.0, d=88.0),
        ),
        changes=PriceChanges(change_1=-1.0, change_5=-3.0, change_20=-8.0),
        volume_ratio=2.0,
        sentiment=SentimentReading(score=-0.6),
        prediction=MlPrediction(trend=MlTrend.DOWN, confidence=90.0),
    )


class TestDirection:
    """Tests for direction choice."""

    def test_bullish_setup_picks_buy(self):
        result = CompositeScorer().score(bullish_inputs())

        assert result.direction == Direction.BUY
        assert result.breakdown.buy_score > result.breakdown.sell_score
        assert result.direction_score == result.breakdown.buy_score

    def test_bearish_setup_picks_sell(self):
        result = CompositeScorer().score(bearish_inputs())

        assert result.direction == Direction.SELL
        assert result.breakdown.sell_score > result.breakdown.buy_score

    def test_tie_favours_buy(self):
        """A perfectly flat snapshot scores both sides the same."""
        inputs = ScoringInputs(
            price=100.0,
            indicators=make_indicators(
                stochastic=StochasticValues(k=50.0, d=50.0),
            ),
            changes=PriceChanges(),
        )
        result = CompositeScorer().score(inputs)

        assert result.breakdown.buy_score == result.breakdown.sell_score
        assert result.direction == Direction.BUY


class TestFactors:
    """Tests for individual factor fractions."""

    def test_fully_aligned_buy_factors(self):
        factors = CompositeScorer().factors(bullish_inputs(), Direction.BUY)

        assert factors.price_trend == 1.0
        assert factors.ma_alignment == 1.0
        assert factors.rsi_zone == 1.0
        assert factors.macd_posture == 1.0
        assert factors.bollinger_position == 0.5
        assert factors.stochastic_zone == 1.0
        assert factors.volume_surge == 1.0
        assert factors.sentiment == 1.0
        assert factors.ml_trend == pytest.approx(0.8)

    def test_ma_alignment_without_sma200(self):
        inputs = ScoringInputs(
            price=101.0,
            indicators=make_indicators(sma20=100.0, sma50=102.0, sma200=None),
            changes=PriceChanges(),
        )
        factors = CompositeScorer().factors(inputs, Direction.BUY)
        assert factors.ma_alignment == pytest.approx(0.5)

    def test_sell_mirrors_rsi_zone(self):
        inputs = ScoringInputs(
            price=100.0,
            indicators=make_indicators(rsi=75.0),
            changes=PriceChanges(),
        )
        scorer = CompositeScorer()
        assert scorer.factors(inputs, Direction.SELL).rsi_zone == 1.0
        assert scorer.factors(inputs, Direction.BUY).rsi_zone == 0.0


class TestScores:
    """Tests for success rate and clamping."""

    def test_scores_within_bounds(self):
        for inputs in (bullish_inputs(), bearish_inputs()):
            result = CompositeScorer().score(inputs)
            assert 0.0 <= result.success_rate <= 100.0
            assert 0.0 <= result.direction_score <= 100.0

    def test_extreme_inputs_are_clamped(self):
        inputs = ScoringInputs(
            price=1e-9,
            indicators=make_indicators(rsi=-50.0, atr=1e12),
            changes=PriceChanges(change_1=1e9, change_5=1e9, change_20=1e9),
            volume_ratio=1e9,
            sentiment=SentimentReading(score=50.0),
            prediction=MlPrediction(trend=MlTrend.UP, confidence=1e6),
        )
        result = CompositeScorer().score(inputs)
        assert 0.0 <= result.success_rate <= 100.0
        assert 0.0 <= result.direction_score <= 100.0

    def test_deterministic(self):
        scorer = CompositeScorer()
        first = scorer.score(bullish_inputs())
        second = CompositeScorer().score(bullish_inputs())
        assert first == second

    def test_success_breakdown_sums_to_rate(self):
        result = CompositeScorer().score(bullish_inputs())
        assert result.success_rate == pytest.approx(round(result.success.total, 2))

    def test_bullish_success_rate_is_high(self):
        result = CompositeScorer().score(bullish_inputs())
        assert result.success_rate > 75.0

    def test_custom_weights(self):
        weights = ScoringWeights(
            price_trend=100,
            ma_alignment=0,
            rsi_zone=0,
            macd_posture=0,
            bollinger_position=0,
            stochastic_zone=0,
            volume_surge=0,
            sentiment=0,
            ml_trend=0,
        )
        result = CompositeScorer(weights=weights).score(bullish_inputs())
        assert result.direction_score == 100.0


class TestPatternConfluence:
    """Tests for candlestick pattern contribution."""

    def test_no_patterns_is_neutral(self):
        assert CompositeScorer.pattern_confluence((), Direction.BUY) == 0.5

    def test_opposing_pattern_lowers_confluence(self):
        pattern = CandlestickPattern(
            name="shooting_star",
            polarity=PatternPolarity.BEARISH,
            reliability=5,
            position=10,
            timestamp=None,
            accuracy=1.0,
        )
        assert CompositeScorer.pattern_confluence((pattern,), Direction.BUY) == 0.0
        assert CompositeScorer.pattern_confluence((pattern,), Direction.SELL) == 1.0


class TestWeightsValidation:
    """Weights must total 100."""

    def test_scoring_weights_must_total_100(self):
        with pytest.raises(ValueError):
            ScoringWeights(price_trend=50)

    def test_success_weights_must_total_100(self):
        with pytest.raises(ValueError):
            SuccessWeights(patterns=40)
