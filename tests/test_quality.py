"""Tests for replacement quality selection."""

from decimal import Decimal

import pytest

from signal_core.models.config import QualityThresholds
from signal_core.models.signal import Direction, Signal, TimeframeClass
from signal_core.quality import (
    candidate_risk_reward,
    is_high_quality,
    proximity_score,
    select_replacements,
)


def make_candidate(symbol, success_rate, direction_score, rr=3):
    """BUY candidate at 100 with stop 95 and a target giving ``rr``."""
    stop_distance = Decimal("5")
    return Signal(
        symbol=symbol,
        direction=Direction.BUY,
        entry_price=Decimal("100"),
        target_price=Decimal("100") + stop_distance * Decimal(str(rr)),
        stop_loss_price=Decimal("100") - stop_distance,
        success_rate=success_rate,
        direction_score=direction_score,
        timeframe_class=TimeframeClass.LONG,
    )


class TestClassification:
    """Tests for the high-quality bar and proximity score."""

    def test_candidate_risk_reward(self):
        assert candidate_risk_reward(make_candidate("A", 80, 80, rr=2.5)) == pytest.approx(2.5)

    def test_candidate_risk_reward_sell(self):
        candidate = Signal(
            symbol="ETHUSDT",
            direction=Direction.SELL,
            entry_price=Decimal("100"),
            target_price=Decimal("85"),
            stop_loss_price=Decimal("104"),
            success_rate=80,
            direction_score=80,
            timeframe_class=TimeframeClass.LONG,
        )
        assert candidate_risk_reward(candidate) == pytest.approx(3.75)

    @pytest.mark.parametrize(
        "sr,ds,rr,expected",
        [
            (75, 70, 2.5, True),
            (80, 80, 3, True),
            (74.9, 90, 3, False),
            (90, 69, 3, False),
            (90, 90, 2, False),
        ],
    )
    def test_is_high_quality(self, sr, ds, rr, expected):
        thresholds = QualityThresholds()
        assert is_high_quality(make_candidate("A", sr, ds, rr), thresholds) is expected

    def test_proximity_at_threshold_is_one(self):
        candidate = make_candidate("A", 75, 70, rr=2.5)
        assert proximity_score(candidate, QualityThresholds()) == pytest.approx(1.0)

    def test_proximity_weights(self):
        candidate = make_candidate("A", 37.5, 70, rr=2.5)
        # 0.5 * 0.5 + 0.3 * 1 + 0.2 * 1
        assert proximity_score(candidate, QualityThresholds()) == pytest.approx(0.75)


class TestSelectReplacements:
    """Tests for select_replacements."""

    def test_enough_high_quality(self):
        candidates = [
            make_candidate("A", 80, 75),
            make_candidate("B", 90, 75),
            make_candidate("C", 60, 50),
            make_candidate("D", 85, 80),
        ]
        selected = select_replacements(candidates, 2)
        assert [s.symbol for s in selected] == ["B", "D"]

    def test_fills_from_proximity(self):
        candidates = [
            make_candidate("HQ", 80, 75),
            make_candidate("NEAR", 70, 68, rr=3),
            make_candidate("FAR", 40, 30, rr=1),
            make_candidate("MID", 60, 60, rr=3),
        ]
        selected = select_replacements(candidates, 3)

        assert {s.symbol for s in selected} == {"HQ", "NEAR", "MID"}
        # Final set ordered by success rate
        assert [s.success_rate for s in selected] == sorted(
            (s.success_rate for s in selected), reverse=True
        )

    def test_proximity_ranking_beats_success_rate(self):
        """Remainder is ranked by proximity, not success rate alone."""
        candidates = [
            make_candidate("HIGH_SR_POOR_RR", 74, 20, rr=0.5),
            make_candidate("BALANCED", 70, 69, rr=2.4),
        ]
        selected = select_replacements(candidates, 1)
        assert [s.symbol for s in selected] == ["BALANCED"]

    @pytest.mark.parametrize("count", [1, 3, 5, 8])
    def test_never_fewer_than_available(self, count):
        candidates = [make_candidate(f"S{i}", 50 + i, 40 + i, rr=1 + i / 4) for i in range(5)]
        selected = select_replacements(candidates, count)
        assert len(selected) == min(count, len(candidates))

    def test_empty_pool(self):
        assert select_replacements([], 3) == []

    def test_zero_count(self):
        assert select_replacements([make_candidate("A", 90, 90)], 0) == []
