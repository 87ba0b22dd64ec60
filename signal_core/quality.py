"""Quality filtering and ranking of replacement candidates."""

import logging
from typing import Sequence

from signal_core.models.config import QualityThresholds
from signal_core.models.signal import Signal

logger = logging.getLogger(__name__)


def candidate_risk_reward(signal: Signal) -> float:
    """Risk/reward recomputed from the signal's own levels."""
    if signal.risk_amount <= 0:
        return 0.0
    return float(signal.reward_amount / signal.risk_amount)


def is_high_quality(signal: Signal, thresholds: QualityThresholds) -> bool:
    return (
        signal.success_rate >= thresholds.min_success_rate
        and signal.direction_score >= thresholds.min_direction_score
        and candidate_risk_reward(signal) >= thresholds.min_risk_reward
    )


def proximity_score(signal: Signal, thresholds: QualityThresholds) -> float:
    """Weighted closeness of a candidate to the high-quality bar."""
    return (
        thresholds.success_rate_weight
        * (signal.success_rate / thresholds.min_success_rate)
        + thresholds.direction_score_weight
        * (signal.direction_score / thresholds.min_direction_score)
        + thresholds.risk_reward_weight
        * (candidate_risk_reward(signal) / thresholds.min_risk_reward)
    )


def select_replacements(
    candidates: Sequence[Signal],
    count: int,
    thresholds: QualityThresholds | None = None,
) -> list[Signal]:
    """
    Pick up to ``count`` replacement signals from a candidate pool.

    High-quality candidates are taken first, best success rate first. When
    there are not enough of them the remaining slots are filled from the
    other candidates ranked by proximity score. The result is ordered by
    success rate, descending, and holds ``min(count, len(candidates))``
    signals.
    """
    thresholds = thresholds or QualityThresholds()
    if count <= 0 or not candidates:
        return []

    high: list[Signal] = []
    rest: list[Signal] = []
    for candidate in candidates:
        (high if is_high_quality(candidate, thresholds) else rest).append(candidate)

    high.sort(key=lambda s: s.success_rate, reverse=True)
    if len(high) >= count:
        return high[:count]

    needed = count - len(high)
    rest.sort(key=lambda s: proximity_score(s, thresholds), reverse=True)
    filled = rest[:needed]

    logger.info(
        f"Replacement selection: {len(high)} high quality, "
        f"{len(filled)} filled by proximity (needed {count})"
    )

    selected = high + filled
    selected.sort(key=lambda s: s.success_rate, reverse=True)
    return selected
