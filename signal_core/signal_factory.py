"""Signal factory: turn a score into a concrete trade signal."""

import logging
from decimal import Decimal
from typing import Optional

from signal_core.models.analysis import PriceChanges, ScoreResult
from signal_core.models.config import FactoryConfig
from signal_core.models.signal import Direction, Signal, TimeframeClass

logger = logging.getLogger(__name__)

# Prices are stored with 8 decimal places (Numeric(20, 8) in the signals table)
PRICE_QUANTUM = Decimal("0.00000001")


def risk_reward_ratio(
    direction: Direction,
    entry: Decimal,
    target: Decimal,
    stop: Decimal,
) -> Decimal:
    """
    Potential gain divided by potential loss.

    Both distances are measured from ``entry`` in the direction's frame. A
    non-positive loss is degenerate and yields 0.
    """
    if direction == Direction.BUY:
        gain = target - entry
        loss = entry - stop
    else:
        gain = entry - target
        loss = stop - entry

    if loss <= 0:
        logger.warning(
            f"Degenerate risk/reward: {direction.value} entry={entry} "
            f"target={target} stop={stop}"
        )
        return Decimal("0")

    return gain / loss


def classify_timeframe(
    changes: PriceChanges, config: FactoryConfig | None = None
) -> TimeframeClass:
    """Expected horizon from how fast price has been moving."""
    cfg = config or FactoryConfig()
    if abs(changes.change_1) > cfg.day_change_pct:
        return TimeframeClass.DAY
    if abs(changes.change_5) > cfg.short_change_pct:
        return TimeframeClass.SHORT
    if abs(changes.change_20) > cfg.medium_change_pct:
        return TimeframeClass.MEDIUM
    return TimeframeClass.LONG


class SignalFactory:
    """Derive entry/target/stop levels from ATR and build Signals."""

    def __init__(self, config: FactoryConfig | None = None):
        self.config = config or FactoryConfig()

    def levels(
        self, direction: Direction, entry: Decimal, atr: Decimal
    ) -> tuple[Decimal, Decimal]:
        """Return ``(stop_loss, target)`` for an entry and ATR."""
        stop_distance = self.config.stop_atr_mult * atr
        target_distance = self.config.target_atr_mult * atr

        if direction == Direction.BUY:
            return entry - stop_distance, entry + target_distance
        return entry + stop_distance, entry - target_distance

    def build(
        self,
        symbol: str,
        entry: Decimal,
        atr: Decimal,
        score: ScoreResult,
        changes: PriceChanges,
        replaces: Optional[str] = None,
    ) -> Optional[Signal]:
        """
        Materialize a Signal.

        Args:
            symbol: Instrument identifier
            entry: Entry price (the current price)
            atr: Average true range at signal time
            score: Composite scorer output
            changes: Recent price changes for timeframe classification
            replaces: ID of the closed signal this one replaces

        Returns:
            The new ACTIVE signal, or None when the levels would be invalid
            (non-positive ATR, a non-positive price level, or levels that
            collapse onto the entry at 8 decimal places)
        """
        entry = Decimal(str(entry))
        atr = Decimal(str(atr))

        if entry <= 0 or atr <= 0:
            logger.info(f"{symbol}: skipped, entry={entry} atr={atr}")
            return None

        entry = entry.quantize(PRICE_QUANTUM)
        stop, target = self.levels(score.direction, entry, atr)
        stop = stop.quantize(PRICE_QUANTUM)
        target = target.quantize(PRICE_QUANTUM)
        if stop <= 0 or target <= 0:
            logger.info(
                f"{symbol}: skipped, non-positive level (stop={stop}, target={target})"
            )
            return None

        if score.direction == Direction.BUY:
            ordered = stop < entry < target
        else:
            ordered = target < entry < stop
        if not ordered:
            logger.info(
                f"{symbol}: skipped, ATR {atr} too small for price precision "
                f"(entry={entry}, stop={stop}, target={target})"
            )
            return None

        return Signal(
            symbol=symbol,
            direction=score.direction,
            entry_price=entry,
            target_price=target,
            stop_loss_price=stop,
            success_rate=score.success_rate,
            direction_score=score.direction_score,
            timeframe_class=classify_timeframe(changes, self.config),
            risk_reward_ratio=risk_reward_ratio(score.direction, entry, target, stop),
            atr_at_signal=atr,
            replaces=replaces,
        )
