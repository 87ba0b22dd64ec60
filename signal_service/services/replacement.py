"""Replacement engine.

Refills the active signal pool: draws a candidate pool from the symbol
universe, evaluates it, keeps the best candidates by quality, and persists
them. Replacing one signal and replacing many go through the same routine
with a different ``count``.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Sequence

from signal_core.models.config import EngineConfig
from signal_core.models.signal import Signal, SignalStatus
from signal_core.protocols import SignalStore
from signal_core.quality import select_replacements
from signal_service.services.evaluator import SignalEvaluator

logger = logging.getLogger(__name__)


@dataclass
class ReplacementResult:
    requested: int
    signals: list[Signal] = field(default_factory=list)

    @property
    def shortfall(self) -> int:
        """Slots that could not be filled this cycle."""
        return max(self.requested - len(self.signals), 0)


class ReplacementEngine:
    """Generate, rank and persist replacement signals."""

    def __init__(
        self,
        evaluator: SignalEvaluator,
        store: SignalStore,
        universe: Sequence[str],
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.evaluator = evaluator
        self.store = store
        self.universe = list(dict.fromkeys(universe))
        self.config = config or EngineConfig()
        self.rng = rng or random.Random()

    def pool_size(self, count: int) -> int:
        cfg = self.config.replacement
        return max(cfg.pool_multiplier * count, cfg.min_pool_size)

    def draw_symbols(self, size: int, exclude: set[str] | None = None) -> list[str]:
        """
        Draw ``size`` symbols from the shuffled universe.

        Symbols are drawn without replacement inside a batch (one shuffled
        pass over the universe); further batches start over, so a small
        universe is sampled with replacement across batches.
        """
        eligible = [s for s in self.universe if s not in (exclude or set())]
        if not eligible or size <= 0:
            return []

        draws: list[str] = []
        while len(draws) < size:
            batch = list(eligible)
            self.rng.shuffle(batch)
            draws.extend(batch)
        return draws[:size]

    async def replace(
        self, count: int, closed: Sequence[Signal] = ()
    ) -> ReplacementResult:
        """
        Produce up to ``count`` new ACTIVE signals.

        Args:
            count: Number of replacements wanted
            closed: Closed signals being replaced, linked in order to the
                new signals through ``replaces``

        Returns:
            The persisted replacements; an empty or short result when not
            enough usable candidates were generated
        """
        result = ReplacementResult(requested=max(count, 0))
        if count <= 0:
            return result

        exclude: set[str] = set()
        if self.config.replacement.exclude_active_symbols:
            active = await self.store.query(SignalStatus.ACTIVE)
            exclude = {s.symbol for s in active}

        draws = self.draw_symbols(self.pool_size(count), exclude)
        # Evaluation is deterministic within a cycle; score each symbol once
        symbols = list(dict.fromkeys(draws))
        candidates = await self.evaluator.evaluate_many(symbols)

        if not candidates:
            logger.warning(
                f"No usable replacement candidates from {len(symbols)} symbols, "
                f"pool below target size by {count}"
            )
            return result

        selected = select_replacements(candidates, count, self.config.quality)

        for i, signal in enumerate(selected):
            if i < len(closed):
                signal = signal.model_copy(update={"replaces": closed[i].id})
            try:
                stored = await self.store.insert(signal)
            except Exception as e:
                logger.error(f"Failed to persist replacement {signal.symbol}: {e}")
                continue
            result.signals.append(stored)
            logger.info(
                f"Replacement signal {stored.id}: {stored.symbol} "
                f"{stored.direction.value.upper()} success={stored.success_rate} "
                f"score={stored.direction_score} rr={stored.risk_reward_ratio:.2f}"
                + (f" replaces {stored.replaces}" if stored.replaces else "")
            )

        if result.shortfall:
            logger.warning(
                f"Pool below target size: {len(result.signals)}/{count} replacements "
                f"from {len(candidates)} candidates"
            )
        return result
