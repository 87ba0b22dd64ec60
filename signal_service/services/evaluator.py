"""Symbol evaluator: price history -> indicators -> score -> signal.

Steps for one symbol are strictly sequential. Across symbols evaluations are
independent and run concurrently with a best-effort join: a symbol that
fails or times out simply produces no candidate.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from signal_core.indicators import IndicatorCalculator, detect_patterns
from signal_core.models.analysis import (
    NEUTRAL_PREDICTION,
    NEUTRAL_SENTIMENT,
    CandlestickPattern,
    IndicatorSet,
    MlPrediction,
    PriceChanges,
    ScoreResult,
    ScoringInputs,
    SentimentReading,
)
from signal_core.models.config import EngineConfig
from signal_core.models.price import PriceBar, PriceSeries
from signal_core.models.signal import Signal
from signal_core.protocols import InsightSource, MarketDataSource, Unavailable
from signal_core.scoring import CompositeScorer
from signal_core.signal_factory import SignalFactory
from signal_service.storage.history_cache import HistoryCache

logger = logging.getLogger(__name__)

# Closes sent to the ML prediction service
PREDICTION_WINDOW = 60


@dataclass(frozen=True)
class Analysis:
    """Everything computed for one symbol in one evaluation."""

    symbol: str
    price: Decimal
    indicators: IndicatorSet
    changes: PriceChanges
    volume_ratio: float
    patterns: tuple[CandlestickPattern, ...]
    sentiment: SentimentReading
    prediction: MlPrediction
    score: ScoreResult
    signal: Signal | None


class SignalEvaluator:
    """Evaluate symbols into candidate signals."""

    def __init__(
        self,
        market_data: MarketDataSource,
        insights: InsightSource | None = None,
        config: EngineConfig | None = None,
        history_cache: HistoryCache | None = None,
        history_bars: int = 200,
        call_timeout: float = 10.0,
        max_concurrency: int = 8,
    ):
        self.market_data = market_data
        self.insights = insights
        self.config = config or EngineConfig()
        self.history_cache = history_cache
        self.history_bars = history_bars
        self.call_timeout = call_timeout
        self.max_concurrency = max_concurrency

        self.calculator = IndicatorCalculator(self.config.indicators)
        self.scorer = CompositeScorer(self.config.scoring, self.config.success)
        self.factory = SignalFactory(self.config.factory)

    # -------------------------------------------------------------------------
    # Collaborator calls (each with a timeout)
    # -------------------------------------------------------------------------

    async def _history(self, symbol: str) -> list[PriceBar] | None:
        if self.history_cache is not None:
            cached = self.history_cache.get(symbol, self.history_bars)
            if cached is not None:
                return cached

        try:
            result = await asyncio.wait_for(
                self.market_data.fetch_price_history(symbol, self.history_bars),
                self.call_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"History fetch timed out for {symbol}")
            return None

        if isinstance(result, Unavailable):
            logger.warning(f"History unavailable for {symbol}: {result.reason}")
            return None

        bars = PriceSeries.from_bars(symbol, result, max_size=self.history_bars).bars
        if self.history_cache is not None and bars:
            # A short answer means the symbol has no older history
            self.history_cache.put(
                symbol, bars, complete=len(result) < self.history_bars
            )
        return bars

    async def _current_price(self, symbol: str) -> Decimal | None:
        try:
            result = await asyncio.wait_for(
                self.market_data.fetch_current_price(symbol), self.call_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Current price fetch timed out for {symbol}")
            return None

        if isinstance(result, Unavailable):
            logger.warning(f"Current price unavailable for {symbol}: {result.reason}")
            return None
        return result

    async def _sentiment(self, symbol: str) -> SentimentReading:
        if self.insights is None:
            return NEUTRAL_SENTIMENT
        try:
            result = await asyncio.wait_for(
                self.insights.fetch_sentiment(symbol), self.call_timeout
            )
        except Exception as e:
            logger.warning(f"Sentiment failed for {symbol}, using neutral: {e!r}")
            return NEUTRAL_SENTIMENT
        if isinstance(result, Unavailable):
            return NEUTRAL_SENTIMENT
        return result

    async def _prediction(
        self, symbol: str, closes: Sequence[Decimal]
    ) -> MlPrediction:
        if self.insights is None:
            return NEUTRAL_PREDICTION
        try:
            result = await asyncio.wait_for(
                self.insights.fetch_ml_prediction(symbol, closes), self.call_timeout
            )
        except Exception as e:
            logger.warning(f"Prediction failed for {symbol}, using neutral: {e!r}")
            return NEUTRAL_PREDICTION
        if isinstance(result, Unavailable):
            return NEUTRAL_PREDICTION
        return result

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    async def analyze(self, symbol: str, replaces: str | None = None) -> Analysis | None:
        """
        Run the full pipeline for one symbol.

        Args:
            symbol: Instrument to evaluate
            replaces: ID of the closed signal a resulting signal replaces

        Returns:
            The analysis (its ``signal`` may be None when levels are invalid),
            or None when history is unavailable or too short, or the current
            price cannot be fetched
        """
        bars = await self._history(symbol)
        if bars is None:
            return None
        if len(bars) < self.config.min_bars:
            logger.debug(
                f"{symbol}: {len(bars)} bars < {self.config.min_bars}, skipped"
            )
            return None

        indicators = self.calculator.calculate(bars)
        changes = self.calculator.changes(bars)
        volume_ratio = self.calculator.volume_ratio(bars)
        patterns = tuple(
            detect_patterns(bars, lookback=self.config.indicators.pattern_lookback)
        )

        closes = [b.close for b in bars[-PREDICTION_WINDOW:]]
        entry, sentiment, prediction = await asyncio.gather(
            self._current_price(symbol),
            self._sentiment(symbol),
            self._prediction(symbol, closes),
        )
        # History may come from the cache; the entry is always the live price
        if entry is None:
            return None

        score = self.scorer.score(
            ScoringInputs(
                price=float(entry),
                indicators=indicators,
                changes=changes,
                volume_ratio=volume_ratio,
                sentiment=sentiment,
                prediction=prediction,
                patterns=patterns,
            )
        )

        signal = self.factory.build(
            symbol,
            entry=entry,
            atr=Decimal(str(indicators.atr)),
            score=score,
            changes=changes,
            replaces=replaces,
        )

        return Analysis(
            symbol=symbol,
            price=entry,
            indicators=indicators,
            changes=changes,
            volume_ratio=volume_ratio,
            patterns=patterns,
            sentiment=sentiment,
            prediction=prediction,
            score=score,
            signal=signal,
        )

    async def evaluate(self, symbol: str, replaces: str | None = None) -> Signal | None:
        """Build a candidate signal for ``symbol``, or None."""
        analysis = await self.analyze(symbol, replaces=replaces)
        return analysis.signal if analysis is not None else None

    async def evaluate_many(self, symbols: Sequence[str]) -> list[Signal]:
        """
        Evaluate symbols concurrently (bounded), skipping failures.

        Returns:
            Candidate signals in input order
        """
        if not symbols:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(symbol: str) -> Signal | None:
            async with semaphore:
                return await self.evaluate(symbol)

        results = await asyncio.gather(
            *(bounded(s) for s in symbols), return_exceptions=True
        )

        candidates: list[Signal] = []
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                logger.warning(f"Evaluation failed for {symbol}: {result!r}")
            elif result is not None:
                candidates.append(result)
        return candidates
