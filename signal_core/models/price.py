"""Price bar (candlestick) data models."""

from datetime import datetime
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field


class PriceBar(BaseModel):
    """A single OHLCV bar."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal = Decimal("0")

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if this is a bearish (red) candle."""
        return self.close < self.open

    @property
    def body_size(self) -> Decimal:
        """Get the absolute size of the candle body."""
        return abs(self.close - self.open)

    @property
    def range_size(self) -> Decimal:
        """Get the full range (high - low) of the candle."""
        return self.high - self.low

    @property
    def upper_shadow(self) -> Decimal:
        """Distance from the top of the body to the high."""
        return self.high - max(self.open, self.close)

    @property
    def lower_shadow(self) -> Decimal:
        """Distance from the bottom of the body to the low."""
        return min(self.open, self.close) - self.low


class PriceSeries(BaseModel):
    """Ordered bars for one symbol, ascending by time, unique timestamps."""

    symbol: str
    bars: list[PriceBar] = Field(default_factory=list)
    max_size: int = 500

    @classmethod
    def from_bars(
        cls, symbol: str, bars: Iterable[PriceBar], max_size: int = 500
    ) -> "PriceSeries":
        """Build a series from bars in any order.

        Bars are sorted by timestamp; when two bars share a timestamp the
        later one in the input wins.
        """
        by_time: dict[datetime, PriceBar] = {}
        for bar in bars:
            by_time[bar.timestamp] = bar
        ordered = [by_time[ts] for ts in sorted(by_time)]
        series = cls(symbol=symbol, max_size=max_size)
        series.bars = ordered[-max_size:]
        return series
