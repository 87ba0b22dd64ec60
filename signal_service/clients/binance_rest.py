"""Binance spot REST client used as the market data source."""

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
import orjson

from signal_core.models.price import PriceBar
from signal_core.protocols import Unavailable

logger = logging.getLogger(__name__)

# Spot /api/v3/klines caps a single request at 1000 bars
MAX_KLINES = 1000


class RateLimiter:
    """Simple rate limiter for API calls."""

    def __init__(self, calls_per_minute: int = 1200):
        self.calls_per_minute = calls_per_minute
        self.interval = 60.0 / calls_per_minute
        self.last_call = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if necessary to respect rate limit."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            wait_time = self.last_call + self.interval - loop.time()
            if wait_time > 0:
                await asyncio.sleep(wait_time)
            self.last_call = loop.time()


class BinanceMarketData:
    """Binance spot market data (klines and ticker price).

    Every failure (HTTP error, bad payload) is reported as ``Unavailable``;
    prices are never estimated.
    """

    BASE_URL = "https://api.binance.com"

    def __init__(
        self,
        base_url: str | None = None,
        interval: str = "1d",
        client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        self.base_url = base_url or self.BASE_URL
        self.interval = interval
        self.rate_limiter = rate_limiter or RateLimiter()
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=30.0)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, endpoint: str, params: dict[str, Any]) -> Any:
        """Make a GET request with rate limiting."""
        await self.rate_limiter.acquire()
        client = await self._get_client()
        response = await client.get(endpoint, params=params)
        response.raise_for_status()
        return orjson.loads(response.content)

    async def fetch_price_history(
        self, symbol: str, bars_needed: int
    ) -> list[PriceBar] | Unavailable:
        """
        Fetch the most recent closed-or-forming klines.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            bars_needed: Number of bars wanted (capped at 1000)

        Returns:
            Bars in ascending time order, or Unavailable
        """
        params = {
            "symbol": symbol,
            "interval": self.interval,
            "limit": min(bars_needed, MAX_KLINES),
        }
        try:
            data = await self._request("/api/v3/klines", params)
            bars = [
                PriceBar(
                    timestamp=datetime.fromtimestamp(item[0] / 1000, tz=timezone.utc),
                    open=Decimal(str(item[1])),
                    high=Decimal(str(item[2])),
                    low=Decimal(str(item[3])),
                    close=Decimal(str(item[4])),
                    volume=Decimal(str(item[5])),
                )
                for item in data
            ]
        except httpx.HTTPError as e:
            logger.warning(f"Kline fetch failed for {symbol}: {e}")
            return Unavailable(f"http error: {e}")
        except (ValueError, TypeError, IndexError, InvalidOperation) as e:
            logger.warning(f"Malformed kline payload for {symbol}: {e}")
            return Unavailable(f"malformed payload: {e}")

        if not bars:
            return Unavailable("no klines returned")
        return bars

    async def fetch_current_price(self, symbol: str) -> Decimal | Unavailable:
        """Fetch the latest ticker price."""
        try:
            data = await self._request("/api/v3/ticker/price", {"symbol": symbol})
            return Decimal(str(data["price"]))
        except httpx.HTTPError as e:
            logger.warning(f"Price fetch failed for {symbol}: {e}")
            return Unavailable(f"http error: {e}")
        except (ValueError, TypeError, KeyError, InvalidOperation) as e:
            logger.warning(f"Malformed ticker payload for {symbol}: {e}")
            return Unavailable(f"malformed payload: {e}")
