"""HTTP client for sentiment and ML prediction services.

Both services are optional black boxes. An empty URL disables the call and
every failure is reported as ``Unavailable``; callers substitute neutral
defaults.

Expected payloads:
- GET  {sentiment_url}?symbol=X  -> {"score": -1..1, "magnitude": 0..1}
- POST {prediction_url} {"symbol": X, "prices": [...]}
       -> {"trend": "up"|"down"|"neutral", "confidence": 0..100}
"""

import logging
from decimal import Decimal
from typing import Any, Sequence

import httpx
import orjson

from signal_core.models.analysis import MlPrediction, MlTrend, SentimentReading
from signal_core.protocols import Unavailable

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class HttpInsightSource:
    """Sentiment and ML prediction over HTTP."""

    def __init__(
        self,
        sentiment_url: str = "",
        prediction_url: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.sentiment_url = sentiment_url
        self.prediction_url = prediction_url
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        client = await self._get_client()
        response = await client.request(method, url, **kwargs)
        response.raise_for_status()
        return orjson.loads(response.content)

    async def fetch_sentiment(self, symbol: str) -> SentimentReading | Unavailable:
        if not self.sentiment_url:
            return Unavailable("sentiment service disabled")
        try:
            data = await self._send("GET", self.sentiment_url, params={"symbol": symbol})
            return SentimentReading(
                score=_clamp(float(data["score"]), -1.0, 1.0),
                magnitude=_clamp(float(data.get("magnitude", 0.5)), 0.0, 1.0),
            )
        except httpx.HTTPError as e:
            logger.warning(f"Sentiment fetch failed for {symbol}: {e}")
            return Unavailable(f"http error: {e}")
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Malformed sentiment payload for {symbol}: {e}")
            return Unavailable(f"malformed payload: {e}")

    async def fetch_ml_prediction(
        self, symbol: str, recent_prices: Sequence[Decimal]
    ) -> MlPrediction | Unavailable:
        if not self.prediction_url:
            return Unavailable("prediction service disabled")
        body = {"symbol": symbol, "prices": [float(p) for p in recent_prices]}
        try:
            data = await self._send(
                "POST",
                self.prediction_url,
                content=orjson.dumps(body),
                headers={"Content-Type": "application/json"},
            )
            return MlPrediction(
                trend=MlTrend(str(data["trend"]).lower()),
                confidence=_clamp(float(data.get("confidence", 50.0)), 0.0, 100.0),
            )
        except httpx.HTTPError as e:
            logger.warning(f"Prediction fetch failed for {symbol}: {e}")
            return Unavailable(f"http error: {e}")
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Malformed prediction payload for {symbol}: {e}")
            return Unavailable(f"malformed payload: {e}")
