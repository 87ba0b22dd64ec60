"""Tests for the HTTP clients, using httpx.MockTransport."""

from datetime import datetime, timezone
from decimal import Decimal

import httpx
import orjson
import pytest

from signal_core.models.analysis import MlTrend
from signal_core.protocols import InsightSource, MarketDataSource, Unavailable
from signal_service.clients.binance_rest import BinanceMarketData, RateLimiter
from signal_service.clients.insights import HttpInsightSource

KLINE = [
    1704067200000,  # 2024-01-01T00:00:00Z
    "42000.10",
    "42500.00",
    "41800.50",
    "42300.25",
    "1234.5",
    1704153599999,
    "0",
    100,
    "0",
    "0",
    "0",
]


def binance(handler):
    client = httpx.AsyncClient(
        base_url="https://api.binance.test", transport=httpx.MockTransport(handler)
    )
    return BinanceMarketData(
        client=client, rate_limiter=RateLimiter(calls_per_minute=60000)
    )


def insights(handler, sentiment_url="https://insights.test/sentiment",
             prediction_url="https://insights.test/predict"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpInsightSource(sentiment_url, prediction_url, client=client)


class TestBinanceMarketData:
    """Tests for BinanceMarketData."""

    def test_implements_protocol(self):
        assert isinstance(BinanceMarketData(), MarketDataSource)

    @pytest.mark.asyncio
    async def test_fetch_price_history(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, content=orjson.dumps([KLINE]))

        bars = await binance(handler).fetch_price_history("BTCUSDT", 200)

        assert seen["path"] == "/api/v3/klines"
        assert seen["params"] == {"symbol": "BTCUSDT", "interval": "1d", "limit": "200"}
        assert len(bars) == 1
        bar = bars[0]
        assert bar.timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert bar.open == Decimal("42000.10")
        assert bar.high == Decimal("42500.00")
        assert bar.low == Decimal("41800.50")
        assert bar.close == Decimal("42300.25")
        assert bar.volume == Decimal("1234.5")

    @pytest.mark.asyncio
    async def test_limit_capped(self):
        seen = {}

        def handler(request):
            seen["limit"] = request.url.params["limit"]
            return httpx.Response(200, content=orjson.dumps([KLINE]))

        await binance(handler).fetch_price_history("BTCUSDT", 5000)

        assert seen["limit"] == "1000"

    @pytest.mark.asyncio
    async def test_http_error_is_unavailable(self):
        def handler(request):
            return httpx.Response(503, content=b"maintenance")

        result = await binance(handler).fetch_price_history("BTCUSDT", 200)

        assert isinstance(result, Unavailable)
        assert "http error" in result.reason

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await binance(handler).fetch_current_price("BTCUSDT")

        assert isinstance(result, Unavailable)

    @pytest.mark.asyncio
    async def test_malformed_payload_is_unavailable(self):
        def handler(request):
            return httpx.Response(200, content=orjson.dumps([[1704067200000, "x"]]))

        result = await binance(handler).fetch_price_history("BTCUSDT", 200)

        assert isinstance(result, Unavailable)
        assert "malformed" in result.reason

    @pytest.mark.asyncio
    async def test_empty_history_is_unavailable(self):
        def handler(request):
            return httpx.Response(200, content=b"[]")

        result = await binance(handler).fetch_price_history("NEWUSDT", 200)

        assert isinstance(result, Unavailable)

    @pytest.mark.asyncio
    async def test_fetch_current_price(self):
        def handler(request):
            assert request.url.path == "/api/v3/ticker/price"
            assert request.url.params["symbol"] == "ETHUSDT"
            return httpx.Response(
                200, content=orjson.dumps({"symbol": "ETHUSDT", "price": "3012.55000000"})
            )

        price = await binance(handler).fetch_current_price("ETHUSDT")

        assert price == Decimal("3012.55")

    @pytest.mark.asyncio
    async def test_missing_price_field(self):
        def handler(request):
            return httpx.Response(200, content=orjson.dumps({"code": -1121}))

        result = await binance(handler).fetch_current_price("BADUSDT")

        assert isinstance(result, Unavailable)


class TestHttpInsightSource:
    """Tests for HttpInsightSource."""

    def test_implements_protocol(self):
        assert isinstance(HttpInsightSource(), InsightSource)

    @pytest.mark.asyncio
    async def test_disabled_services(self):
        source = HttpInsightSource()
        assert isinstance(await source.fetch_sentiment("BTCUSDT"), Unavailable)
        assert isinstance(
            await source.fetch_ml_prediction("BTCUSDT", [Decimal("1")]), Unavailable
        )

    @pytest.mark.asyncio
    async def test_sentiment(self):
        def handler(request):
            assert request.method == "GET"
            assert request.url.params["symbol"] == "BTCUSDT"
            return httpx.Response(200, content=orjson.dumps({"score": 0.4, "magnitude": 0.7}))

        reading = await insights(handler).fetch_sentiment("BTCUSDT")

        assert reading.score == pytest.approx(0.4)
        assert reading.magnitude == pytest.approx(0.7)

    @pytest.mark.asyncio
    async def test_sentiment_clamped(self):
        def handler(request):
            return httpx.Response(200, content=orjson.dumps({"score": 3, "magnitude": -1}))

        reading = await insights(handler).fetch_sentiment("BTCUSDT")

        assert reading.score == 1.0
        assert reading.magnitude == 0.0

    @pytest.mark.asyncio
    async def test_prediction_posts_prices(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = orjson.loads(request.content)
            return httpx.Response(200, content=orjson.dumps({"trend": "UP", "confidence": 72}))

        prediction = await insights(handler).fetch_ml_prediction(
            "BTCUSDT", [Decimal("100.5"), Decimal("101")]
        )

        assert seen["method"] == "POST"
        assert seen["body"] == {"symbol": "BTCUSDT", "prices": [100.5, 101.0]}
        assert prediction.trend == MlTrend.UP
        assert prediction.confidence == 72.0

    @pytest.mark.asyncio
    async def test_unknown_trend_is_unavailable(self):
        def handler(request):
            return httpx.Response(200, content=orjson.dumps({"trend": "sideways"}))

        result = await insights(handler).fetch_ml_prediction("BTCUSDT", [])

        assert isinstance(result, Unavailable)

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        def handler(request):
            return httpx.Response(500)

        result = await insights(handler).fetch_sentiment("BTCUSDT")

        assert isinstance(result, Unavailable)
