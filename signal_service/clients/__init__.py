"""HTTP adapters for market data and insight services."""

from signal_service.clients.binance_rest import BinanceMarketData, RateLimiter
from signal_service.clients.insights import HttpInsightSource

__all__ = ["BinanceMarketData", "HttpInsightSource", "RateLimiter"]
