"""Service configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database (empty = keep signals in memory)
    database_url: str = ""
    debug: bool = False

    # Binance API
    binance_base_url: str = "https://api.binance.com"
    binance_interval: str = "1d"

    # Sentiment / ML prediction services (empty = disabled, neutral defaults)
    sentiment_url: str = ""
    prediction_url: str = ""

    # Universe and pool
    symbols: list[str] = [
        "BTCUSDT",
        "ETHUSDT",
        "BNBUSDT",
        "SOLUSDT",
        "ADAUSDT",
        "DOTUSDT",
        "AVAXUSDT",
        "LINKUSDT",
        "XRPUSDT",
        "LTCUSDT",
    ]
    target_pool_size: int = 5

    # Monitor loop
    monitor_interval_seconds: float = 300.0
    call_timeout_seconds: float = 10.0
    max_concurrency: int = 8

    # Price history
    history_bars: int = 200
    history_cache_ttl_seconds: float = 3600.0
    history_cache_max_symbols: int = 500

    # Engine tunables (YAML)
    engine_config_path: str = ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
