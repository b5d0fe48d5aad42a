from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "MTG Price Check"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./pricecheck.db"

    scryfall_base_url: str = "https://api.scryfall.com"
    tcgcsv_base_url: str = "https://tcgcsv.com/tcgplayer/1"
    exchange_rate_url: str = "https://open.er-api.com/v6/latest/USD"
    user_agent: str = "MTGPriceCheck/1.0"

    # Scryfall asks for no more than 10 requests per second
    request_interval_seconds: float = 0.1
    max_retries: int = 2
    retry_backoff_seconds: float = 0.5
    request_timeout_seconds: float = 10.0

    result_cache_ttl_seconds: float = 30 * 60
    result_cache_max_entries: int = 500
    group_cache_ttl_seconds: float = 4 * 60 * 60
    group_cache_max_entries: int = 200
    persist_interval_seconds: float = 60.0

    printings_max_pages: int = 5

    # Opt-in: log exhausted provider retries on the diagnostics logger
    report_provider_failures: bool = False


settings = Settings()


# =============================================================================
# EXCHANGE RATES
# =============================================================================

EXCHANGE_RATE_TTL_SECONDS = 24 * 60 * 60

# Used when the exchange rate source is unreachable
FALLBACK_EXCHANGE_RATES: dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "CAD": 1.36,
    "AUD": 1.53,
    "JPY": 149.0,
    "CHF": 0.88,
}
