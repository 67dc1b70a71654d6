"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class HeliusSettings(BaseSettings):
    """Helius RPC and enhanced-transactions API settings."""

    model_config = SettingsConfigDict(env_prefix="HELIUS_")

    api_key: SecretStr = SecretStr("")
    rpc_url: str = "https://mainnet.helius-rpc.com/"
    api_url: str = "https://api.helius.xyz/v0"
    signature_limit: int = 1000  # getSignaturesForAddress page cap
    max_transactions: int = 100  # signatures enriched per request
    batch_size: int = 100  # signatures per enrichment call
    request_timeout: float = 7.0


class PriceSettings(BaseSettings):
    """Price source endpoints, tier thresholds and cache policy."""

    model_config = SettingsConfigDict(env_prefix="PRICE_")

    jupiter_url: str = "https://api.jup.ag/price/v2"
    dexscreener_url: str = "https://api.dexscreener.com/latest/dex/tokens"
    realtime_window_days: int = 7  # younger timestamps use the real-time tier
    request_timeout: float = 7.0
    cache_max_entries: int = 50_000
    cache_ttl_seconds: int = 86_400


class BirdeyeSettings(BaseSettings):
    """Birdeye historical OHLCV tier. Disabled when no API key is set."""

    model_config = SettingsConfigDict(env_prefix="BIRDEYE_")

    api_key: SecretStr = SecretStr("")
    ohlcv_url: str = "https://public-api.birdeye.so/defi/ohlcv"


class ClassifierSettings(BaseSettings):
    """Transaction classification knobs."""

    model_config = SettingsConfigDict(env_prefix="CLASSIFIER_")

    # Swap with no USDC/USDT/SOL on either side
    token_swap_default: Literal["BUY", "SELL"] = "SELL"


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 8080


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    helius: HeliusSettings = HeliusSettings()
    prices: PriceSettings = PriceSettings()
    birdeye: BirdeyeSettings = BirdeyeSettings()
    classifier: ClassifierSettings = ClassifierSettings()
    server: ServerSettings = ServerSettings()
