"""Entry point for the wallet P&L service.

Wires all components together inside the FastAPI lifespan and serves the
API with uvicorn's programmatic interface.

Component wiring order (in _build_components):
1. PriceCache (process-lifetime, bounded)
2. Price sources (Jupiter, DexScreener, Birdeye when keyed)
3. PriceResolver
4. HeliusClient (None when no API key; requests then get a 500)
5. TransactionClassifier
6. TimelineBuilder
7. PnlEngine
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import httpx
import uvicorn
from fastapi import FastAPI

from walletpnl.config import AppSettings
from walletpnl.exceptions import ConfigurationError
from walletpnl.ledger.helius_client import HeliusClient
from walletpnl.logging import get_logger, setup_logging
from walletpnl.models import TransactionType
from walletpnl.pnl.classifier import TransactionClassifier
from walletpnl.pnl.engine import PnlEngine
from walletpnl.pnl.timeline import TimelineBuilder
from walletpnl.prices.cache import PriceCache
from walletpnl.prices.resolver import PriceResolver
from walletpnl.prices.sources import (
    BirdeyeOhlcvSource,
    DexScreenerPriceSource,
    JupiterPriceSource,
)


def _build_components(settings: AppSettings, http_client: httpx.AsyncClient) -> dict[str, Any]:
    """Build the engine and its collaborators from settings.

    Args:
        settings: Application-wide settings.
        http_client: Shared client for every outbound call.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("walletpnl.main")
    prices = settings.prices

    price_cache = PriceCache(
        max_entries=prices.cache_max_entries,
        ttl_seconds=prices.cache_ttl_seconds,
    )

    birdeye_key = settings.birdeye.api_key.get_secret_value()
    historical = None
    if birdeye_key:
        historical = BirdeyeOhlcvSource(
            http_client,
            api_key=birdeye_key,
            url=settings.birdeye.ohlcv_url,
            timeout=prices.request_timeout,
        )
    else:
        logger.info("historical_price_tier_disabled", reason="no BIRDEYE_API_KEY")

    resolver = PriceResolver(
        cache=price_cache,
        realtime=JupiterPriceSource(
            http_client, url=prices.jupiter_url, timeout=prices.request_timeout
        ),
        aggregator=DexScreenerPriceSource(
            http_client, url=prices.dexscreener_url, timeout=prices.request_timeout
        ),
        historical=historical,
        realtime_window_days=prices.realtime_window_days,
    )

    try:
        ledger: HeliusClient | None = HeliusClient(settings.helius, http_client)
    except ConfigurationError:
        logger.warning("no_helius_api_key", note="POST /api/pnl will return 500")
        ledger = None

    classifier = TransactionClassifier(
        resolver,
        token_swap_default=TransactionType(settings.classifier.token_swap_default),
    )
    timeline_builder = TimelineBuilder(resolver)
    engine = PnlEngine(ledger, classifier, timeline_builder)

    return {
        "price_cache": price_cache,
        "resolver": resolver,
        "ledger": ledger,
        "classifier": classifier,
        "timeline_builder": timeline_builder,
        "engine": engine,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build components on startup, close the shared HTTP client on shutdown."""
    logger = get_logger("walletpnl.main")
    settings: AppSettings = app.state.settings

    async with httpx.AsyncClient(
        headers={"Accept": "application/json", "User-Agent": "walletpnl/0.1"},
        follow_redirects=True,
    ) as http_client:
        components = _build_components(settings, http_client)
        app.state.engine = components["engine"]
        app.state.price_cache = components["price_cache"]

        logger.info(
            "lifespan_started",
            ledger_configured=components["ledger"] is not None,
            cache_capacity=settings.prices.cache_max_entries,
        )

        yield

    logger.info("walletpnl_stopped")


async def run() -> None:
    """Load settings, configure logging and serve the API."""
    settings = AppSettings()

    setup_logging(settings.log_level)
    logger = get_logger("walletpnl.main")

    from walletpnl.dashboard.app import create_app

    app = create_app(lifespan=lifespan)
    app.state.settings = settings

    logger.info(
        "starting_api",
        host=settings.server.host,
        port=settings.server.port,
    )

    config = uvicorn.Config(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
