"""Shared test fixtures for the wallet P&L service."""

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from tests.factories import fixed_clock
from walletpnl.config import AppSettings, BirdeyeSettings, HeliusSettings
from walletpnl.prices.cache import PriceCache
from walletpnl.prices.resolver import PriceResolver


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (dummy API keys, small batches)."""
    return AppSettings(
        log_level="DEBUG",
        helius=HeliusSettings(
            api_key="test-helius-key",  # type: ignore[arg-type]
            rpc_url="https://rpc.test/",
            api_url="https://api.test/v0",
            batch_size=2,
            max_transactions=4,
        ),
        birdeye=BirdeyeSettings(api_key="test-birdeye-key"),  # type: ignore[arg-type]
    )


@pytest.fixture
def price_cache() -> PriceCache:
    """Empty cache on the fixed test clock."""
    return PriceCache(max_entries=1000, ttl_seconds=86_400, clock=fixed_clock)


@pytest.fixture
def resolver_factory(price_cache: PriceCache) -> Callable[..., PriceResolver]:
    """Build a PriceResolver over the shared cache with the given sources."""

    def _build(
        realtime: AsyncMock | None = None,
        aggregator: AsyncMock | None = None,
        historical: AsyncMock | None = None,
    ) -> PriceResolver:
        return PriceResolver(
            cache=price_cache,
            realtime=realtime,
            aggregator=aggregator,
            historical=historical,
            clock=fixed_clock,
        )

    return _build
