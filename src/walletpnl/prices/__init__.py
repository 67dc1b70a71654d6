"""USD price resolution: cache, tiered sources and the resolver."""

from walletpnl.prices.cache import PriceCache
from walletpnl.prices.resolver import PriceResolver
from walletpnl.prices.sources import (
    BirdeyeOhlcvSource,
    DexScreenerPriceSource,
    JupiterPriceSource,
    PriceSource,
)

__all__ = [
    "BirdeyeOhlcvSource",
    "DexScreenerPriceSource",
    "JupiterPriceSource",
    "PriceCache",
    "PriceResolver",
    "PriceSource",
]
