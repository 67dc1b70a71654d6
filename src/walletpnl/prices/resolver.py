"""Tiered USD price resolution with an hour-bucketed cache.

Tier order (first positive answer wins, and is cached):
1. Cache hit on (mint, hour bucket), including a cached 0.
2. Real-time source, only for timestamps younger than the real-time window.
3. DEX aggregator latest price (no temporal parameter; an approximation
   for anything older than "now").
4. Historical OHLC source, only for timestamps at or beyond the window and
   only when configured.
5. Nothing found: cache 0 so the same token/hour is not re-queried.

Concurrent callers asking for the same (mint, hour bucket) before the
first answer lands await that one lookup instead of starting their own.

The resolver never raises. A returned 0 means "unknown", not "worthless".
"""

import asyncio
import time
from collections.abc import Callable, Iterable
from decimal import Decimal

from walletpnl.constants import SECONDS_PER_DAY
from walletpnl.logging import get_logger
from walletpnl.prices.cache import CacheKey, PriceCache
from walletpnl.prices.sources import PriceSource

logger = get_logger(__name__)

ZERO = Decimal("0")


class PriceResolver:
    """Resolves a token's USD price at or near a timestamp.

    Args:
        cache: Shared price cache (process lifetime).
        realtime: Real-time price source, or None to skip tier 2.
        aggregator: DEX aggregator source, or None to skip tier 3.
        historical: OHLC source, or None when no key is configured.
        realtime_window_days: Age below which the real-time tier is tried
            and at or above which the historical tier is tried.
        clock: Time source, injectable for tests.
    """

    def __init__(
        self,
        cache: PriceCache,
        realtime: PriceSource | None = None,
        aggregator: PriceSource | None = None,
        historical: PriceSource | None = None,
        realtime_window_days: int = 7,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = cache
        self._realtime = realtime
        self._aggregator = aggregator
        self._historical = historical
        self._window_seconds = realtime_window_days * SECONDS_PER_DAY
        self._clock = clock
        # One lookup task per (mint, hour bucket) while it is in flight
        self._inflight: dict[CacheKey, asyncio.Task[Decimal]] = {}

    @property
    def cache(self) -> PriceCache:
        return self._cache

    async def resolve(self, mint: str, timestamp: int) -> Decimal:
        """Return the USD price of mint around timestamp, 0 when unknown."""
        cached = await self._cache.get(mint, timestamp)
        if cached is not None:
            logger.debug("price_cache_hit", mint=mint, price=str(cached))
            return cached

        key = self._cache.key_for(mint, timestamp)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._lookup(mint, timestamp))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        else:
            logger.debug("price_lookup_joined", mint=mint, bucket=key[1])
        # Shielded so one cancelled caller does not cancel the shared lookup
        return await asyncio.shield(task)

    async def _lookup(self, mint: str, timestamp: int) -> Decimal:
        age = self._clock() - timestamp
        is_recent = age < self._window_seconds

        for tier, source in self._tiers(is_recent):
            price = await source.fetch_price(mint, timestamp)
            if price is not None and price > 0:
                await self._cache.set(mint, timestamp, price)
                logger.debug(
                    "price_resolved",
                    mint=mint,
                    tier=tier,
                    source=source.name,
                    price=str(price),
                )
                return price

        await self._cache.set(mint, timestamp, ZERO)
        logger.info("price_unresolved", mint=mint, timestamp=timestamp)
        return ZERO

    async def resolve_many(
        self, requests: Iterable[tuple[str, int]]
    ) -> list[Decimal]:
        """Resolve several (mint, timestamp) pairs concurrently.

        Results line up with the input order. A lookup that blows up
        unexpectedly degrades to 0 instead of failing its siblings.
        """
        pairs = list(requests)
        results = await asyncio.gather(
            *(self.resolve(mint, ts) for mint, ts in pairs),
            return_exceptions=True,
        )

        prices: list[Decimal] = []
        for (mint, ts), result in zip(pairs, results):
            if isinstance(result, Exception):
                logger.warning(
                    "price_lookup_crashed", mint=mint, timestamp=ts, error=repr(result)
                )
                prices.append(ZERO)
            else:
                prices.append(result)
        return prices

    def _tiers(self, is_recent: bool) -> list[tuple[int, PriceSource]]:
        tiers: list[tuple[int, PriceSource]] = []
        if is_recent and self._realtime is not None:
            tiers.append((2, self._realtime))
        if self._aggregator is not None:
            tiers.append((3, self._aggregator))
        if not is_recent and self._historical is not None:
            tiers.append((4, self._historical))
        return tiers
