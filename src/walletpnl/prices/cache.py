"""Bounded in-memory price cache keyed by (mint, hour bucket).

Constructed once per process and handed to PriceResolver. Stores the
resolved USD price and the time it was stored. A stored Decimal("0") is a
confirmed "no price found" and is returned like any other hit, which keeps
repeated lookups for unpriceable tokens from hammering the sources.

Capacity is enforced LRU-style; entries older than the TTL are dropped on
access. Uses asyncio.Lock for safe concurrent reads/writes from the many
lookups a single timeline build fans out.
"""

import asyncio
import time
from collections import OrderedDict
from collections.abc import Callable
from decimal import Decimal

from walletpnl.constants import hour_bucket
from walletpnl.logging import get_logger

logger = get_logger(__name__)

CacheKey = tuple[str, int]


class PriceCache:
    """LRU + TTL cache of token prices per hour bucket.

    Args:
        max_entries: Capacity before least recently used entries are evicted.
        ttl_seconds: Age after which an entry is treated as missing.
        clock: Time source, injectable for tests.
    """

    def __init__(
        self,
        max_entries: int = 50_000,
        ttl_seconds: float = 86_400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: OrderedDict[CacheKey, tuple[Decimal, float]] = OrderedDict()
        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = asyncio.Lock()

    @staticmethod
    def key_for(mint: str, timestamp: int) -> CacheKey:
        return (mint, hour_bucket(timestamp))

    async def get(self, mint: str, timestamp: int) -> Decimal | None:
        """Return the cached price for the hour containing timestamp.

        None means "never asked (or expired)"; Decimal("0") means
        "asked before and nothing was found".
        """
        key = self.key_for(mint, timestamp)
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            price, stored_at = entry
            if self._clock() - stored_at > self._ttl:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return price

    async def set(self, mint: str, timestamp: int, price: Decimal) -> None:
        """Upsert the price for the hour containing timestamp."""
        key = self.key_for(mint, timestamp)
        async with self._lock:
            self._entries[key] = (price, self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("price_cache_evicted", mint=evicted[0], bucket=evicted[1])

    def __len__(self) -> int:
        return len(self._entries)
