"""Price source tiers consumed by PriceResolver.

Each source answers "what is this mint worth (around) this timestamp"
with a single HTTP call. Sources never raise: any upstream failure or
unusable payload is logged and reported as None, and the resolver moves
on to the next tier.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any

import httpx

from walletpnl.constants import SECONDS_PER_DAY
from walletpnl.exceptions import UpstreamError
from walletpnl.http import request_json, to_decimal
from walletpnl.logging import get_logger

logger = get_logger(__name__)


class PriceSource(ABC):
    """Abstract base class for a single price lookup strategy."""

    name: str = "source"

    def __init__(self, client: httpx.AsyncClient, timeout: float = 7.0) -> None:
        self._client = client
        self._timeout = timeout

    async def fetch_price(self, mint: str, timestamp: int) -> Decimal | None:
        """Return a positive USD price, or None when this tier has nothing."""
        try:
            payload = await self._request(mint, timestamp)
        except UpstreamError as exc:
            logger.warning("price_source_failed", source=self.name, mint=mint, error=str(exc))
            return None

        try:
            price = self._extract(payload, mint)
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            logger.warning(
                "price_source_malformed",
                source=self.name,
                mint=mint,
                error=repr(exc),
            )
            return None

        if price is None or price <= 0:
            return None
        return price

    @abstractmethod
    async def _request(self, mint: str, timestamp: int) -> Any:
        """Perform the HTTP call and return the decoded body."""
        ...

    @abstractmethod
    def _extract(self, payload: Any, mint: str) -> Decimal | None:
        """Pull the price out of the decoded body."""
        ...


class JupiterPriceSource(PriceSource):
    """Real-time price by mint from the Jupiter price API."""

    name = "jupiter"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = "https://api.jup.ag/price/v2",
        timeout: float = 7.0,
    ) -> None:
        super().__init__(client, timeout)
        self._url = url

    async def _request(self, mint: str, timestamp: int) -> Any:
        return await request_json(
            self._client, "GET", self._url, params={"ids": mint}, timeout=self._timeout
        )

    def _extract(self, payload: Any, mint: str) -> Decimal | None:
        entry = (payload.get("data") or {}).get(mint)
        if not entry:
            return None
        return to_decimal(entry.get("price"))


class DexScreenerPriceSource(PriceSource):
    """Most recent traded price across DEX pairs. Has no notion of time."""

    name = "dexscreener"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = "https://api.dexscreener.com/latest/dex/tokens",
        timeout: float = 7.0,
    ) -> None:
        super().__init__(client, timeout)
        self._url = url.rstrip("/")

    async def _request(self, mint: str, timestamp: int) -> Any:
        return await request_json(
            self._client, "GET", f"{self._url}/{mint}", timeout=self._timeout
        )

    def _extract(self, payload: Any, mint: str) -> Decimal | None:
        pairs = payload.get("pairs") or []
        if not pairs:
            return None
        return to_decimal(pairs[0].get("priceUsd"))


class BirdeyeOhlcvSource(PriceSource):
    """Daily OHLC candles in a +/-1 day window around the timestamp.

    Uses the first candle's close, or its open when close is missing.
    """

    name = "birdeye"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        url: str = "https://public-api.birdeye.so/defi/ohlcv",
        timeout: float = 7.0,
    ) -> None:
        super().__init__(client, timeout)
        self._api_key = api_key
        self._url = url

    async def _request(self, mint: str, timestamp: int) -> Any:
        params = {
            "address": mint,
            "type": "1D",
            "time_from": timestamp - SECONDS_PER_DAY,
            "time_to": timestamp + SECONDS_PER_DAY,
        }
        return await request_json(
            self._client,
            "GET",
            self._url,
            params=params,
            headers={"X-API-KEY": self._api_key},
            timeout=self._timeout,
        )

    def _extract(self, payload: Any, mint: str) -> Decimal | None:
        items = (payload.get("data") or {}).get("items") or []
        if not items:
            return None
        candle = items[0]
        close = to_decimal(candle.get("c"))
        if close:
            return close
        return to_decimal(candle.get("o"))
