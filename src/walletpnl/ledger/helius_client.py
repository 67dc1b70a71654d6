"""Helius ledger client via httpx.

Signature listing goes through the Solana JSON-RPC method
getSignaturesForAddress; enrichment goes through the Helius enhanced
transactions endpoint, which returns parsed native and token transfers.
"""

import asyncio
from typing import Any

import httpx

from walletpnl.config import HeliusSettings
from walletpnl.exceptions import ConfigurationError, UpstreamError
from walletpnl.http import request_json
from walletpnl.ledger.client import LedgerClient
from walletpnl.logging import get_logger

logger = get_logger(__name__)


class HeliusClient(LedgerClient):
    """Concrete Helius client sharing the application's httpx.AsyncClient."""

    def __init__(self, settings: HeliusSettings, client: httpx.AsyncClient) -> None:
        api_key = settings.api_key.get_secret_value()
        if not api_key:
            raise ConfigurationError("Helius API key not configured")
        self._settings = settings
        self._client = client
        self._api_key = api_key

    async def list_signatures(self, wallet: str, start: int, end: int) -> list[str]:
        """List up to max_transactions signatures whose blockTime is in [start, end]."""
        body = {
            "jsonrpc": "2.0",
            "id": "pnl-signatures",
            "method": "getSignaturesForAddress",
            "params": [wallet, {"limit": self._settings.signature_limit}],
        }
        data = await request_json(
            self._client,
            "POST",
            self._settings.rpc_url,
            params={"api-key": self._api_key},
            json_body=body,
            timeout=self._settings.request_timeout,
        )

        if not isinstance(data, dict):
            raise UpstreamError("getSignaturesForAddress returned a non-object body")
        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise UpstreamError(f"getSignaturesForAddress RPC error: {message or 'RPC Error'}")

        entries = data.get("result")
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            raise UpstreamError("getSignaturesForAddress result is not a list")

        in_window = [
            entry["signature"]
            for entry in entries
            if _in_window(entry, start, end)
        ]
        selected = in_window[: self._settings.max_transactions]

        logger.info(
            "signatures_listed",
            total=len(entries),
            in_window=len(in_window),
            selected=len(selected),
        )
        return selected

    async def fetch_transactions(self, signatures: list[str]) -> list[dict]:
        """Enrich signatures in concurrent batches; failed batches are skipped."""
        if not signatures:
            return []

        size = max(1, self._settings.batch_size)
        batches = [signatures[i : i + size] for i in range(0, len(signatures), size)]
        results = await asyncio.gather(
            *(self._fetch_batch(batch) for batch in batches),
            return_exceptions=True,
        )

        records: list[dict] = []
        for index, result in enumerate(results):
            if isinstance(result, Exception):
                logger.warning(
                    "enrichment_batch_failed",
                    batch=index,
                    size=len(batches[index]),
                    error=str(result),
                )
                continue
            records.extend(result)

        logger.info(
            "transactions_enriched",
            requested=len(signatures),
            received=len(records),
            batches=len(batches),
        )
        return records

    async def _fetch_batch(self, batch: list[str]) -> list[dict]:
        data = await request_json(
            self._client,
            "POST",
            f"{self._settings.api_url.rstrip('/')}/transactions",
            params={"api-key": self._api_key},
            json_body={"transactions": batch},
            timeout=self._settings.request_timeout,
        )
        if not isinstance(data, list):
            raise UpstreamError("enhanced transactions endpoint returned a non-list body")
        return [record for record in data if isinstance(record, dict)]


def _in_window(entry: Any, start: int, end: int) -> bool:
    """True for a well-formed signature entry with blockTime in [start, end].

    Entries that are not objects, lack a string signature or carry a
    non-integer blockTime are skipped. A null blockTime counts as 0.
    """
    if not isinstance(entry, dict):
        return False
    signature = entry.get("signature")
    if not signature or not isinstance(signature, str):
        return False
    block_time = entry.get("blockTime") or 0
    if isinstance(block_time, bool) or not isinstance(block_time, int):
        return False
    return start <= block_time <= end
