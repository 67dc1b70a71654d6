"""Tests for HeliusClient signature listing and batched enrichment.

HTTP is served by httpx.MockTransport; no real API calls.
"""

import json
from collections.abc import Callable
from unittest.mock import MagicMock

import httpx
import pytest

from tests.factories import NOW, WALLET
from walletpnl.config import AppSettings, HeliusSettings
from walletpnl.exceptions import ConfigurationError, UpstreamError
from walletpnl.ledger.helius_client import HeliusClient

START = NOW - 30 * 86_400


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _signature_entries() -> list[dict]:
    return [
        {"signature": "s-future", "blockTime": NOW + 10},
        {"signature": "s1", "blockTime": NOW - 100},
        {"signature": "s2", "blockTime": NOW - 200},
        {"signature": "s-null", "blockTime": None},
        {"signature": "s3", "blockTime": START},
        {"signature": "s-too-old", "blockTime": START - 1},
    ]


class TestConstruction:
    def test_missing_api_key_is_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            HeliusClient(HeliusSettings(api_key=""), MagicMock())  # type: ignore[arg-type]


class TestListSignatures:
    @pytest.mark.asyncio
    async def test_filters_to_window_and_sends_rpc_body(
        self, mock_settings: AppSettings
    ) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"jsonrpc": "2.0", "result": _signature_entries()})

        async with _client(handler) as client:
            helius = HeliusClient(mock_settings.helius, client)
            signatures = await helius.list_signatures(WALLET, START, NOW)

        assert signatures == ["s1", "s2", "s3"]
        body = json.loads(seen[0].content)
        assert body["method"] == "getSignaturesForAddress"
        assert body["params"][0] == WALLET
        assert body["params"][1]["limit"] == 1000
        assert seen[0].url.params["api-key"] == "test-helius-key"

    @pytest.mark.asyncio
    async def test_caps_at_max_transactions(self, mock_settings: AppSettings) -> None:
        entries = [{"signature": f"s{i}", "blockTime": NOW - i} for i in range(10)]

        async with _client(lambda r: httpx.Response(200, json={"result": entries})) as client:
            helius = HeliusClient(mock_settings.helius, client)
            signatures = await helius.list_signatures(WALLET, START, NOW)

        assert signatures == ["s0", "s1", "s2", "s3"]

    @pytest.mark.asyncio
    async def test_rpc_error_raises_upstream_error(self, mock_settings: AppSettings) -> None:
        payload = {"error": {"code": -32602, "message": "Invalid param"}}

        async with _client(lambda r: httpx.Response(200, json=payload)) as client:
            helius = HeliusClient(mock_settings.helius, client)
            with pytest.raises(UpstreamError, match="Invalid param"):
                await helius.list_signatures(WALLET, START, NOW)

    @pytest.mark.asyncio
    async def test_malformed_entries_are_skipped(self, mock_settings: AppSettings) -> None:
        entries = [
            "bare-signature",
            {"signature": "s-string-time", "blockTime": str(NOW - 100)},
            {"signature": 42, "blockTime": NOW - 100},
            {"signature": "s-ok", "blockTime": NOW - 100},
        ]

        async with _client(lambda r: httpx.Response(200, json={"result": entries})) as client:
            helius = HeliusClient(mock_settings.helius, client)
            signatures = await helius.list_signatures(WALLET, START, NOW)

        assert signatures == ["s-ok"]

    @pytest.mark.asyncio
    async def test_non_list_result_raises_upstream_error(
        self, mock_settings: AppSettings
    ) -> None:
        payload = {"result": {"unexpected": "object"}}

        async with _client(lambda r: httpx.Response(200, json=payload)) as client:
            helius = HeliusClient(mock_settings.helius, client)
            with pytest.raises(UpstreamError):
                await helius.list_signatures(WALLET, START, NOW)

    @pytest.mark.asyncio
    async def test_http_error_raises_upstream_error(self, mock_settings: AppSettings) -> None:
        async with _client(lambda r: httpx.Response(401)) as client:
            helius = HeliusClient(mock_settings.helius, client)
            with pytest.raises(UpstreamError):
                await helius.list_signatures(WALLET, START, NOW)


class TestFetchTransactions:
    @pytest.mark.asyncio
    async def test_splits_into_batches(self, mock_settings: AppSettings) -> None:
        batches: list[list[str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested = json.loads(request.content)["transactions"]
            batches.append(requested)
            return httpx.Response(200, json=[{"signature": s} for s in requested])

        async with _client(handler) as client:
            helius = HeliusClient(mock_settings.helius, client)
            records = await helius.fetch_transactions(["a", "b", "c", "d", "e"])

        assert sorted(len(b) for b in batches) == [1, 2, 2]
        assert [r["signature"] for r in records] == ["a", "b", "c", "d", "e"]

    @pytest.mark.asyncio
    async def test_failed_batch_is_skipped(self, mock_settings: AppSettings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            requested = json.loads(request.content)["transactions"]
            if "c" in requested:
                return httpx.Response(500)
            return httpx.Response(200, json=[{"signature": s} for s in requested])

        async with _client(handler) as client:
            helius = HeliusClient(mock_settings.helius, client)
            records = await helius.fetch_transactions(["a", "b", "c", "d"])

        assert [r["signature"] for r in records] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_request(self, mock_settings: AppSettings) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=[])

        async with _client(handler) as client:
            helius = HeliusClient(mock_settings.helius, client)
            assert await helius.fetch_transactions([]) == []

        assert calls == []
