"""Tests for the JSON API routes.

The engine is an AsyncMock on app.state, so these tests cover request
parsing, error mapping and response shape only.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tests.factories import BONK, DAY0, WALLET
from walletpnl.dashboard.app import create_app
from walletpnl.exceptions import ConfigurationError, InvalidRequestError
from walletpnl.models import (
    Direction,
    PnlReport,
    PnlStats,
    PortfolioEvent,
    TimelinePoint,
    TokenHolding,
    TokenMovement,
    TransactionType,
)


def _report() -> PnlReport:
    return PnlReport(
        timeline=[
            TimelinePoint(DAY0, "Nov 14", Decimal("1500"), Decimal("0"), Decimal("0")),
            TimelinePoint(DAY0 + 86_400, "Nov 15", Decimal("1600"), Decimal("100"), Decimal("6.5")),
        ],
        events=[
            PortfolioEvent(
                signature="buy-1",
                timestamp=DAY0 + 3600,
                type=TransactionType.BUY,
                tokens=(TokenMovement(BONK, "BONK", Decimal("10"), Direction.IN),),
                total_value=Decimal("150"),
            )
        ],
        stats=PnlStats(
            invested_capital=Decimal("1500"),
            current_value=Decimal("1600"),
            best_day_value=Decimal("1600"),
            best_day_date="Nov 15",
            total_pnl=Decimal("100"),
            total_pnl_percent=Decimal("6.5"),
            total_buys=1,
        ),
        transaction_count=1,
    )


@pytest.fixture
def engine() -> AsyncMock:
    mock = AsyncMock()
    mock.analyze.return_value = _report()
    return mock


@pytest.fixture
def client(engine: AsyncMock) -> TestClient:
    app = create_app()
    app.state.engine = engine
    return TestClient(app)


class TestAnalyzePnl:
    def test_success_shape(self, client: TestClient, engine: AsyncMock) -> None:
        response = client.post("/api/pnl", json={"walletAddress": WALLET, "timeRange": "7d"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["transactionCount"] == 1
        assert data["timeline"][1] == {
            "timestamp": DAY0 + 86_400,
            "date": "Nov 15",
            "portfolioValue": "1600",
            "pnl": "100",
            "pnlPercent": "6.5",
        }
        assert data["events"][0]["type"] == "BUY"
        assert data["events"][0]["totalValue"] == "150"
        assert data["events"][0]["tokens"][0] == {
            "mint": BONK,
            "symbol": "BONK",
            "amount": "10",
            "direction": "IN",
        }
        assert data["stats"]["bestDayDate"] == "Nov 15"
        assert data["stats"]["totalBuys"] == 1
        assert data["stats"]["totalTransfers"] == 0
        engine.analyze.assert_awaited_once_with(WALLET, "7d", [])

    def test_current_tokens_become_holdings(
        self, client: TestClient, engine: AsyncMock
    ) -> None:
        payload = {
            "walletAddress": WALLET,
            "currentTokens": [
                {"mint": BONK, "symbol": "BONK", "balance": 10, "price": "2.5", "change24h": "-3.2"},
                {"mint": "bare"},
            ],
        }

        client.post("/api/pnl", json=payload)

        _, time_range, holdings = engine.analyze.await_args.args
        assert time_range == "30d"
        assert holdings == [
            TokenHolding(
                mint=BONK,
                symbol="BONK",
                balance=Decimal("10"),
                price=Decimal("2.5"),
                change_24h=Decimal("-3.2"),
            ),
            TokenHolding(mint="bare"),
        ]

    def test_null_holding_fields_are_tolerated(
        self, client: TestClient, engine: AsyncMock
    ) -> None:
        payload = {
            "walletAddress": WALLET,
            "currentTokens": [{"mint": None, "symbol": "BONK", "price": "2", "balance": None}],
        }

        response = client.post("/api/pnl", json=payload)

        assert response.status_code == 200
        _, _, holdings = engine.analyze.await_args.args
        assert holdings == [TokenHolding(mint="", symbol="BONK", price=Decimal("2"))]

    def test_missing_wallet_is_400(self, client: TestClient, engine: AsyncMock) -> None:
        engine.analyze.side_effect = InvalidRequestError("Wallet address is required")

        response = client.post("/api/pnl", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Wallet address is required"}

    def test_malformed_body_is_400(self, client: TestClient, engine: AsyncMock) -> None:
        response = client.post(
            "/api/pnl", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"
        engine.analyze.assert_not_called()

    def test_missing_credential_is_500(self, client: TestClient, engine: AsyncMock) -> None:
        engine.analyze.side_effect = ConfigurationError("Helius API key not configured")

        response = client.post("/api/pnl", json={"walletAddress": WALLET})

        assert response.status_code == 500
        assert response.json() == {"error": "Helius API key not configured"}

    def test_unexpected_failure_is_500(self, client: TestClient, engine: AsyncMock) -> None:
        engine.analyze.side_effect = RuntimeError("boom")

        response = client.post("/api/pnl", json={"walletAddress": WALLET})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to analyze PNL", "message": "boom"}


class TestHealth:
    def test_reports_cache_size(self) -> None:
        app = create_app()
        cache = MagicMock()
        cache.__len__.return_value = 3
        app.state.price_cache = cache

        response = TestClient(app).get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "price_cache_entries": 3}

    def test_without_cache(self, client: TestClient) -> None:
        assert client.get("/api/health").json() == {"status": "ok", "price_cache_entries": 0}
