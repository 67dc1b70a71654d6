"""JSON API endpoints consumed by the P&L chart."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from walletpnl.constants import DEFAULT_TIME_RANGE
from walletpnl.exceptions import ConfigurationError, InvalidRequestError
from walletpnl.models import (
    PnlReport,
    PortfolioEvent,
    TimelinePoint,
    TokenHolding,
    TokenMovement,
)

log = structlog.get_logger(__name__)

router = APIRouter()


class HoldingPayload(BaseModel):
    """One entry of currentTokens as sent by the wallet UI."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    mint: str | None = None
    symbol: str | None = None
    balance: Decimal | None = None
    price: Decimal | None = None
    change_24h: Decimal | None = Field(default=None, alias="change24h")

    def to_holding(self) -> TokenHolding:
        return TokenHolding(
            mint=self.mint or "",
            symbol=self.symbol or "",
            balance=self.balance or Decimal("0"),
            price=self.price or Decimal("0"),
            change_24h=self.change_24h or Decimal("0"),
        )


class PnlRequest(BaseModel):
    """Body of POST /api/pnl."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    wallet_address: str | None = Field(default=None, alias="walletAddress")
    time_range: str = Field(default=DEFAULT_TIME_RANGE, alias="timeRange")
    current_tokens: list[HoldingPayload] | None = Field(default=None, alias="currentTokens")


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_decimal_to_str(item) for item in obj]
    return obj


def _token_to_dict(token: TokenMovement) -> dict[str, Any]:
    return {
        "mint": token.mint,
        "symbol": token.symbol,
        "amount": token.amount,
        "direction": token.direction.value,
    }


def _point_to_dict(point: TimelinePoint) -> dict[str, Any]:
    return {
        "timestamp": point.timestamp,
        "date": point.label,
        "portfolioValue": point.portfolio_value,
        "pnl": point.pnl,
        "pnlPercent": point.pnl_percent,
    }


def _event_to_dict(event: PortfolioEvent) -> dict[str, Any]:
    return {
        "signature": event.signature,
        "timestamp": event.timestamp,
        "type": event.type.value,
        "tokens": [_token_to_dict(t) for t in event.tokens],
        "totalValue": event.total_value,
    }


def report_to_dict(report: PnlReport) -> dict[str, Any]:
    """Render a PnlReport in the camelCase shape the chart consumes."""
    stats = report.stats
    return _decimal_to_str({
        "timeline": [_point_to_dict(p) for p in report.timeline],
        "events": [_event_to_dict(e) for e in report.events],
        "stats": {
            "investedCapital": stats.invested_capital,
            "currentValue": stats.current_value,
            "bestDayValue": stats.best_day_value,
            "bestDayDate": stats.best_day_date,
            "totalPnl": stats.total_pnl,
            "totalPnlPercent": stats.total_pnl_percent,
            "totalBuys": stats.total_buys,
            "totalSells": stats.total_sells,
            "totalTransfers": stats.total_transfers,
        },
        "transactionCount": report.transaction_count,
    })


@router.post("/pnl")
async def analyze_pnl(request: Request) -> JSONResponse:
    """Reconstruct a wallet's portfolio value timeline, events and stats."""
    try:
        body = PnlRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as exc:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "message": str(exc)},
        )

    engine = request.app.state.engine
    holdings = [h.to_holding() for h in body.current_tokens or []]

    try:
        report = await engine.analyze(body.wallet_address, body.time_range, holdings)
    except InvalidRequestError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except ConfigurationError as exc:
        log.error("pnl_configuration_error", error=str(exc))
        return JSONResponse(status_code=500, content={"error": str(exc)})
    except Exception as exc:
        log.exception("pnl_analysis_failed")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to analyze PNL", "message": str(exc)},
        )

    return JSONResponse(content={"success": True, "data": report_to_dict(report)})


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Liveness probe with the current price cache size."""
    cache = getattr(request.app.state, "price_cache", None)
    return JSONResponse(content={
        "status": "ok",
        "price_cache_entries": len(cache) if cache is not None else 0,
    })
