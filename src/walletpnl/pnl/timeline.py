"""Portfolio value timeline reconstruction.

Two modes, picked by what data is available:

- Holdings-only (no transactions in range, current holdings known):
  each held token's price is interpolated linearly from its 24h-ago
  estimate, price / (1 + change_24h/100), up to its current price across
  the requested range. An approximation, not a replay.
- Replay (transactions present): starting at UTC midnight of the first
  BUY/SELL (or first transaction of any kind), walk one day at a time to
  `end`, applying each day's token and SOL deltas to a running balance
  ledger, and value the ledger at each day boundary.

Replay values a balance at the caller's current price when the mint (or
symbol) is among the current holdings, and at the resolved historical
price otherwise. Past balances of still-held tokens are therefore priced
at today's price.

Both modes back-fill pnl against one baseline: the first point with a
positive value, else the first point.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from walletpnl.constants import (
    SECONDS_PER_DAY,
    SOL_MINT,
    SOL_SYMBOL,
    SYNTHETIC_DEFAULT_INTERVAL,
    SYNTHETIC_INTERVAL_SECONDS,
    day_start,
)
from walletpnl.logging import get_logger
from walletpnl.models import (
    ClassifiedTransaction,
    TimelinePoint,
    TokenHolding,
    TransactionType,
)
from walletpnl.prices.resolver import PriceResolver

logger = get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def day_label(timestamp: int) -> str:
    """'Mar 5' style label in UTC."""
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return f"{dt:%b} {dt.day}"


def hour_label(timestamp: int) -> str:
    """'03:00 PM' style label in UTC."""
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return dt.strftime("%I:%M %p")


def apply_baseline(points: list[TimelinePoint]) -> Decimal:
    """Fill pnl/pnl_percent on every point and return the baseline used."""
    if not points:
        return ZERO

    baseline = next(
        (p.portfolio_value for p in points if p.portfolio_value > 0),
        points[0].portfolio_value,
    )
    for point in points:
        point.pnl = point.portfolio_value - baseline
        point.pnl_percent = point.pnl / baseline * HUNDRED if baseline > 0 else ZERO
    return baseline


@dataclass
class LedgerBalance:
    amount: Decimal
    symbol: str


class BalanceLedger:
    """Running per-mint balances for one timeline build.

    SOL is tracked under its wrapped mint with symbol "SOL".
    """

    def __init__(self) -> None:
        self._balances: dict[str, LedgerBalance] = {}

    def apply(self, tx: ClassifiedTransaction) -> None:
        for token in tx.tokens:
            delta = token.signed_amount
            if delta == 0:
                continue
            existing = self._balances.get(token.mint)
            if existing is None:
                self._balances[token.mint] = LedgerBalance(
                    delta, token.symbol or token.mint[:6]
                )
            else:
                existing.amount += delta

        if tx.native_change != 0:
            existing = self._balances.get(SOL_MINT)
            if existing is None:
                self._balances[SOL_MINT] = LedgerBalance(tx.native_change, SOL_SYMBOL)
            else:
                existing.amount += tx.native_change

    def positive(self) -> list[tuple[str, LedgerBalance]]:
        """Balances worth valuing (amount > 0), in first-seen order."""
        return [(mint, bal) for mint, bal in self._balances.items() if bal.amount > 0]

    def get(self, mint: str) -> LedgerBalance | None:
        return self._balances.get(mint)


class TimelineBuilder:
    """Builds a valued timeline from classified transactions or holdings.

    Args:
        resolver: Price resolver for balances without a current price.
    """

    def __init__(self, resolver: PriceResolver) -> None:
        self._resolver = resolver

    async def build(
        self,
        transactions: Sequence[ClassifiedTransaction],
        start: int,
        end: int,
        holdings: Sequence[TokenHolding] = (),
        time_range: str = "30d",
    ) -> list[TimelinePoint]:
        """Build the timeline.

        Args:
            transactions: Classified transactions sorted by timestamp ascending.
            start: Start of the requested window (unix seconds).
            end: End of the requested window, normally "now".
            holdings: Caller-supplied current holdings with live prices.
            time_range: Requested range key; sets the holdings-only interval.
        """
        if not transactions:
            if not holdings:
                return []
            return self.from_holdings(start, end, holdings, time_range)
        return await self.from_transactions(transactions, end, holdings)

    def from_holdings(
        self,
        start: int,
        end: int,
        holdings: Sequence[TokenHolding],
        time_range: str,
    ) -> list[TimelinePoint]:
        """Interpolate holdings from their 24h-ago estimate to the current price."""
        interval = SYNTHETIC_INTERVAL_SECONDS.get(time_range, SYNTHETIC_DEFAULT_INTERVAL)
        points = max(0, math.ceil((end - start) / interval))
        label = hour_label if time_range == "24h" else day_label

        priced = [h for h in holdings if h.balance > 0 and h.price > 0]
        timeline: list[TimelinePoint] = []
        for i in range(points + 1):
            timestamp = start + i * interval
            progress = Decimal(i) / Decimal(points) if points else Decimal("1")

            value = ZERO
            for holding in priced:
                then = _price_24h_ago(holding)
                value += holding.balance * (then + (holding.price - then) * progress)

            timeline.append(
                TimelinePoint(timestamp=timestamp, label=label(timestamp), portfolio_value=value)
            )

        apply_baseline(timeline)
        logger.info(
            "timeline_from_holdings",
            points=len(timeline),
            holdings=len(priced),
            interval_seconds=interval,
        )
        return timeline

    async def from_transactions(
        self,
        transactions: Sequence[ClassifiedTransaction],
        end: int,
        holdings: Sequence[TokenHolding] = (),
    ) -> list[TimelinePoint]:
        """Replay transactions day by day into a valued timeline."""
        anchor = next(
            (
                tx
                for tx in transactions
                if tx.type in (TransactionType.BUY, TransactionType.SELL)
            ),
            transactions[0],
        )
        first_day = day_start(anchor.timestamp)
        days = math.ceil((end - first_day) / SECONDS_PER_DAY)

        ledger = BalanceLedger()
        timeline: list[TimelinePoint] = []
        cursor = 0
        count = len(transactions)

        # Days are strictly sequential: each day's ledger builds on the last
        for i in range(days + 1):
            day = first_day + i * SECONDS_PER_DAY
            next_day = day + SECONDS_PER_DAY

            # Anything before the first day never enters the ledger
            while cursor < count and transactions[cursor].timestamp < day:
                cursor += 1
            while cursor < count and transactions[cursor].timestamp < next_day:
                ledger.apply(transactions[cursor])
                cursor += 1

            value = await self._value_ledger(ledger, day, holdings)
            timeline.append(
                TimelinePoint(timestamp=day, label=day_label(day), portfolio_value=value)
            )

        baseline = apply_baseline(timeline)
        logger.info(
            "timeline_replayed",
            points=len(timeline),
            first_day=first_day,
            baseline=str(baseline),
        )
        return timeline

    async def _value_ledger(
        self,
        ledger: BalanceLedger,
        day: int,
        holdings: Sequence[TokenHolding],
    ) -> Decimal:
        value = ZERO
        to_resolve: list[tuple[str, LedgerBalance]] = []

        for mint, balance in ledger.positive():
            holding = _find_holding(holdings, mint, balance.symbol)
            if holding is not None and holding.price:
                value += balance.amount * holding.price
            else:
                to_resolve.append((mint, balance))

        if to_resolve:
            prices = await self._resolver.resolve_many((mint, day) for mint, _ in to_resolve)
            for (_, balance), price in zip(to_resolve, prices):
                if price > 0:
                    value += balance.amount * price

        return value


def _price_24h_ago(holding: TokenHolding) -> Decimal:
    factor = 1 + holding.change_24h / HUNDRED
    if factor <= 0:
        return holding.price
    return holding.price / factor


def _find_holding(
    holdings: Sequence[TokenHolding], mint: str, symbol: str
) -> TokenHolding | None:
    for holding in holdings:
        if holding.mint == mint or (holding.symbol and holding.symbol == symbol):
            return holding
    return None
