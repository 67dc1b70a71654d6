"""Transaction classification: raw Helius record -> ClassifiedTransaction.

Type assignment is an ordered rule list over a small TransferFacts value.
Each rule either answers with a TransactionType or passes (None); the first
answer wins and the final rule always answers, so every kept transaction
gets exactly one type.

Rule order:
1. swap_rule: swap-tagged, or tokens flow both ways. Stable/SOL outflow
   means BUY, stable/SOL inflow means SELL, otherwise the configured
   token-for-token default (SELL).
2. native_rule: SOL moved (> 1e-8). Outflow is BUY with tokens in, else
   TRANSFER_OUT. Inflow is SELL with tokens out, else TRANSFER_IN.
3. token_transfer_rule: outgoing-only is TRANSFER_OUT, anything else
   TRANSFER_IN.

USD value prefers |SOL change| x SOL price, then the stable-coin legs at
1:1, then the remaining legs at their resolved prices.
"""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from functools import partial
from typing import Any

from walletpnl.constants import (
    DROP_EPSILON,
    LAMPORTS_PER_SOL,
    NATIVE_EPSILON,
    SOL_MINT,
    STABLE_MINTS,
)
from walletpnl.http import to_decimal
from walletpnl.logging import get_logger
from walletpnl.models import (
    ClassifiedTransaction,
    Direction,
    TokenMovement,
    TransactionType,
)
from walletpnl.prices.resolver import PriceResolver

logger = get_logger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class TransferFacts:
    """The signals the classification rules look at."""

    native_change: Decimal
    has_incoming: bool
    has_outgoing: bool
    stable_in: bool
    stable_out: bool
    swap_tagged: bool

    @classmethod
    def from_parts(
        cls,
        tokens: Sequence[TokenMovement],
        native_change: Decimal,
        raw_type: str | None,
    ) -> "TransferFacts":
        return cls(
            native_change=native_change,
            has_incoming=any(t.direction is Direction.IN for t in tokens),
            has_outgoing=any(t.direction is Direction.OUT for t in tokens),
            stable_in=any(
                t.direction is Direction.IN and t.mint in STABLE_MINTS for t in tokens
            ),
            stable_out=any(
                t.direction is Direction.OUT and t.mint in STABLE_MINTS for t in tokens
            ),
            swap_tagged=raw_type == "SWAP",
        )


Rule = Callable[[TransferFacts], TransactionType | None]


def swap_rule(
    facts: TransferFacts,
    token_swap_default: TransactionType = TransactionType.SELL,
) -> TransactionType | None:
    if not (facts.swap_tagged or (facts.has_incoming and facts.has_outgoing)):
        return None
    if facts.stable_out or facts.native_change < 0:
        return TransactionType.BUY
    if facts.stable_in or facts.native_change > 0:
        return TransactionType.SELL
    return token_swap_default


def native_rule(facts: TransferFacts) -> TransactionType | None:
    if abs(facts.native_change) <= NATIVE_EPSILON:
        return None
    if facts.native_change < 0:
        return TransactionType.BUY if facts.has_incoming else TransactionType.TRANSFER_OUT
    return TransactionType.SELL if facts.has_outgoing else TransactionType.TRANSFER_IN


def token_transfer_rule(facts: TransferFacts) -> TransactionType:
    if facts.has_outgoing and not facts.has_incoming:
        return TransactionType.TRANSFER_OUT
    return TransactionType.TRANSFER_IN


def build_rules(
    token_swap_default: TransactionType = TransactionType.SELL,
) -> tuple[Rule, ...]:
    """Default rule list, with the token-for-token swap default bound in."""
    return (
        partial(swap_rule, token_swap_default=token_swap_default),
        native_rule,
        token_transfer_rule,
    )


def decide_type(facts: TransferFacts, rules: Sequence[Rule]) -> TransactionType:
    """Run the rules in order and return the first answer."""
    for rule in rules:
        decision = rule(facts)
        if decision is not None:
            return decision
    # Rule lists built by build_rules always end in token_transfer_rule
    return TransactionType.TRANSFER_IN


# ──────────────────────────────────────────────
# Raw record parsing
# ──────────────────────────────────────────────


def parse_native_change(raw: dict[str, Any], wallet: str) -> Decimal:
    """Net SOL received by the wallet (negative when it paid out)."""
    change = ZERO
    for transfer in raw.get("nativeTransfers") or []:
        lamports = to_decimal(transfer.get("amount") or 0)
        if lamports is None:
            raise ValueError(f"non-numeric native amount: {transfer.get('amount')!r}")
        amount = lamports / LAMPORTS_PER_SOL
        if transfer.get("toUserAccount") == wallet:
            change += amount
        if transfer.get("fromUserAccount") == wallet:
            change -= amount
    return change


def parse_token_movements(raw: dict[str, Any], wallet: str) -> list[TokenMovement]:
    """One TokenMovement per SPL token transfer that names a mint."""
    movements: list[TokenMovement] = []
    for transfer in raw.get("tokenTransfers") or []:
        mint = transfer.get("mint") or transfer.get("tokenAddress")
        if not mint:
            continue

        symbol = transfer.get("tokenSymbol") or STABLE_MINTS.get(mint) or mint[:6]
        raw_amount = transfer.get("tokenAmount")
        if raw_amount is None:
            raw_amount = transfer.get("amount", 0)
        amount = to_decimal(raw_amount)
        if amount is None:
            raise ValueError(f"non-numeric token amount: {raw_amount!r}")

        direction = Direction.IN if transfer.get("toUserAccount") == wallet else Direction.OUT
        movements.append(
            TokenMovement(mint=mint, symbol=symbol, amount=abs(amount), direction=direction)
        )
    return movements


class TransactionClassifier:
    """Turns raw ledger records into typed, USD-valued transactions.

    Args:
        resolver: Price resolver used for SOL and token valuation.
        token_swap_default: Type for swaps with no stable/SOL leg.
    """

    def __init__(
        self,
        resolver: PriceResolver,
        token_swap_default: TransactionType = TransactionType.SELL,
    ) -> None:
        self._resolver = resolver
        self._rules = build_rules(token_swap_default)

    async def classify(
        self, raw: dict[str, Any], wallet: str
    ) -> ClassifiedTransaction | None:
        """Classify one raw record; None when it does not touch the wallet."""
        try:
            signature = str(raw["signature"])
            timestamp = int(raw["timestamp"])
            native_change = parse_native_change(raw, wallet)
            tokens = parse_token_movements(raw, wallet)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning(
                "transaction_malformed",
                signature=raw.get("signature") if isinstance(raw, dict) else None,
                error=repr(exc),
            )
            return None

        if not tokens and abs(native_change) < DROP_EPSILON:
            return None

        facts = TransferFacts.from_parts(tokens, native_change, raw.get("type"))
        tx_type = decide_type(facts, self._rules)
        usd_value = await self._usd_value(tokens, native_change, timestamp)

        return ClassifiedTransaction(
            signature=signature,
            timestamp=timestamp,
            type=tx_type,
            tokens=tuple(tokens),
            native_change=native_change,
            total_usd_value=usd_value,
        )

    async def classify_all(
        self, raws: Sequence[dict[str, Any]], wallet: str
    ) -> list[ClassifiedTransaction]:
        """Classify records concurrently and return them sorted by timestamp."""
        results = await asyncio.gather(
            *(self.classify(raw, wallet) for raw in raws),
            return_exceptions=True,
        )

        transactions: list[ClassifiedTransaction] = []
        for result in results:
            if isinstance(result, Exception):
                logger.warning("transaction_classification_failed", error=repr(result))
            elif result is not None:
                transactions.append(result)

        transactions.sort(key=lambda tx: tx.timestamp)

        logger.info(
            "transactions_classified",
            received=len(raws),
            kept=len(transactions),
            buys=sum(1 for tx in transactions if tx.type is TransactionType.BUY),
            sells=sum(1 for tx in transactions if tx.type is TransactionType.SELL),
        )
        return transactions

    async def _usd_value(
        self,
        tokens: Sequence[TokenMovement],
        native_change: Decimal,
        timestamp: int,
    ) -> Decimal:
        if native_change != 0:
            sol_price = await self._resolver.resolve(SOL_MINT, timestamp)
            value = abs(native_change) * sol_price
            if value > 0:
                return value

        stable_value = sum(
            (t.amount for t in tokens if t.mint in STABLE_MINTS), ZERO
        )
        if stable_value > 0:
            return stable_value

        priced = [t for t in tokens if t.mint not in STABLE_MINTS]
        if not priced:
            return ZERO
        prices = await self._resolver.resolve_many((t.mint, timestamp) for t in priced)
        return sum(
            (t.amount * price for t, price in zip(priced, prices) if price > 0), ZERO
        )
