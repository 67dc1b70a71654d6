"""Shared data models for the wallet P&L engine.

CRITICAL: All monetary values, token amounts and prices use Decimal.
Never use float for balances, prices or USD values.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class TransactionType(str, Enum):
    """Economic intent of a wallet transaction."""

    BUY = "BUY"
    SELL = "SELL"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"


class Direction(str, Enum):
    """Token flow relative to the analysed wallet."""

    IN = "IN"
    OUT = "OUT"


@dataclass(frozen=True)
class TokenMovement:
    """One token leg of a transaction, as seen from the wallet."""

    mint: str
    symbol: str
    amount: Decimal  # always >= 0; sign lives in direction
    direction: Direction

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.direction is Direction.IN else -self.amount


@dataclass(frozen=True)
class ClassifiedTransaction:
    """A raw ledger transaction reduced to its type, token legs and USD value."""

    signature: str
    timestamp: int  # Unix seconds
    type: TransactionType
    tokens: tuple[TokenMovement, ...]
    native_change: Decimal  # signed SOL delta for the wallet
    total_usd_value: Decimal

    @property
    def has_incoming(self) -> bool:
        return any(t.direction is Direction.IN for t in self.tokens)

    @property
    def has_outgoing(self) -> bool:
        return any(t.direction is Direction.OUT for t in self.tokens)


@dataclass(frozen=True)
class TokenHolding:
    """A current holding supplied by the caller, with its live price."""

    mint: str
    symbol: str = ""
    balance: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    change_24h: Decimal = Decimal("0")  # percent, e.g. 6.28


@dataclass
class TimelinePoint:
    """Portfolio valuation at one bucket boundary.

    pnl and pnl_percent are back-filled once the baseline is known.
    """

    timestamp: int
    label: str
    portfolio_value: Decimal
    pnl: Decimal = Decimal("0")
    pnl_percent: Decimal = Decimal("0")


@dataclass(frozen=True)
class PortfolioEvent:
    """A plottable marker derived from a BUY, SELL or TRANSFER_OUT."""

    signature: str
    timestamp: int
    type: TransactionType
    tokens: tuple[TokenMovement, ...]
    total_value: Decimal


@dataclass(frozen=True)
class PnlStats:
    """Headline figures for a reconstructed timeline."""

    invested_capital: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    best_day_value: Decimal = Decimal("0")
    best_day_date: str = ""
    total_pnl: Decimal = Decimal("0")
    total_pnl_percent: Decimal = Decimal("0")
    total_buys: int = 0
    total_sells: int = 0
    total_transfers: int = 0


@dataclass
class PnlReport:
    """Everything the chart needs for one wallet and time range."""

    timeline: list[TimelinePoint] = field(default_factory=list)
    events: list[PortfolioEvent] = field(default_factory=list)
    stats: PnlStats = field(default_factory=PnlStats)
    transaction_count: int = 0
