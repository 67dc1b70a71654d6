"""Headline statistics for a reconstructed timeline.

Pure Decimal reductions over the timeline and the classified transactions.
Empty inputs degrade to an all-zero PnlStats.
"""

from collections import Counter
from collections.abc import Sequence
from decimal import Decimal

from walletpnl.models import (
    ClassifiedTransaction,
    PnlStats,
    TimelinePoint,
    TransactionType,
)

ZERO = Decimal("0")


def calculate_stats(
    timeline: Sequence[TimelinePoint],
    transactions: Sequence[ClassifiedTransaction],
) -> PnlStats:
    """Reduce the timeline and transactions into PnlStats.

    invested_capital is the first point's value and current_value the
    last's. The best day is the first point holding the maximum value.
    total_pnl_percent is 0 when invested_capital is 0.
    total_transfers counts outgoing transfers only.
    """
    counts = Counter(tx.type for tx in transactions)

    if not timeline:
        return PnlStats(
            total_buys=counts[TransactionType.BUY],
            total_sells=counts[TransactionType.SELL],
            total_transfers=counts[TransactionType.TRANSFER_OUT],
        )

    invested = timeline[0].portfolio_value
    current = timeline[-1].portfolio_value

    best = timeline[0]
    for point in timeline[1:]:
        if point.portfolio_value > best.portfolio_value:
            best = point

    total_pnl = current - invested
    total_pnl_percent = total_pnl / invested * 100 if invested > 0 else ZERO

    return PnlStats(
        invested_capital=invested,
        current_value=current,
        best_day_value=best.portfolio_value,
        best_day_date=best.label,
        total_pnl=total_pnl,
        total_pnl_percent=total_pnl_percent,
        total_buys=counts[TransactionType.BUY],
        total_sells=counts[TransactionType.SELL],
        total_transfers=counts[TransactionType.TRANSFER_OUT],
    )
