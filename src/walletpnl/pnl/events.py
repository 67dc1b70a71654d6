"""Chart markers: the transactions worth plotting on the P&L timeline."""

from collections.abc import Iterable

from walletpnl.models import (
    ClassifiedTransaction,
    Direction,
    PortfolioEvent,
    TransactionType,
)

#: Which token legs each plotted type keeps.
_KEPT_DIRECTION: dict[TransactionType, Direction] = {
    TransactionType.BUY: Direction.IN,
    TransactionType.SELL: Direction.OUT,
    TransactionType.TRANSFER_OUT: Direction.OUT,
}


def extract_events(transactions: Iterable[ClassifiedTransaction]) -> list[PortfolioEvent]:
    """Project BUY/SELL/TRANSFER_OUT transactions into plot markers.

    TRANSFER_IN is dropped (airdrops and dust are noise on the chart).
    BUY keeps the tokens received; SELL and TRANSFER_OUT keep the tokens sent.
    """
    events: list[PortfolioEvent] = []
    for tx in transactions:
        direction = _KEPT_DIRECTION.get(tx.type)
        if direction is None:
            continue
        events.append(
            PortfolioEvent(
                signature=tx.signature,
                timestamp=tx.timestamp,
                type=tx.type,
                tokens=tuple(t for t in tx.tokens if t.direction is direction),
                total_value=tx.total_usd_value,
            )
        )
    return events
