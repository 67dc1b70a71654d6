"""Tests for chart event extraction."""

from decimal import Decimal

from tests.factories import BONK, DAY0, JUP, USDC
from walletpnl.models import (
    ClassifiedTransaction,
    Direction,
    TokenMovement,
    TransactionType,
)
from walletpnl.pnl.events import extract_events


def _swap(signature: str, tx_type: TransactionType, ts: int = DAY0) -> ClassifiedTransaction:
    return ClassifiedTransaction(
        signature=signature,
        timestamp=ts,
        type=tx_type,
        tokens=(
            TokenMovement(BONK, "BONK", Decimal("100"), Direction.IN),
            TokenMovement(USDC, "USDC", Decimal("25"), Direction.OUT),
        ),
        native_change=Decimal("0"),
        total_usd_value=Decimal("25"),
    )


def test_buy_keeps_received_tokens() -> None:
    (event,) = extract_events([_swap("b", TransactionType.BUY)])

    assert event.type is TransactionType.BUY
    assert [t.mint for t in event.tokens] == [BONK]
    assert event.total_value == Decimal("25")
    assert event.signature == "b"


def test_sell_keeps_sent_tokens() -> None:
    (event,) = extract_events([_swap("s", TransactionType.SELL)])
    assert [t.mint for t in event.tokens] == [USDC]


def test_transfer_out_keeps_sent_tokens() -> None:
    tx = ClassifiedTransaction(
        signature="o",
        timestamp=DAY0,
        type=TransactionType.TRANSFER_OUT,
        tokens=(TokenMovement(JUP, "JUP", Decimal("3"), Direction.OUT),),
        native_change=Decimal("0"),
        total_usd_value=Decimal("2.4"),
    )

    (event,) = extract_events([tx])

    assert event.tokens == tx.tokens


def test_transfer_in_is_not_plotted() -> None:
    assert extract_events([_swap("i", TransactionType.TRANSFER_IN)]) == []


def test_order_follows_input() -> None:
    transactions = [
        _swap("first", TransactionType.BUY, DAY0),
        _swap("skip", TransactionType.TRANSFER_IN, DAY0 + 5),
        _swap("second", TransactionType.SELL, DAY0 + 10),
    ]

    assert [e.signature for e in extract_events(transactions)] == ["first", "second"]
