"""P&L reconstruction: classification, timeline replay, events and stats."""

from walletpnl.pnl.classifier import TransactionClassifier, TransferFacts, decide_type
from walletpnl.pnl.engine import PnlEngine
from walletpnl.pnl.events import extract_events
from walletpnl.pnl.stats import calculate_stats
from walletpnl.pnl.timeline import BalanceLedger, TimelineBuilder

__all__ = [
    "BalanceLedger",
    "PnlEngine",
    "TimelineBuilder",
    "TransactionClassifier",
    "TransferFacts",
    "calculate_stats",
    "decide_type",
    "extract_events",
]
