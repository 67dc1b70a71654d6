"""Ledger-indexer layer -- Helius transaction history via httpx."""

from walletpnl.ledger.client import LedgerClient
from walletpnl.ledger.helius_client import HeliusClient

__all__ = ["HeliusClient", "LedgerClient"]
