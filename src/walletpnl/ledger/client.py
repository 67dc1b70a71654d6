"""Abstract ledger-indexer client interface.

The P&L engine depends only on this interface, keeping Helius-specific
request shapes isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod


class LedgerClient(ABC):
    """Abstract base class for on-chain transaction history providers."""

    @abstractmethod
    async def list_signatures(self, wallet: str, start: int, end: int) -> list[str]:
        """Return signatures of the wallet's transactions within [start, end].

        Implementations cap the count; ordering is provider-defined.

        Raises:
            UpstreamError: When the listing call fails.
        """
        ...

    @abstractmethod
    async def fetch_transactions(self, signatures: list[str]) -> list[dict]:
        """Return parsed transaction records for the given signatures.

        Each record carries at least: signature, timestamp, type,
        nativeTransfers[] and tokenTransfers[]. Failed batches are
        skipped, so the result may be shorter than the input.
        """
        ...
