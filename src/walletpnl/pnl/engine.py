"""P&L reconstruction engine: one wallet query end to end.

Pipeline:
1. List the wallet's signatures inside the requested window
2. Enrich them into parsed transfer records (concurrent batches)
3. Classify and value each record, sorted by timestamp once
4. Build the valued timeline (replay, or holdings-only fallback)
5. Derive chart events and headline stats from the same data

Graceful degradation: a failing ledger call yields an empty transaction
list, and price gaps value at 0, so the caller always gets a structurally
valid report. Only a missing wallet address or a missing ledger
credential is fatal.
"""

import time
from collections.abc import Callable, Sequence

from walletpnl.constants import DEFAULT_TIME_RANGE, range_seconds
from walletpnl.exceptions import ConfigurationError, InvalidRequestError, UpstreamError
from walletpnl.ledger.client import LedgerClient
from walletpnl.logging import get_logger, request_context
from walletpnl.models import PnlReport, TokenHolding
from walletpnl.pnl.classifier import TransactionClassifier
from walletpnl.pnl.events import extract_events
from walletpnl.pnl.stats import calculate_stats
from walletpnl.pnl.timeline import TimelineBuilder

logger = get_logger(__name__)


class PnlEngine:
    """Coordinates ledger fetch, classification, timeline, events and stats.

    Args:
        ledger: Ledger-indexer client. None when no credential is configured;
            every analyze() call then fails with ConfigurationError.
        classifier: Transaction classifier (owns price lookups for valuation).
        timeline_builder: Timeline builder (owns price lookups for replay).
        clock: Time source, injectable for tests.
    """

    def __init__(
        self,
        ledger: LedgerClient | None,
        classifier: TransactionClassifier,
        timeline_builder: TimelineBuilder,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ledger = ledger
        self._classifier = classifier
        self._timeline_builder = timeline_builder
        self._clock = clock

    async def analyze(
        self,
        wallet: str | None,
        time_range: str = DEFAULT_TIME_RANGE,
        holdings: Sequence[TokenHolding] = (),
    ) -> PnlReport:
        """Reconstruct the wallet's P&L over the requested range.

        Raises:
            InvalidRequestError: If wallet is missing or blank.
            ConfigurationError: If no ledger client is configured.
        """
        if not wallet or not wallet.strip():
            raise InvalidRequestError("Wallet address is required")
        if self._ledger is None:
            raise ConfigurationError("Helius API key not configured")

        wallet = wallet.strip()
        now = int(self._clock())
        start = now - range_seconds(time_range)

        with request_context(wallet=wallet, time_range=time_range):
            raws = await self._fetch_raw(wallet, start, now)
            transactions = await self._classifier.classify_all(raws, wallet)

            timeline = await self._timeline_builder.build(
                transactions, start, now, holdings, time_range
            )
            events = extract_events(transactions)
            stats = calculate_stats(timeline, transactions)

            logger.info(
                "pnl_analyzed",
                transactions=len(transactions),
                timeline_points=len(timeline),
                events=len(events),
                holdings=len(holdings),
                total_pnl=str(stats.total_pnl),
            )

        return PnlReport(
            timeline=timeline,
            events=events,
            stats=stats,
            transaction_count=len(transactions),
        )

    async def _fetch_raw(self, wallet: str, start: int, end: int) -> list[dict]:
        assert self._ledger is not None
        try:
            signatures = await self._ledger.list_signatures(wallet, start, end)
            if not signatures:
                return []
            return await self._ledger.fetch_transactions(signatures)
        except UpstreamError as exc:
            logger.warning("ledger_unavailable", error=str(exc))
            return []
