"""Reconciliation: decide from the ledger's own history whether an order was paid."""

from __future__ import annotations

import logging

from hotwallet.ledger.base import LedgerTransaction, Order, RemoteLedger
from hotwallet.shared.network import (
    DEFAULT_RETRY_CONFIG,
    RetryBudget,
    RetryConfig,
    execute_with_retry,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


def matching_refs(transactions: list[LedgerTransaction], order: Order) -> list[str]:
    """References of transactions paying exactly ``order``, in ledger order."""
    refs: list[str] = []
    for tx in transactions:
        if tx.pays(order) and tx.tx_ref not in refs:
            refs.append(tx.tx_ref)
    return refs


class TransactionReconciler:
    def __init__(
        self,
        ledger: RemoteLedger,
        retry_config: RetryConfig | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.ledger = ledger
        self.retry_config = retry_config or DEFAULT_RETRY_CONFIG
        self.page_size = page_size

    def _fetch(self, order: Order, budget: RetryBudget | None) -> list[LedgerTransaction]:
        # An empty page is ambiguous between "not propagated yet" and a
        # transport failure, so transport failures are retried, never read
        # as "no payment".
        return execute_with_retry(
            lambda: self.ledger.list_transactions(order.address, self.page_size),
            budget or self.retry_config.start(),
            context=f"List transactions for {order.address}",
        )

    def snapshot(self, order: Order, budget: RetryBudget | None = None) -> set[str]:
        """Matching transactions that already exist before a send is attempted."""
        baseline = set(matching_refs(self._fetch(order, budget), order))
        logger.debug(
            "Baseline for %d satoshis to %s: %d existing match(es)",
            order.amount,
            order.address,
            len(baseline),
        )
        return baseline

    def diff(
        self,
        order: Order,
        baseline: set[str],
        budget: RetryBudget | None = None,
    ) -> list[str]:
        """Matching transactions that appeared since ``baseline`` was taken."""
        new_refs = [
            ref
            for ref in matching_refs(self._fetch(order, budget), order)
            if ref not in baseline
        ]
        if len(new_refs) > 1:
            logger.warning(
                "%d new transactions pay %d satoshis to %s: %s",
                len(new_refs),
                order.amount,
                order.address,
                ", ".join(new_refs),
            )
        return new_refs
