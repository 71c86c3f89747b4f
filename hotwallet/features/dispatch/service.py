"""Payment dispatch with reconciliation of ambiguous send failures.

A send that fails with a transport error may still have been broadcast.
Before every retry the dispatcher asks the reconciler whether a new matching
transaction has shown up since the baseline; if one has, that transaction is
the payment and no further send is made.
"""

from __future__ import annotations

import logging

from hotwallet.errors import InsufficientFundsError, LedgerError, NetworkTimeoutError
from hotwallet.features.reconcile.service import TransactionReconciler
from hotwallet.ledger.base import Order, RemoteLedger
from hotwallet.shared.logging import ContextAdapter
from hotwallet.shared.network import DEFAULT_RETRY_CONFIG, NetworkError, RetryConfig

logger = logging.getLogger(__name__)


class PaymentDispatcher:
    def __init__(
        self,
        ledger: RemoteLedger,
        reconciler: TransactionReconciler | None = None,
        account: str = "",
        min_conf: int = 1,
        retry_config: RetryConfig | None = None,
    ):
        self.ledger = ledger
        self.retry_config = retry_config or DEFAULT_RETRY_CONFIG
        self.reconciler = reconciler or TransactionReconciler(
            ledger, retry_config=self.retry_config
        )
        self.account = account
        self.min_conf = min_conf

    def dispatch(self, order: Order) -> str:
        """Pay ``order`` at most once and return the transaction reference.

        Raises ``InsufficientFundsError`` straight away if the ledger rejects
        the send for lack of funds, ``NetworkTimeoutError`` if the deadline
        passes with no send confirmed and no match found, and ``NetworkError``
        if the ledger's history could never be read.
        """
        order_log = ContextAdapter.for_order(logger, order, self.account)
        budget = self.retry_config.start()
        baseline = self.reconciler.snapshot(order, budget)

        attempts = 0
        last_error: Exception | None = None
        while not budget.expired():
            attempts += 1
            log = order_log.bind(attempt=attempts)
            try:
                tx_ref = self.ledger.send(
                    self.account, order.address, order.amount, self.min_conf
                )
            except InsufficientFundsError:
                log.warning("Insufficient funds for payment")
                raise
            except (NetworkError, LedgerError) as e:
                last_error = e
                log.warning("Send failed, outcome unknown: %s", e)
                budget.wait()
                new_refs = self.reconciler.diff(order, baseline, budget)
                if new_refs:
                    log.bind(tx_ref=new_refs[0]).info(
                        "Failed-looking send went through after all"
                    )
                    return new_refs[0]
                continue

            log.bind(tx_ref=tx_ref).info("Payment sent")
            return tx_ref

        order_log.bind(attempt=attempts).error(
            "Giving up after %.1fs with no payment found", budget.elapsed()
        )
        raise NetworkTimeoutError(
            f"Network timeout sending {order.amount} satoshis to {order.address}",
            order=order,
            elapsed=budget.elapsed(),
            attempts=attempts,
            last_error=last_error,
        )
