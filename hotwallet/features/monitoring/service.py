"""Balance polling for pool accounts and deposit addresses.

Polls are stateless: every call reads the ledger afresh under its own retry
budget. A fixed-interval loop is provided by ``PollingScheduler``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from hotwallet.features.splitting.service import AccountSplitter
from hotwallet.ledger.base import RemoteLedger
from hotwallet.shared.events import DepositReceived, Funded, Notifier, Observer
from hotwallet.shared.network import DEFAULT_RETRY_CONFIG, RetryConfig, execute_with_retry

logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    account: str
    balance: int
    split_triggered: bool = False
    tx_refs: list[str] = field(default_factory=list)


class AccountMonitor:
    def __init__(
        self,
        ledger: RemoteLedger,
        splitter: AccountSplitter,
        retry_config: RetryConfig | None = None,
        test_mode: bool = False,
        observers: list[Observer] | None = None,
    ):
        self.ledger = ledger
        self.splitter = splitter
        self.retry_config = retry_config or DEFAULT_RETRY_CONFIG
        self.test_mode = test_mode
        self.notifier = Notifier(observers)

    @property
    def min_conf(self) -> int:
        # test mode sees deposits as soon as they hit the mempool
        return 0 if self.test_mode else 1

    @property
    def epsilon(self) -> int:
        return self.splitter.policy.epsilon

    def poll(self, account: str) -> PollResult:
        """Read ``account``'s balance and split it if it is worth splitting."""
        balance = execute_with_retry(
            lambda: self.ledger.get_balance(account, self.min_conf),
            self.retry_config.start(),
            context=f"Balance of {account!r}",
        )

        if balance < self.epsilon:
            logger.debug(
                "Account %r holds %d satoshis, below %d; nothing to do",
                account,
                balance,
                self.epsilon,
            )
            return PollResult(account=account, balance=balance)

        logger.info("Account %r funded with %d satoshis", account, balance)
        self.notifier.notify(Funded(account, balance))

        tx_refs = self.splitter.split(account, balance, min_conf=self.min_conf)
        return PollResult(
            account=account, balance=balance, split_triggered=True, tx_refs=tx_refs
        )

    def check_deposit(self, address: str) -> int:
        """Satoshis received at ``address``; zero means nothing has arrived yet."""
        amount = execute_with_retry(
            lambda: self.ledger.get_received_at(address, self.min_conf),
            self.retry_config.start(),
            context=f"Received at {address}",
        )
        if amount == 0:
            return 0

        logger.info("Deposit of %d satoshis seen at %s", amount, address)
        self.notifier.notify(DepositReceived(address, amount))
        return amount
