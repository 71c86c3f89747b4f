"""Wallet facade: one ledger binding wired to dispatch, monitoring and splitting."""

from __future__ import annotations

import logging

from hotwallet.config import WalletConfig
from hotwallet.features.dispatch.service import PaymentDispatcher
from hotwallet.features.monitoring.service import AccountMonitor, PollResult
from hotwallet.features.reconcile.service import TransactionReconciler
from hotwallet.features.splitting.service import AccountSplitter
from hotwallet.ledger.base import Order, RemoteLedger
from hotwallet.ledger.bitcoind import BitcoindLedger
from hotwallet.ledger.merchant import MerchantLedger
from hotwallet.shared.events import Observer
from hotwallet.shared.network import execute_with_retry
from hotwallet.shared.scheduler import PollingScheduler

logger = logging.getLogger(__name__)


def create_ledger(config: WalletConfig) -> RemoteLedger:
    if config.backend == "merchant":
        return MerchantLedger(config.merchant, timeout_config=config.timeout_config)
    return BitcoindLedger(config.daemon, timeout_config=config.timeout_config)


class Wallet:
    def __init__(
        self,
        config: WalletConfig | None = None,
        ledger: RemoteLedger | None = None,
        observers: list[Observer] | None = None,
    ):
        self.config = config or WalletConfig.from_environment()
        self.ledger = ledger or create_ledger(self.config)

        self.reconciler = TransactionReconciler(
            self.ledger,
            retry_config=self.config.retry_config,
            page_size=self.config.reconcile_page_size,
        )
        self.dispatcher = PaymentDispatcher(
            self.ledger,
            self.reconciler,
            account=self.config.account,
            min_conf=1,
            retry_config=self.config.retry_config,
        )
        self.splitter = AccountSplitter(
            self.ledger,
            self.config.split_policy,
            pool_account=self.config.pool_account,
            observers=observers,
        )
        self.monitor = AccountMonitor(
            self.ledger,
            self.splitter,
            retry_config=self.config.retry_config,
            test_mode=self.config.test_mode,
            observers=observers,
        )
        self._schedulers: dict[str, PollingScheduler] = {}

    def add_observer(self, observer: Observer) -> None:
        self.monitor.notifier.add_observer(observer)
        self.splitter.notifier.add_observer(observer)

    def remove_observer(self, observer: Observer) -> None:
        self.monitor.notifier.remove_observer(observer)
        self.splitter.notifier.remove_observer(observer)

    def send_bitcoins(self, address: str, satoshis: int) -> str:
        return self.dispatcher.dispatch(Order(address=address, amount=satoshis))

    def balance(self) -> int:
        """Sending account balance: every spend, deposits with 1 confirmation."""
        account = self.config.account
        return execute_with_retry(
            lambda: self.ledger.get_balance(account, 1),
            self.config.retry_config.start(),
            context=f"Balance of {account!r}",
        )

    def new_address(self, account: str) -> str:
        return self.ledger.new_address(account)

    def monitor_account(self, account: str) -> PollResult:
        return self.monitor.poll(account)

    def monitor_deposit_address(self, address: str) -> int:
        return self.monitor.check_deposit(address)

    def watch_account(
        self, account: str, interval_seconds: float | None = None
    ) -> PollingScheduler:
        """Poll ``account`` on a fixed interval until ``stop`` is called."""
        scheduler = self._schedulers.get(account)
        if scheduler is None:
            scheduler = PollingScheduler(
                lambda: self.monitor.poll(account),
                interval_seconds=interval_seconds or self.config.poll_interval_seconds,
                name=f"account-{account or 'default'}",
            )
            self._schedulers[account] = scheduler
        scheduler.start()
        return scheduler

    def stop(self) -> None:
        for scheduler in self._schedulers.values():
            scheduler.stop()
        self._schedulers.clear()
