"""Tests for the Wallet facade."""

import threading

import pytest

from hotwallet.config import DaemonConfig, MerchantConfig, WalletConfig
from hotwallet.errors import ConfigurationError, InsufficientFundsError
from hotwallet.features.splitting.service import SplitPolicy
from hotwallet.ledger.bitcoind import BitcoindLedger
from hotwallet.ledger.merchant import MerchantLedger
from hotwallet.shared.events import DepositReceived, Funded, SplitCompleted
from hotwallet.wallet import Wallet, create_ledger


@pytest.fixture
def wallet_config(retry_config):
    return WalletConfig(
        account="hot",
        pool_account="pool",
        retry_config=retry_config,
        split_policy=SplitPolicy(max_block_interval_minutes=30),
    )


@pytest.fixture
def wallet(wallet_config, fake_ledger):
    w = Wallet(wallet_config, ledger=fake_ledger)
    yield w
    w.stop()


class TestCreateLedger:
    def test_bitcoind_backend(self):
        config = WalletConfig(daemon=DaemonConfig(rpc_url="http://node:18443"))
        ledger = create_ledger(config)
        assert isinstance(ledger, BitcoindLedger)
        assert ledger.config.rpc_url == "http://node:18443"

    def test_merchant_backend(self):
        config = WalletConfig(backend="merchant", merchant=MerchantConfig(guid="g"))
        assert isinstance(create_ledger(config), MerchantLedger)

    def test_merchant_without_guid(self):
        with pytest.raises(ConfigurationError):
            create_ledger(WalletConfig(backend="merchant"))

    def test_wallet_builds_ledger_from_config(self):
        wallet = Wallet(WalletConfig())
        assert isinstance(wallet.ledger, BitcoindLedger)


class TestSendBitcoins:
    def test_sends_from_configured_account(self, wallet, fake_ledger, destination):
        assert wallet.send_bitcoins(destination, 100_000) == "tx0001"
        assert fake_ledger.send_calls == [("hot", destination, 100_000, 1)]

    def test_confirmed_funds_only_even_in_test_mode(
        self, fake_ledger, retry_config, destination
    ):
        wallet = Wallet(
            WalletConfig(test_mode=True, retry_config=retry_config), ledger=fake_ledger
        )
        wallet.send_bitcoins(destination, 1)
        assert fake_ledger.send_calls[0][3] == 1

    def test_insufficient_funds(self, wallet, fake_ledger, destination):
        fake_ledger.send_script = ["broke"]
        with pytest.raises(InsufficientFundsError):
            wallet.send_bitcoins(destination, 100_000)

    @pytest.mark.parametrize("amount", [0, -1, 1.5])
    def test_rejects_bad_amount(self, wallet, fake_ledger, destination, amount):
        with pytest.raises(ValueError):
            wallet.send_bitcoins(destination, amount)
        assert fake_ledger.send_calls == []

    def test_rejects_empty_address(self, wallet):
        with pytest.raises(ValueError):
            wallet.send_bitcoins("", 1)


class TestBalanceAndAddresses:
    def test_balance_of_sending_account(self, wallet, fake_ledger):
        fake_ledger.balances["hot"] = 12_345

        assert wallet.balance() == 12_345
        assert fake_ledger.balance_calls == [("hot", 1)]

    def test_balance_retried(self, wallet, fake_ledger, make_transport_error):
        fake_ledger.balance_failures = [make_transport_error()]
        assert wallet.balance() == 0
        assert len(fake_ledger.balance_calls) == 2

    def test_new_address(self, wallet):
        assert wallet.new_address("customer-7") == "customer-7-addr-001"


class TestMonitoring:
    def test_monitor_account_splits_and_notifies(self, wallet, fake_ledger):
        events = []
        wallet.add_observer(events.append)
        fake_ledger.balances["funding"] = 1_000_000

        result = wallet.monitor_account("funding")

        assert result.split_triggered
        assert [type(e) for e in events] == [Funded, SplitCompleted]
        assert fake_ledger.new_address_calls == ["pool"] * 60

    def test_monitor_account_empty(self, wallet):
        events = []
        wallet.add_observer(events.append)

        result = wallet.monitor_account("funding")

        assert result.balance == 0
        assert events == []

    def test_remove_observer(self, wallet, fake_ledger):
        events = []
        wallet.add_observer(events.append)
        wallet.remove_observer(events.append)
        fake_ledger.balances["funding"] = 1_000_000

        wallet.monitor_account("funding")

        assert events == []

    def test_observers_passed_at_construction(self, wallet_config, fake_ledger, destination):
        events = []
        wallet = Wallet(wallet_config, ledger=fake_ledger, observers=[events.append])
        fake_ledger.received[destination] = 5

        wallet.monitor_deposit_address(destination)

        assert events == [DepositReceived(destination, 5)]

    def test_monitor_deposit_address_new_address(self, wallet):
        address = wallet.new_address("customer")
        assert wallet.monitor_deposit_address(address) == 0

    def test_watch_account_polls_in_background(self, wallet, fake_ledger):
        polled = threading.Event()
        original = fake_ledger.get_balance

        def get_balance(account, min_conf):
            polled.set()
            return original(account, min_conf)

        fake_ledger.get_balance = get_balance

        scheduler = wallet.watch_account("funding", interval_seconds=0.01)

        assert polled.wait(timeout=5)
        assert wallet.watch_account("funding") is scheduler
        wallet.stop()
        assert not scheduler.is_running
