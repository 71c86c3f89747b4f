import pytest

from hotwallet.errors import InsufficientFundsError
from hotwallet.ledger.base import LedgerTransaction, TransactionOutput
from hotwallet.shared.network import NetworkError, NetworkErrorType, RetryConfig


class FakeClock:
    """Monotonic clock whose sleep just moves time forward."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def transport_error(message: str = "Network timeout") -> NetworkError:
    return NetworkError(error_type=NetworkErrorType.TIMEOUT, message=message)


class FakeLedger:
    """In-memory ledger. Every broadcast transaction is kept in ``transactions``.

    ``send_script`` scripts the outcome of successive ``send`` calls:
    - "ok": broadcast and return the reference
    - "lost": transport error, nothing broadcast
    - "ghost": transport error, but the transaction was broadcast anyway
    - "broke": insufficient funds
    Once the script runs out, ``default_send_outcome`` applies.
    """

    def __init__(self):
        self.balances: dict[str, int] = {}
        self.received: dict[str, int] = {}
        self.transactions: list[LedgerTransaction] = []
        self.send_script: list[str] = []
        self.default_send_outcome = "ok"
        self.list_failures: list[Exception] = []
        self.send_many_failures: dict[int, Exception] = {}
        self.balance_failures: list[Exception] = []
        self.send_calls: list[tuple[str, str, int, int]] = []
        self.send_many_calls: list[tuple[str, dict[str, int], int]] = []
        self.balance_calls: list[tuple[str, int]] = []
        self.received_calls: list[tuple[str, int]] = []
        self.new_address_calls: list[str] = []
        self.list_calls = 0
        self._address_counter = 0

    def broadcast(self, outputs: dict[str, int]) -> str:
        tx_ref = f"tx{len(self.transactions) + 1:04d}"
        self.transactions.append(
            LedgerTransaction(
                tx_ref=tx_ref,
                outputs=tuple(
                    TransactionOutput(address=address, amount=amount)
                    for address, amount in outputs.items()
                ),
            )
        )
        return tx_ref

    def send(self, account, address, amount, min_conf):
        self.send_calls.append((account, address, amount, min_conf))
        outcome = (
            self.send_script.pop(0) if self.send_script else self.default_send_outcome
        )
        if outcome == "broke":
            raise InsufficientFundsError()
        if outcome == "lost":
            raise transport_error("send timed out")
        tx_ref = self.broadcast({address: amount})
        if outcome == "ghost":
            raise transport_error("send timed out")
        return tx_ref

    def get_balance(self, account, min_conf):
        self.balance_calls.append((account, min_conf))
        if self.balance_failures:
            raise self.balance_failures.pop(0)
        return self.balances.get(account, 0)

    def get_received_at(self, address, min_conf):
        self.received_calls.append((address, min_conf))
        return self.received.get(address, 0)

    def new_address(self, account):
        self.new_address_calls.append(account)
        self._address_counter += 1
        return f"{account}-addr-{self._address_counter:03d}"

    def send_many(self, account, amounts, min_conf):
        index = len(self.send_many_calls)
        self.send_many_calls.append((account, dict(amounts), min_conf))
        if index in self.send_many_failures:
            raise self.send_many_failures[index]
        return self.broadcast(amounts)

    def list_transactions(self, address, limit):
        self.list_calls += 1
        if self.list_failures:
            raise self.list_failures.pop(0)
        matching = [
            tx
            for tx in self.transactions
            if any(output.address == address for output in tx.outputs)
        ]
        return matching[-limit:]


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def retry_config(fake_clock):
    return RetryConfig(
        retry_timeout=60.0,
        retry_interval=5.0,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )


@pytest.fixture
def fake_ledger():
    return FakeLedger()


@pytest.fixture
def make_transport_error():
    return transport_error


@pytest.fixture
def destination():
    return "mzBc4XEFSdzCDcTxAgf6EZXgsZWpztRhef"


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Keep tests away from the user's config and log directory."""
    for name in (
        "HOTWALLET_CONFIG",
        "HOTWALLET_BACKEND",
        "HOTWALLET_ACCOUNT",
        "HOTWALLET_TEST_MODE",
        "HOTWALLET_LOG_LEVEL",
        "HOTWALLET_LOG_STDOUT",
        "HOTWALLET_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOTWALLET_LOG_DIR", str(tmp_path / "logs"))
    yield
