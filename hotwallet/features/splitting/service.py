"""Account splitting: fan a lump balance out into many small outputs.

Many independent outputs let later payments be issued concurrently without
contending for the same unspent output, while only 1-confirmation funds are
ever spent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hotwallet.errors import ConfigurationError, LedgerError
from hotwallet.ledger.base import RemoteLedger
from hotwallet.shared.events import Notifier, Observer, SplitCompleted
from hotwallet.shared.network import NetworkError, malformed_response

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitPolicy:
    """Tunables from which all split constants are derived."""

    max_block_interval_minutes: int = 60
    expected_tx_per_minute: int = 2
    outputs_per_tx: int = 20
    tx_fee_estimate: int = 10_000

    def __post_init__(self):
        for name in (
            "max_block_interval_minutes",
            "expected_tx_per_minute",
            "outputs_per_tx",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer")
        if (
            isinstance(self.tx_fee_estimate, bool)
            or not isinstance(self.tx_fee_estimate, int)
            or self.tx_fee_estimate < 0
        ):
            raise ConfigurationError("tx_fee_estimate must be a non-negative integer")
        # a balance of exactly epsilon leaves fee_margin per transaction,
        # which must cover one satoshi for every output
        if self.fee_margin < self.outputs_per_tx:
            raise ConfigurationError(
                f"fee margin {self.fee_margin} cannot fund {self.outputs_per_tx} "
                f"outputs per transaction; raise tx_fee_estimate"
            )
        if self.split_count % self.outputs_per_tx != 0:
            raise ConfigurationError(
                f"split count {self.split_count} is not a multiple of "
                f"outputs per transaction {self.outputs_per_tx}"
            )

    @property
    def split_count(self) -> int:
        return self.max_block_interval_minutes * self.expected_tx_per_minute

    @property
    def transaction_count(self) -> int:
        return self.split_count // self.outputs_per_tx

    @property
    def fee_margin(self) -> int:
        return 3 * self.tx_fee_estimate

    @property
    def epsilon(self) -> int:
        """Smallest balance worth splitting."""
        return 2 * self.fee_margin * self.transaction_count

    def per_transaction_amount(self, balance: int) -> int:
        return balance // self.transaction_count - self.fee_margin


def distribute(amount: int, addresses: list[str]) -> dict[str, int]:
    """Spread ``amount`` evenly; the first address also takes the remainder."""
    if not addresses:
        raise ValueError("Cannot distribute over zero addresses")
    share, remainder = divmod(amount, len(addresses))
    amounts = {address: share for address in addresses}
    amounts[addresses[0]] += remainder
    return amounts


class AccountSplitter:
    def __init__(
        self,
        ledger: RemoteLedger,
        policy: SplitPolicy | None = None,
        pool_account: str = "pool",
        observers: list[Observer] | None = None,
    ):
        self.ledger = ledger
        self.policy = policy or SplitPolicy()
        self.pool_account = pool_account
        self.notifier = Notifier(observers)

    def _fresh_addresses(self) -> list[str]:
        addresses = [
            self.ledger.new_address(self.pool_account)
            for _ in range(self.policy.outputs_per_tx)
        ]
        if len(set(addresses)) != len(addresses):
            raise malformed_response(
                "new_address", f"duplicate address handed out for {self.pool_account!r}"
            )
        return addresses

    def split(self, source_account: str, balance: int, min_conf: int = 1) -> list[str]:
        """Issue ``transaction_count`` fan-out sends and return their references.

        Transactions are issued one after another. The first failure aborts the
        run and propagates; transactions already broadcast stay in place.
        """
        policy = self.policy
        per_transaction = policy.per_transaction_amount(balance)
        if per_transaction < policy.outputs_per_tx:
            raise ValueError(
                f"Balance {balance} is too small to split into "
                f"{policy.split_count} outputs"
            )

        logger.info(
            "Splitting %d satoshis from %r into %d transactions of %d satoshis",
            balance,
            source_account,
            policy.transaction_count,
            per_transaction,
        )

        tx_refs: list[str] = []
        for index in range(policy.transaction_count):
            try:
                amounts = distribute(per_transaction, self._fresh_addresses())
                tx_ref = self.ledger.send_many(source_account, amounts, min_conf)
            except (NetworkError, LedgerError) as e:
                logger.error(
                    "Split of %r aborted after %d/%d transactions: %s",
                    source_account,
                    len(tx_refs),
                    policy.transaction_count,
                    e,
                )
                raise
            tx_refs.append(tx_ref)
            logger.debug(
                "Split transaction %d/%d issued: %s",
                index + 1,
                policy.transaction_count,
                tx_ref,
            )

        self.notifier.notify(SplitCompleted(source_account, tuple(tx_refs)))
        return tx_refs
