"""The capability set every ledger binding provides."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from hotwallet.shared.amounts import validate_satoshis


@dataclass(frozen=True)
class Order:
    """One payment request. Identified only by address, amount and time."""

    address: str
    amount: int

    def __post_init__(self):
        if not self.address:
            raise ValueError("Order needs a destination address")
        validate_satoshis(self.amount)
        if self.amount == 0:
            raise ValueError("Order amount must be greater than zero")


@dataclass(frozen=True)
class TransactionOutput:
    address: str
    amount: int


@dataclass(frozen=True)
class LedgerTransaction:
    tx_ref: str
    outputs: tuple[TransactionOutput, ...] = field(default_factory=tuple)

    def pays(self, order: Order) -> bool:
        """True if some output sends exactly the order's amount to its address."""
        return any(
            output.address == order.address and output.amount == order.amount
            for output in self.outputs
        )


class RemoteLedger(Protocol):
    """Remote service that builds and broadcasts transactions.

    Amounts are integer satoshis on both sides of this interface. Any call may
    raise ``NetworkError`` (transport failure or malformed response) or a
    ``LedgerError`` (domain rejection, e.g. ``InsufficientFundsError``).
    """

    def send(self, account: str, address: str, amount: int, min_conf: int) -> str: ...

    def get_balance(self, account: str, min_conf: int) -> int: ...

    def get_received_at(self, address: str, min_conf: int) -> int: ...

    def new_address(self, account: str) -> str: ...

    def send_many(
        self, account: str, amounts: dict[str, int], min_conf: int
    ) -> str: ...

    def list_transactions(self, address: str, limit: int) -> list[LedgerTransaction]: ...
