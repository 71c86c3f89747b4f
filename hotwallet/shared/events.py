"""Notifications emitted by the account monitor and splitter."""

import logging
from dataclasses import dataclass
from typing import Callable, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Funded:
    account: str
    balance: int


@dataclass(frozen=True)
class SplitCompleted:
    account: str
    tx_refs: tuple[str, ...]


@dataclass(frozen=True)
class DepositReceived:
    address: str
    amount: int


WalletEvent = Union[Funded, SplitCompleted, DepositReceived]
Observer = Callable[[WalletEvent], None]


class Notifier:
    """Explicit list of observers owned by one component."""

    def __init__(self, observers: list[Observer] | None = None):
        self._observers: list[Observer] = list(observers or [])

    def add_observer(self, observer: Observer) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        try:
            self._observers.remove(observer)
        except ValueError:
            pass

    def notify(self, event: WalletEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception as e:
                logger.error(
                    "Error in observer for %s: %s", type(event).__name__, e
                )
