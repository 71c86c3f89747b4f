"""Domain errors raised by hotwallet.

Transport and malformed-response failures are ``hotwallet.shared.network.NetworkError``.
"""

from __future__ import annotations

from typing import Any


class WalletError(Exception):
    pass


class LedgerError(WalletError):
    """The ledger understood the request and rejected it."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class InsufficientFundsError(LedgerError):
    """The account cannot cover the send. Never retried."""

    def __init__(self, message: str = "Insufficient funds", code: int | None = None):
        super().__init__(message, code)


class NetworkTimeoutError(WalletError):
    """No outcome could be established before the retry deadline.

    Distinct from a transport error: the payment may or may not have been
    broadcast, and reconciliation found no evidence of it.
    """

    def __init__(
        self,
        message: str = "Network timeout",
        order: Any = None,
        elapsed: float = 0.0,
        attempts: int = 0,
        last_error: Exception | None = None,
    ):
        super().__init__(message)
        self.order = order
        self.elapsed = elapsed
        self.attempts = attempts
        self.last_error = last_error


class ConfigurationError(WalletError):
    """Invalid configuration detected at startup. Fatal."""
