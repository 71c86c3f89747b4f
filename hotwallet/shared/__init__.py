"""Shared utilities for hotwallet."""

from hotwallet.shared.amounts import (
    SATOSHI_FACTOR,
    coins_to_satoshis,
    satoshis_to_coins,
)
from hotwallet.shared.events import (
    DepositReceived,
    Funded,
    Notifier,
    SplitCompleted,
)
from hotwallet.shared.logging import (
    ContextAdapter,
    LoggingConfig,
    LogLevel,
    get_logger,
    redact,
    redact_fields,
    setup_logging,
)
from hotwallet.shared.network import (
    NetworkClient,
    NetworkError,
    NetworkErrorType,
    RetryBudget,
    RetryConfig,
    TimeoutConfig,
    execute_with_retry,
)
from hotwallet.shared.scheduler import PollingScheduler

__all__ = [
    "NetworkClient",
    "NetworkError",
    "NetworkErrorType",
    "RetryBudget",
    "RetryConfig",
    "TimeoutConfig",
    "execute_with_retry",
    "SATOSHI_FACTOR",
    "coins_to_satoshis",
    "satoshis_to_coins",
    "Funded",
    "SplitCompleted",
    "DepositReceived",
    "Notifier",
    "PollingScheduler",
    "ContextAdapter",
    "LoggingConfig",
    "LogLevel",
    "get_logger",
    "redact",
    "redact_fields",
    "setup_logging",
]
