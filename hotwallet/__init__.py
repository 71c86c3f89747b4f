"""hotwallet - payment dispatch and pool liquidity over an unreliable ledger.

This package is organized into feature-based modules:
- features.dispatch: at-most-once payments with reconciliation
- features.reconcile: matching ledger history against an order
- features.monitoring: balance and deposit polling
- features.splitting: fanning balances out into many outputs
- ledger: bitcoind JSON-RPC and HTTPS merchant bindings
- shared: network, amounts, events, logging, scheduling
"""

from hotwallet.config import DaemonConfig, MerchantConfig, WalletConfig
from hotwallet.errors import (
    ConfigurationError,
    InsufficientFundsError,
    LedgerError,
    NetworkTimeoutError,
    WalletError,
)
from hotwallet.features.splitting.service import SplitPolicy
from hotwallet.ledger.base import Order, RemoteLedger
from hotwallet.shared.network import NetworkError, NetworkErrorType
from hotwallet.wallet import Wallet, create_ledger

__version__ = "0.1.0"
__all__ = [
    "Wallet",
    "create_ledger",
    "WalletConfig",
    "DaemonConfig",
    "MerchantConfig",
    "SplitPolicy",
    "Order",
    "RemoteLedger",
    "WalletError",
    "LedgerError",
    "InsufficientFundsError",
    "NetworkTimeoutError",
    "ConfigurationError",
    "NetworkError",
    "NetworkErrorType",
]
