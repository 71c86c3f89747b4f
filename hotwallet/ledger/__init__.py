"""Ledger bindings. Callers depend only on ``RemoteLedger``."""

from hotwallet.ledger.base import (
    LedgerTransaction,
    Order,
    RemoteLedger,
    TransactionOutput,
)
from hotwallet.ledger.bitcoind import BitcoindLedger
from hotwallet.ledger.merchant import MerchantLedger

__all__ = [
    "RemoteLedger",
    "Order",
    "LedgerTransaction",
    "TransactionOutput",
    "BitcoindLedger",
    "MerchantLedger",
]
