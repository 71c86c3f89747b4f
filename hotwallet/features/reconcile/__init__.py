"""Transaction reconciliation feature for hotwallet."""

from hotwallet.features.reconcile.service import (
    DEFAULT_PAGE_SIZE,
    TransactionReconciler,
    matching_refs,
)

__all__ = ["TransactionReconciler", "matching_refs", "DEFAULT_PAGE_SIZE"]
