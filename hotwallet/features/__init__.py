"""Feature modules for hotwallet.

- dispatch: one non-duplicating payment per order
- reconcile: matching ledger history against an order
- monitoring: balance and deposit polling
- splitting: fanning a balance out into many small outputs
"""
