"""Account splitting feature for hotwallet."""

from hotwallet.features.splitting.service import (
    AccountSplitter,
    SplitPolicy,
    distribute,
)

__all__ = ["AccountSplitter", "SplitPolicy", "distribute"]
