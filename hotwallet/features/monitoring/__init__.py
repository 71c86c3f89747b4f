"""Account and deposit monitoring feature for hotwallet."""

from hotwallet.features.monitoring.service import AccountMonitor, PollResult

__all__ = ["AccountMonitor", "PollResult"]
