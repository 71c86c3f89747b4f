"""Payment dispatch feature for hotwallet."""

from hotwallet.features.dispatch.service import PaymentDispatcher

__all__ = ["PaymentDispatcher"]
