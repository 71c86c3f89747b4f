"""Command line entry point: ``python -m hotwallet``."""

from __future__ import annotations

import argparse
import signal
import threading

from hotwallet.errors import WalletError
from hotwallet.shared.events import WalletEvent
from hotwallet.shared.logging import LoggingConfig, get_logger, setup_logging
from hotwallet.shared.network import NetworkError
from hotwallet.wallet import Wallet

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hotwallet")
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch = subparsers.add_parser("watch", help="poll accounts and split their balance")
    watch.add_argument("accounts", nargs="+")
    watch.add_argument("--interval", type=float, default=None)

    subparsers.add_parser("balance", help="print the sending account balance")
    return parser


def _log_event(event: WalletEvent) -> None:
    logger.bind(event=type(event).__name__).info("%s", event)


def _watch(wallet: Wallet, accounts: list[str], interval: float | None) -> int:
    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    wallet.add_observer(_log_event)
    for account in accounts:
        wallet.watch_account(account, interval)
    stop.wait()
    wallet.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    config = LoggingConfig.from_environment()
    config.log_to_stdout = True
    setup_logging(config)

    try:
        wallet = Wallet()
        if args.command == "balance":
            print(wallet.balance())
            return 0
        return _watch(wallet, args.accounts, args.interval)
    except (WalletError, NetworkError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
