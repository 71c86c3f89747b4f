"""Ledger binding for a hosted wallet's HTTPS merchant API.

Every call is a form-encoded POST to ``/merchant/<guid>/<action>`` that
carries the wallet password. Amounts travel as 8-decimal coin strings.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from hotwallet.errors import ConfigurationError, InsufficientFundsError, LedgerError
from hotwallet.ledger.base import LedgerTransaction, TransactionOutput
from hotwallet.shared.amounts import coins_to_satoshis, satoshis_to_coins
from hotwallet.shared.network import NetworkClient, TimeoutConfig, malformed_response

if TYPE_CHECKING:
    from hotwallet.config import MerchantConfig

logger = logging.getLogger(__name__)

INSUFFICIENT_FUNDS_MARKERS = ("insufficient funds", "insufficient balance", "no free outputs")


class MerchantLedger:
    def __init__(
        self,
        config: MerchantConfig,
        timeout_config: TimeoutConfig | None = None,
        client: NetworkClient | None = None,
    ):
        if not config.guid:
            raise ConfigurationError("Merchant API needs a wallet guid")
        self.config = config
        self._client = client or NetworkClient(
            node_url=config.base_url,
            timeout_config=timeout_config,
            verify=config.verify_tls,
        )

    def _post(self, action: str, **fields: Any) -> dict[str, Any]:
        context = f"Merchant {action}"
        form = {"password": self.config.password}
        form.update({key: value for key, value in fields.items() if value is not None})
        data = self._client.post(
            f"/merchant/{self.config.guid}/{action}", context=context, data=form
        )
        if not isinstance(data, dict):
            raise malformed_response(context, "expected a JSON object")

        error = data.get("error")
        if error:
            message = str(error)
            if any(marker in message.lower() for marker in INSUFFICIENT_FUNDS_MARKERS):
                raise InsufficientFundsError(message)
            raise LedgerError(message)
        return data

    @staticmethod
    def _field(data: dict[str, Any], key: str, context: str) -> Any:
        try:
            return data[key]
        except KeyError as e:
            raise malformed_response(context, f"missing {key!r}") from e

    @staticmethod
    def _satoshis(value: Any, context: str) -> int:
        try:
            return coins_to_satoshis(value, allow_negative=True)
        except ValueError as e:
            raise malformed_response(context, str(e)) from e

    def _tx_ref(self, data: dict[str, Any], context: str) -> str:
        tx_ref = self._field(data, "tx_hash", context)
        if not isinstance(tx_ref, str) or not tx_ref:
            raise malformed_response(context, f"bad tx_hash {tx_ref!r}")
        return tx_ref

    def _account_address(self, account: str) -> str:
        try:
            return self.config.accounts[account]
        except KeyError as e:
            raise ConfigurationError(
                f"No merchant address configured for account {account!r}"
            ) from e

    def _address_balance(self, address: str, confirmations: int) -> tuple[int, int]:
        context = "Merchant address_balance"
        data = self._post("address_balance", address=address, confirmations=confirmations)
        balance = self._satoshis(self._field(data, "balance", context), context)
        total_received = self._satoshis(
            self._field(data, "total_received", context), context
        )
        return balance, total_received

    def send(self, account: str, address: str, amount: int, min_conf: int) -> str:
        data = self._post(
            "payment",
            to=address,
            amount=satoshis_to_coins(amount),
            **{"from": self.config.accounts.get(account)},
        )
        return self._tx_ref(data, "Merchant payment")

    def get_balance(self, account: str, min_conf: int) -> int:
        """Spend-aware balance counting only deposits with ``min_conf`` confirmations.

        The 0-conf figure already reflects every spend; unconfirmed deposits
        are then taken back out: ``all.balance - (all.received - confirmed.received)``.
        """
        address = self._account_address(account)
        all_balance, all_received = self._address_balance(address, 0)
        if min_conf <= 0:
            return max(all_balance, 0)

        _, confirmed_received = self._address_balance(address, min_conf)
        balance = all_balance - (all_received - confirmed_received)
        if balance < 0:
            logger.debug(
                "Account %r spend-aware balance %d clamped to zero", account, balance
            )
            return 0
        return balance

    def get_received_at(self, address: str, min_conf: int) -> int:
        _, total_received = self._address_balance(address, min_conf)
        return max(total_received, 0)

    def new_address(self, account: str) -> str:
        context = "Merchant new_address"
        address = self._field(self._post("new_address", label=account), "address", context)
        if not isinstance(address, str) or not address:
            raise malformed_response(context, f"bad address {address!r}")
        return address

    def send_many(self, account: str, amounts: dict[str, int], min_conf: int) -> str:
        recipients = {address: satoshis_to_coins(value) for address, value in amounts.items()}
        data = self._post(
            "sendmany",
            recipients=json.dumps(recipients),
            **{"from": self.config.accounts.get(account)},
        )
        return self._tx_ref(data, "Merchant sendmany")

    def list_transactions(self, address: str, limit: int) -> list[LedgerTransaction]:
        context = "Merchant list_transactions"
        data = self._post("list_transactions", address=address, limit=limit)
        txs = self._field(data, "txs", context)
        if not isinstance(txs, list):
            raise malformed_response(context, "txs is not a list")

        transactions = []
        try:
            for tx in txs:
                outputs = tuple(
                    TransactionOutput(
                        address=output.get("addr", ""),
                        amount=self._satoshis(output["value"], context),
                    )
                    for output in tx.get("out", [])
                )
                transactions.append(LedgerTransaction(tx_ref=tx["hash"], outputs=outputs))
        except (AttributeError, KeyError, TypeError) as e:
            raise malformed_response(context, repr(e)) from e
        return transactions[:limit] if limit > 0 else []
