"""Ledger binding for a local coin daemon speaking bitcoind's JSON-RPC."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from hotwallet.errors import InsufficientFundsError, LedgerError
from hotwallet.ledger.base import LedgerTransaction, TransactionOutput
from hotwallet.shared.amounts import coins_to_satoshis, satoshis_to_coins
from hotwallet.shared.network import (
    NetworkClient,
    TimeoutConfig,
    malformed_response,
)

if TYPE_CHECKING:
    from hotwallet.config import DaemonConfig

logger = logging.getLogger(__name__)

RPC_INSUFFICIENT_FUNDS = -6

# bitcoind reports RPC errors as HTTP 500 with a JSON error object
RPC_ERROR_STATUSES = frozenset({500})


class BitcoindLedger:
    def __init__(
        self,
        config: DaemonConfig,
        timeout_config: TimeoutConfig | None = None,
        client: NetworkClient | None = None,
    ):
        self.config = config
        auth = (config.rpc_user, config.rpc_password) if config.rpc_user else None
        self._client = client or NetworkClient(
            node_url=config.rpc_url, timeout_config=timeout_config, auth=auth
        )
        self._request_id = 0

    def _call(self, method: str, *params: Any) -> Any:
        self._request_id += 1
        payload = {
            "jsonrpc": "1.0",
            "id": f"hotwallet-{self._request_id}",
            "method": method,
            "params": list(params),
        }
        data = self._client.post(
            "/",
            context=f"RPC {method}",
            json_error_statuses=RPC_ERROR_STATUSES,
            json=payload,
        )
        if not isinstance(data, dict):
            raise malformed_response(f"RPC {method}", "expected a JSON object")

        error = data.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else str(error)
            if code == RPC_INSUFFICIENT_FUNDS:
                raise InsufficientFundsError("Insufficient funds", code=code)
            raise LedgerError(message or f"RPC {method} failed", code=code)

        if "result" not in data:
            raise malformed_response(f"RPC {method}", "missing result")
        return data["result"]

    @staticmethod
    def _satoshis(value: Any, context: str, allow_negative: bool = False) -> int:
        try:
            return coins_to_satoshis(value, allow_negative=allow_negative)
        except ValueError as e:
            raise malformed_response(context, str(e)) from e

    @staticmethod
    def _string(value: Any, context: str) -> str:
        if not isinstance(value, str) or not value:
            raise malformed_response(context, f"expected a string, got {value!r}")
        return value

    def send(self, account: str, address: str, amount: int, min_conf: int) -> str:
        coins = satoshis_to_coins(amount)
        logger.debug("sendfrom %r -> %s: %s", account, address, coins)
        result = self._call("sendfrom", account, address, coins, min_conf)
        return self._string(result, "RPC sendfrom")

    def get_balance(self, account: str, min_conf: int) -> int:
        # getbalance already counts every spend (0 conf) but only deposits
        # with min_conf confirmations.
        result = self._call("getbalance", account, min_conf)
        balance = self._satoshis(result, "RPC getbalance", allow_negative=True)
        if balance < 0:
            logger.warning("Account %r reports negative balance %d", account, balance)
            return 0
        return balance

    def get_received_at(self, address: str, min_conf: int) -> int:
        result = self._call("getreceivedbyaddress", address, min_conf)
        return self._satoshis(result, "RPC getreceivedbyaddress")

    def new_address(self, account: str) -> str:
        return self._string(self._call("getnewaddress", account), "RPC getnewaddress")

    def send_many(self, account: str, amounts: dict[str, int], min_conf: int) -> str:
        outputs = {address: satoshis_to_coins(value) for address, value in amounts.items()}
        result = self._call("sendmany", account, outputs, min_conf)
        return self._string(result, "RPC sendmany")

    def list_transactions(self, address: str, limit: int) -> list[LedgerTransaction]:
        """Recent wallet sends with an output to ``address``, oldest first."""
        entries = self._call("listtransactions", "*", self.config.scan_depth, 0)
        if not isinstance(entries, list):
            raise malformed_response("RPC listtransactions", "expected a list")

        outputs_by_tx: dict[str, list[TransactionOutput]] = {}
        for entry in entries:
            try:
                if entry.get("category") != "send":
                    continue
                txid = self._string(entry["txid"], "RPC listtransactions")
                output = TransactionOutput(
                    address=entry.get("address", ""),
                    amount=abs(
                        self._satoshis(
                            entry["amount"], "RPC listtransactions", allow_negative=True
                        )
                    ),
                )
            except (AttributeError, KeyError) as e:
                raise malformed_response("RPC listtransactions", repr(e)) from e
            outputs_by_tx.setdefault(txid, []).append(output)

        transactions = [
            LedgerTransaction(tx_ref=txid, outputs=tuple(outputs))
            for txid, outputs in outputs_by_tx.items()
            if any(output.address == address for output in outputs)
        ]
        return transactions[-limit:] if limit > 0 else []

