"""Wallet configuration: dataclasses loaded from a JSON file or the environment."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hotwallet.errors import ConfigurationError
from hotwallet.features.splitting.service import SplitPolicy
from hotwallet.shared.network import RetryConfig, TimeoutConfig

logger = logging.getLogger(__name__)

BACKENDS = ("bitcoind", "merchant")

DEFAULT_RPC_PORTS = {"main": 8332, "testnet": 18332, "regtest": 18443}


def parse_bitcoin_conf(path: str | Path) -> dict[str, str]:
    """Read ``key=value`` lines from a bitcoin.conf-style file.

    Comment lines and keys without a value are skipped.
    """
    result: dict[str, str] = {}
    text = Path(path).expanduser().read_text(encoding="utf-8")
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if not value:
            continue
        result[key] = value
    return result


@dataclass
class DaemonConfig:
    rpc_url: str = "http://127.0.0.1:8332"
    rpc_user: str = ""
    rpc_password: str = ""
    scan_depth: int = 100

    @classmethod
    def from_bitcoin_conf(
        cls, path: str | Path, host: str = "127.0.0.1", **overrides: Any
    ) -> "DaemonConfig":
        conf = parse_bitcoin_conf(path)
        if conf.get("regtest") == "1":
            network = "regtest"
        elif conf.get("testnet") == "1":
            network = "testnet"
        else:
            network = "main"
        port = conf.get("rpcport", str(DEFAULT_RPC_PORTS[network]))
        return cls(
            rpc_url=f"http://{host}:{port}",
            rpc_user=conf.get("rpcuser", ""),
            rpc_password=conf.get("rpcpassword", ""),
            **overrides,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DaemonConfig":
        data = dict(data)
        conf_path = data.pop("configuration_path", None)
        if conf_path:
            return cls.from_bitcoin_conf(conf_path, **data)
        return cls(**data)


@dataclass
class MerchantConfig:
    base_url: str = "https://blockchain.info"
    guid: str = ""
    password: str = ""
    accounts: dict[str, str] = field(default_factory=dict)
    verify_tls: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MerchantConfig":
        return cls(**data)


@dataclass
class WalletConfig:
    backend: str = "bitcoind"
    account: str = ""
    pool_account: str = "pool"
    test_mode: bool = False
    poll_interval_seconds: float = 30.0
    reconcile_page_size: int = 10
    timeout_config: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry_config: RetryConfig = field(default_factory=RetryConfig)
    split_policy: SplitPolicy = field(default_factory=SplitPolicy)
    daemon: DaemonConfig = field(default_factory=DaemonConfig)
    merchant: MerchantConfig = field(default_factory=MerchantConfig)

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown ledger backend {self.backend!r}, expected one of {BACKENDS}"
            )
        if self.reconcile_page_size <= 0:
            raise ConfigurationError("reconcile_page_size must be positive")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WalletConfig":
        kwargs: dict[str, Any] = {
            key: data[key]
            for key in (
                "backend",
                "account",
                "pool_account",
                "test_mode",
                "poll_interval_seconds",
                "reconcile_page_size",
            )
            if key in data
        }

        timeout_cfg = data.get("timeout", {})
        if timeout_cfg:
            kwargs["timeout_config"] = TimeoutConfig(
                connect_timeout=timeout_cfg.get("connect_timeout", 5.0),
                read_timeout=timeout_cfg.get("read_timeout", 20.0),
            )
        retry_cfg = data.get("retry", {})
        if retry_cfg:
            kwargs["retry_config"] = RetryConfig(
                retry_timeout=retry_cfg.get("retry_timeout", 60.0),
                retry_interval=retry_cfg.get("retry_interval", 5.0),
            )
        try:
            split_cfg = data.get("split", {})
            if split_cfg:
                kwargs["split_policy"] = SplitPolicy(**split_cfg)
            if "daemon" in data:
                kwargs["daemon"] = DaemonConfig.from_dict(data["daemon"])
            if "merchant" in data:
                kwargs["merchant"] = MerchantConfig.from_dict(data["merchant"])
            return cls(**kwargs)
        except (TypeError, OSError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_file(cls, path: str | Path) -> "WalletConfig":
        config_path = Path(path).expanduser()
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read configuration {config_path}: {e}"
            ) from e
        logger.info("Loaded configuration from %s", config_path)
        return cls.from_dict(data)

    @classmethod
    def from_environment(cls) -> "WalletConfig":
        config_path = os.getenv("HOTWALLET_CONFIG")
        data: dict[str, Any] = {}
        if config_path:
            path = Path(config_path).expanduser()
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigurationError(
                    f"Cannot read configuration {path}: {e}"
                ) from e

        backend = os.getenv("HOTWALLET_BACKEND")
        if backend:
            data["backend"] = backend
        account = os.getenv("HOTWALLET_ACCOUNT")
        if account is not None:
            data["account"] = account
        test_mode = os.getenv("HOTWALLET_TEST_MODE")
        if test_mode is not None:
            data["test_mode"] = test_mode.lower() in ("1", "true", "yes")

        return cls.from_dict(data)
