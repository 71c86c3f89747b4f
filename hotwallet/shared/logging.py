"""Logging setup for hotwallet.

Ledger credentials (the RPC password, the merchant wallet password and any
``user:secret@`` part of an RPC URL) never reach a log sink. Payment records
carry the order they concern (address, amount, account) plus the send
attempt, so a single dispatch can be followed across its retries.
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hotwallet.ledger.base import Order

ENV_PREFIX = "HOTWALLET_LOG_"
TRUTHY = ("1", "true", "yes")

REDACTED = "[REDACTED]"

# bitcoin.conf lines, merchant form bodies and JSON payloads
_SECRET_ASSIGNMENT = re.compile(
    r"((?:rpc|second_)?password['\"]?\s*[:=]\s*['\"]?)([^\s'\",}&]+)",
    re.IGNORECASE,
)
_URL_CREDENTIALS = re.compile(r"(https?://[^:/\s]+:)([^@\s]+)(@)")

SECRET_FIELDS = frozenset({"password", "rpcpassword", "rpc_password", "auth"})


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _env(name: str, default: str = "") -> str:
    return os.getenv(ENV_PREFIX + name, default)


@dataclass
class LoggingConfig:
    log_level: LogLevel = LogLevel.INFO
    log_to_file: bool = True
    log_to_stdout: bool = False
    log_dir: Path | None = None
    log_filename: str = "hotwallet.log"
    json_format: bool = False

    @classmethod
    def from_environment(cls) -> "LoggingConfig":
        """Read ``HOTWALLET_LOG_{LEVEL,STDOUT,DIR,FORMAT}``."""
        log_dir = _env("DIR")
        return cls(
            log_level=LogLevel.__members__.get(_env("LEVEL", "INFO").upper(), LogLevel.INFO),
            log_to_stdout=_env("STDOUT").lower() in TRUTHY,
            log_dir=Path(log_dir).expanduser() if log_dir else None,
            json_format=_env("FORMAT", "human").lower() == "json",
        )

    @property
    def log_path(self) -> Path:
        return (self.log_dir or Path("~/.hotwallet").expanduser()) / self.log_filename


def redact(text: str) -> str:
    """Blank out ledger credentials in free text."""
    text = _SECRET_ASSIGNMENT.sub(rf"\1{REDACTED}", text)
    return _URL_CREDENTIALS.sub(rf"\1{REDACTED}\3", text)


def redact_fields(fields: dict[str, Any]) -> dict[str, Any]:
    redacted: dict[str, Any] = {}
    for key, value in fields.items():
        if key.lower() in SECRET_FIELDS:
            redacted[key] = REDACTED
        elif isinstance(value, str):
            redacted[key] = redact(value)
        else:
            redacted[key] = value
    return redacted


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = getattr(record, "context", None)
    return redact_fields(fields) if isinstance(fields, dict) else {}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; payment fields sit beside the message."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
        }
        for key, value in _record_fields(record).items():
            entry.setdefault(key, value)
        if record.exc_info:
            entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``time - logger - LEVEL - message [key=value ...]``"""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _record_fields(record)
        if fields:
            line += " [" + " ".join(f"{key}={value}" for key, value in fields.items()) + "]"
        return redact(line)


class ContextAdapter(logging.LoggerAdapter):
    """Logger that stamps every record with a fixed set of payment fields."""

    def __init__(self, logger: logging.Logger, fields: dict[str, Any] | None = None):
        super().__init__(logger, dict(fields or {}))

    @classmethod
    def for_order(
        cls, logger: logging.Logger, order: Order, account: str
    ) -> "ContextAdapter":
        return cls(
            logger, {"account": account, "address": order.address, "amount": order.amount}
        )

    def bind(self, **fields: Any) -> "ContextAdapter":
        return ContextAdapter(self.logger, {**self.extra, **fields})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        kwargs["extra"] = extra
        return msg, kwargs


_configured = False


def setup_logging(config: LoggingConfig | None = None, force: bool = False) -> None:
    """Route the root logger to the configured file and/or stdout.

    Runs once per process unless ``force`` is set; existing root handlers are
    replaced.
    """
    global _configured
    if _configured and not force:
        return

    config = config or LoggingConfig.from_environment()
    formatter = JsonFormatter() if config.json_format else HumanReadableFormatter()

    handlers: list[logging.Handler] = []
    if config.log_to_file:
        log_path = config.log_path
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    if config.log_to_stdout:
        handlers.append(logging.StreamHandler(sys.stdout))

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(config.log_level.value)

    _configured = True


def get_logger(name: str, **fields: Any) -> ContextAdapter:
    return ContextAdapter(logging.getLogger(name), fields)


__all__ = [
    "LogLevel",
    "LoggingConfig",
    "ContextAdapter",
    "JsonFormatter",
    "HumanReadableFormatter",
    "redact",
    "redact_fields",
    "setup_logging",
    "get_logger",
]
