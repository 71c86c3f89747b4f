"""Network utilities for hotwallet: single-attempt HTTP calls and deadline retries."""

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, TypeVar

import requests
from requests.exceptions import ConnectionError, HTTPError, RequestException, Timeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NetworkErrorType(Enum):
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    HTTP_ERROR = "http_error"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


@dataclass
class NetworkError(Exception):
    """Transport-level failure. The outcome of the remote operation is unknown."""

    error_type: NetworkErrorType
    message: str
    original_error: Exception | None = None
    status_code: int | None = None
    response_text: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class TimeoutConfig:
    connect_timeout: float = 5.0
    read_timeout: float = 20.0

    @property
    def request_timeout(self) -> tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)


@dataclass
class RetryBudget:
    """Wall-clock deadline for one operation: ``start_time + timeout``."""

    start_time: float
    timeout: float
    interval: float
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def elapsed(self) -> float:
        return self.clock() - self.start_time

    def expired(self) -> bool:
        return self.elapsed() >= self.timeout

    def wait(self) -> None:
        self.sleep(self.interval)


@dataclass
class RetryConfig:
    retry_timeout: float = 60.0
    retry_interval: float = 5.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)
    sleep: Callable[[float], None] = field(
        default=time.sleep, repr=False, compare=False
    )

    def start(self) -> RetryBudget:
        return RetryBudget(
            start_time=self.clock(),
            timeout=self.retry_timeout,
            interval=self.retry_interval,
            clock=self.clock,
            sleep=self.sleep,
        )


DEFAULT_TIMEOUT_CONFIG = TimeoutConfig()
DEFAULT_RETRY_CONFIG = RetryConfig()


def classify_error(error: Exception) -> NetworkErrorType:
    if isinstance(error, NetworkError):
        return error.error_type
    if isinstance(error, Timeout):
        return NetworkErrorType.TIMEOUT
    elif isinstance(error, ConnectionError):
        return NetworkErrorType.CONNECTION_ERROR
    elif isinstance(error, HTTPError):
        return NetworkErrorType.HTTP_ERROR
    elif isinstance(error, ValueError):
        # requests' JSONDecodeError derives from ValueError
        return NetworkErrorType.MALFORMED_RESPONSE
    return NetworkErrorType.UNKNOWN


def create_network_error(
    error: Exception, node_url: str, context: str = ""
) -> NetworkError:
    error_type = classify_error(error)
    context_prefix = f"{context}: " if context else ""

    if error_type == NetworkErrorType.TIMEOUT:
        message = f"{context_prefix}Network timeout talking to {node_url}"
    elif error_type == NetworkErrorType.CONNECTION_ERROR:
        message = f"{context_prefix}Cannot connect to {node_url}"
    elif error_type == NetworkErrorType.HTTP_ERROR:
        response = getattr(error, "response", None)
        status_code = getattr(response, "status_code", None)
        response_text = getattr(response, "text", None)
        message = f"{context_prefix}HTTP error {status_code}: {response_text or 'Unknown error'}"
        return NetworkError(
            error_type=error_type,
            message=message,
            original_error=error,
            status_code=status_code,
            response_text=response_text,
        )
    elif error_type == NetworkErrorType.MALFORMED_RESPONSE:
        message = f"{context_prefix}Malformed response from {node_url}: {error}"
    else:
        message = f"{context_prefix}Network error: {str(error)}"

    return NetworkError(
        error_type=error_type,
        message=message,
        original_error=error,
    )


def malformed_response(context: str, detail: str) -> NetworkError:
    return NetworkError(
        error_type=NetworkErrorType.MALFORMED_RESPONSE,
        message=f"{context}: malformed response ({detail})",
    )


def execute_with_retry(
    operation: Callable[[], T],
    budget: RetryBudget,
    context: str = "",
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> T:
    """Run a read-only operation, retrying transport failures until the deadline.

    Only ``NetworkError`` is retried. Anything else, domain errors included,
    propagates from the first attempt. The deadline is checked before every
    attempt after the first; once it has passed the last ``NetworkError`` is
    re-raised.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return operation()
        except NetworkError as e:
            if budget.expired():
                logger.error(
                    "%s failed after %d attempt(s), giving up: %s",
                    context or "Network operation",
                    attempt,
                    e,
                )
                raise

            logger.warning(
                "%s failed (attempt %d), retrying in %.1fs: %s",
                context or "Network operation",
                attempt,
                budget.interval,
                str(e),
            )
            if on_retry:
                on_retry(attempt, e, budget.interval)

            budget.wait()
            if budget.expired():
                raise


class NetworkClient:
    """Thin ``requests`` wrapper. One attempt per call; no hidden retries."""

    def __init__(
        self,
        node_url: str,
        timeout_config: TimeoutConfig | None = None,
        auth: tuple[str, str] | None = None,
        verify: bool = True,
    ):
        self.node_url = node_url.rstrip("/")
        self.timeout_config = timeout_config or DEFAULT_TIMEOUT_CONFIG
        self.auth = auth
        self.verify = verify

    def _execute(self, operation: Callable[[], T], context: str = "") -> T:
        try:
            return operation()
        except (RequestException, ValueError) as e:
            raise create_network_error(e, self.node_url, context) from e

    def post(
        self,
        endpoint: str,
        context: str = "",
        json_error_statuses: frozenset[int] = frozenset(),
        **kwargs,
    ) -> Any:
        """POST and decode the JSON body, keeping JSON numbers as ``Decimal``.

        Statuses in ``json_error_statuses`` are servers that report domain
        errors through a JSON body on a non-2xx response; their body is
        returned instead of raising.
        """
        url = f"{self.node_url}{endpoint}"
        timeout = kwargs.pop("timeout", self.timeout_config.request_timeout)
        kwargs.setdefault("auth", self.auth)
        kwargs.setdefault("verify", self.verify)

        def operation() -> Any:
            response = requests.post(url, timeout=timeout, **kwargs)
            if response.status_code not in json_error_statuses:
                response.raise_for_status()
            return response.json(parse_float=Decimal)

        return self._execute(operation, context)
