"""Conversions between integer satoshis and 8-decimal coin strings.

Internally every amount is a non-negative ``int`` of satoshis. Decimal coin
amounts exist only at the ledger boundary.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

SATOSHI_FACTOR = 100_000_000
COIN_DECIMALS = 8
COIN_QUANTUM = Decimal(1).scaleb(-COIN_DECIMALS)


def validate_satoshis(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Satoshi amount must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"Satoshi amount cannot be negative: {value}")
    return value


def satoshis_to_coins(satoshis: int) -> str:
    """Format satoshis as a major-unit string with exactly 8 decimal places."""
    validate_satoshis(satoshis)
    coins = (Decimal(satoshis) / SATOSHI_FACTOR).quantize(COIN_QUANTUM)
    return f"{coins:.{COIN_DECIMALS}f}"


def coins_to_satoshis(value: Any, allow_negative: bool = False) -> int:
    """Parse a major-unit amount (string, ``Decimal`` or int) into satoshis.

    Sub-satoshi digits are rounded half-up. Floats are read through their
    string form so no binary rounding leaks into the result.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not an amount: {value!r}")

    raw = value if isinstance(value, Decimal) else str(value).strip()
    try:
        amount = Decimal(raw)
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Not an amount: {value!r}") from e

    if not amount.is_finite():
        raise ValueError(f"Invalid numeric format (special value detected): {value!r}")

    satoshis = int((amount * SATOSHI_FACTOR).to_integral_value(rounding=ROUND_HALF_UP))
    if satoshis < 0 and not allow_negative:
        raise ValueError(f"Amount cannot be negative: {value!r}")
    return satoshis
