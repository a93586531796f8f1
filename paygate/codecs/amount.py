"""
Conversions between major-unit prices and the representations gateways expect.

Callers always deal in major units (99.99 USD). Gateways want one of:
  - minor-unit integers (Stripe, WeChat Pay): 9999
  - fixed two-decimal strings (Alipay, PayPal): "99.99"
  - trimmed decimal strings (GC): "99.9", "100"

Rounding is round-to-nearest cent, applied the same way in both
directions so that to_minor(to_major(x)) == x for any minor-unit integer.
"""

import math
from typing import Union

from paygate.errors import AmountError


def to_minor(price: float) -> int:
    """Convert a major-unit amount to minor units (cents), rounding to the nearest cent."""
    return int(math.floor(price * 100 + 0.5))


def to_major(minor: int) -> float:
    """Convert a minor-unit integer back to a major-unit amount."""
    return minor / 100


def to_major_string(price: float) -> str:
    return f"{price:.2f}"


def to_trimmed_string(price: float) -> str:
    """Two-decimal string with trailing zeros and a dangling dot removed."""
    return to_major_string(price).rstrip("0").rstrip(".")


def from_string(value: Union[str, int, float]) -> float:
    """
    Parse a major-unit amount reported by a gateway.

    Raises:
        AmountError: If the value is not a number.
    """
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise AmountError(f"invalid amount: {value!r}") from e
