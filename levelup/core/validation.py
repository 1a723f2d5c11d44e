"""
Numeric input sanitising.

Every public engine function clamps bad numeric input instead of raising,
so a malformed progress record never crashes a running session.
"""

from __future__ import annotations

import math
from typing import Any


def coerce_number(
    value: Any,
    default: float = 0.0,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float:
    """
    Convert a value to a finite float inside [minimum, maximum].

    None, NaN and non-numeric values become `default`. Infinities and
    out-of-range values are clamped to the nearest bound.

    Args:
        value: Raw input
        default: Value used when the input is unusable
        minimum: Optional lower bound
        maximum: Optional upper bound

    Returns:
        Sanitised float
    """
    if isinstance(value, bool):
        number = float(value)
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = float(default)

    if math.isnan(number):
        number = float(default)

    if minimum is not None and number < minimum:
        number = float(minimum)
    if maximum is not None and number > maximum:
        number = float(maximum)

    if math.isinf(number):
        # Only reachable when the matching bound is missing
        number = float(default)

    return number


def coerce_int(
    value: Any,
    default: int = 0,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    """Integer variant of coerce_number (floors fractional input)."""
    number = coerce_number(value, default, minimum, maximum)
    return int(math.floor(number))
