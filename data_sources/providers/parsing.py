"""
Shared parsing helpers for provider transforms.

Upstream APIs mix numbers, numeric strings and nulls for the same
field. These helpers turn any of them into float/None without
guessing: an unparseable value is None, never 0.
"""

import math
from typing import Any, Optional


def to_float(value: Any) -> Optional[float]:
    """Parse a number or numeric string; None/blank/NaN become None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def to_amount(value: Any) -> float:
    """Parse a non-negative amount (volume, market cap); unavailable is 0."""
    result = to_float(value)
    if result is None or result < 0:
        return 0.0
    return result


def to_int(value: Any) -> Optional[int]:
    result = to_float(value)
    return int(result) if result is not None else None


def require_list(value: Any, what: str) -> list:
    """Assert an upstream container is a list, else reject the payload."""
    if not isinstance(value, list):
        raise ValueError(f"expected a list of {what}, got {type(value).__name__}")
    return value
