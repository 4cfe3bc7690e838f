"""
Numeric coercion helpers.

Model output and product database payloads are untrusted: numbers arrive
as strings, booleans, nulls or garbage. These helpers turn them into finite
floats the same way everywhere.
"""

from __future__ import annotations

import math
from typing import Any, Optional


def round_half_up(value: float) -> int:
    """Round half away from zero for positives (2.5 -> 3, not banker's 2)."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return min(max(value, low), high)


def to_number(value: Any) -> Optional[float]:
    """
    Coerce an arbitrary value to a float.

    Accepts ints, floats, booleans and numeric strings. Returns None for
    missing, NaN or non-numeric input. Infinities, and ints too large for
    a float, come back as signed infinity so callers can clamp them.

    Example:
        >>> to_number("12.5")
        12.5
        >>> to_number("abc") is None
        True
        >>> to_number(True)
        1.0
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # ints beyond float range
            return math.inf if value > 0 else -math.inf
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def to_finite(value: Any) -> Optional[float]:
    """Like to_number, but infinities count as missing."""
    number = to_number(value)
    if number is None or math.isinf(number):
        return None
    return number


def coerce_clamped(value: Any, default: float, low: float, high: float) -> float:
    """Coerce value, fall back to default when unusable, then clamp."""
    number = to_number(value)
    if number is None:
        number = default
    return clamp(number, low, high)
