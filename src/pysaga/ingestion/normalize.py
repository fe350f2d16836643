"""Normalization helpers.

Centralizes lenient parsing of feed values: feeds send numbers as
strings, ``null`` for unknowns and occasionally NaN.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def or_zero(value: float | None) -> float:
    """Missing numeric fields are reported as ``0``."""
    return 0.0 if value is None else value
