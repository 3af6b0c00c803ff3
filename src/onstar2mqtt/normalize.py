"""Normalization helpers.

Centralizes defensive parsing of the raw strings the account API reports.
"""

from __future__ import annotations

import math
import re
from typing import Any

from onstar2mqtt.rules import as_number

Scalar = str | int | float | bool | None


# Plain decimal notation only: no exponents, digit separators or inf/nan words.
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool) or value == "":
        return None
    if isinstance(value, str):
        value = value.strip()
        if not _DECIMAL.fullmatch(value):
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


def safe_scalar(value: Any) -> Scalar:
    """Keep JSON scalars, drop anything else (nested objects, lists)."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return None


def coerce_value(value: Any) -> Scalar:
    """Coerce a raw reading for a state payload.

    ``"true"``/``"false"`` become booleans, numeric strings become numbers
    (integers when integral), anything else is returned unchanged.
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return as_number(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        lowered = text.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        number = safe_float(text)
        if number is not None:
            return as_number(number)
        return value
    return safe_scalar(value)
