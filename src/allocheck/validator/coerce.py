# src/allocheck/validator/coerce.py
from __future__ import annotations

import math
import re
from typing import Any

# Plain ASCII decimal literal: optional sign, digits with optional fraction, optional exponent.
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def to_number(value: Any) -> float:
    """
    Coerce a raw cell value to a float; NaN when it is not numeric.

    Booleans are not numbers here, even though Python treats them as ints.
    Strings must be plain decimal literals, so digit separators ("1_0") and
    non-ASCII digits are rejected. Integers too large for a float become
    a signed infinity.
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not _DECIMAL.fullmatch(text):
            return math.nan
        return float(text)
    return math.nan


def number_or_default(value: Any, default: float = 1) -> float:
    """
    Numeric value of a cell, or `default` when it is absent, zero or unparsable.

    Capacity checks fall back to the default rather than skipping the row;
    unparsable values are already reported by the range checker.
    """
    number = to_number(value)
    if math.isnan(number) or number == 0:
        return float(default)
    return number


def format_number(number: float) -> str:
    """Render whole floats without a trailing '.0' (3.0 -> '3')."""
    if number.is_integer():
        return str(int(number))
    return f"{number:g}"


def cell_text(value: Any) -> str:
    """
    str() of a raw cell value.

    Integers past the interpreter's int-to-decimal limit are rendered in hex,
    which has no such limit.
    """
    try:
        return str(value)
    except ValueError:
        if isinstance(value, int):
            return hex(value)
        raise
