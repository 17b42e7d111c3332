# src/allocheck/validator/listfield.py
"""
List-valued entity fields.

A list field arrives either as a JSON array literal ('["a","b"]', '[1,2]')
or as a comma-separated string ('a, b'). The raw cell is sniffed once into
`JsonArray` or `Delimited` and then resolved into an ordered list of strings.
Every checker that needs list semantics goes through `parse_list()`.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from allocheck.validator.coerce import cell_text

_DIGITS = re.compile(r"[0-9]+")


class ListFormatError(ValueError):
    """Raised when a list field cannot be parsed."""


@dataclass(frozen=True)
class Delimited:
    raw: str

    def items(self) -> list[str]:
        return [part.strip() for part in self.raw.split(",")]


@dataclass(frozen=True)
class JsonArray:
    raw: str

    def items(self) -> list[str]:
        try:
            data = json.loads(self.raw)
        except RecursionError as e:
            raise ListFormatError("JSON array nested too deeply") from e
        except ValueError as e:
            raise ListFormatError(f"invalid JSON array: {e}") from e
        if not isinstance(data, list):
            raise ListFormatError("JSON value is not an array")
        return [_as_text(item) for item in data]


ListField = Delimited | JsonArray


def _as_text(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, bool) or item is None:
        return json.dumps(item)
    if isinstance(item, float) and item.is_integer():
        return str(int(item))
    return cell_text(item)


def is_blank(value: Any) -> bool:
    """True for values treated as absent: None, empty or whitespace-only strings."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def sniff_list_field(value: Any) -> ListField:
    """
    Classify a raw cell value as a JSON array or a comma-delimited string.

    Non-string scalars (e.g. a bare number from a spreadsheet) are treated as
    a one-element delimited string.
    """
    text = value if isinstance(value, str) else cell_text(value)
    if text.strip().startswith("["):
        return JsonArray(text)
    return Delimited(text)


def parse_list(value: Any) -> list[str]:
    """
    Resolve a list field into its normalized ordered sequence of strings.

    Already-structured sequences (list/tuple) are accepted as is.

    Raises:
        ListFormatError: when a JSON array literal does not parse.
    """
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return [_as_text(item) for item in value]
    return sniff_list_field(value).items()


def non_numeric_items(items: Sequence[str]) -> list[str]:
    """Items that are not plain non-negative integers."""
    return [item for item in items if not _DIGITS.fullmatch(item)]


def parse_int_list(value: Any) -> list[int]:
    """
    Resolve a numeric list field (AvailableSlots, PreferredPhases) into ints.

    Non-digit entries are dropped; the list checker reports them separately.

    Raises:
        ListFormatError: when a JSON array literal does not parse.
    """
    phases = []
    for item in parse_list(value):
        item = item.strip()
        if not _DIGITS.fullmatch(item):
            continue
        try:
            phases.append(int(item))
        except ValueError:
            # beyond the interpreter's int-string conversion limit
            continue
    return phases


__all__ = [
    "Delimited",
    "JsonArray",
    "ListField",
    "ListFormatError",
    "is_blank",
    "non_numeric_items",
    "parse_int_list",
    "parse_list",
    "sniff_list_field",
]
