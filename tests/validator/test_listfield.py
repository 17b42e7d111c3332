# tests/validator/test_listfield.py
from __future__ import annotations

import pytest

from allocheck.validator.listfield import (
    Delimited,
    JsonArray,
    ListFormatError,
    is_blank,
    non_numeric_items,
    parse_int_list,
    parse_list,
    sniff_list_field,
)


@pytest.mark.parametrize(
    "raw, kind",
    [
        ('["a","b"]', JsonArray),
        ("  [1, 2]", JsonArray),
        ("a, b", Delimited),
        ("single", Delimited),
        (7, Delimited),
    ],
)
def test_sniff_list_field_classifies_by_leading_bracket(raw, kind):
    assert isinstance(sniff_list_field(raw), kind)


def test_delimited_and_json_normalize_to_same_sequence():
    """
    @brief
    'a, b, c' and '["a","b","c"]' resolve to the same three strings.
    """
    assert parse_list("a, b, c") == ["a", "b", "c"]
    assert parse_list('["a","b","c"]') == ["a", "b", "c"]


def test_json_numbers_become_strings():
    assert parse_list("[1, 2, 3.0]") == ["1", "2", "3"]


def test_structured_sequence_passes_through():
    assert parse_list(["x", 2]) == ["x", "2"]


@pytest.mark.parametrize("raw", ['["a", "b"', "[1, 2,]", "[a, b]"])
def test_bad_json_arrays_raise(raw):
    with pytest.raises(ListFormatError):
        parse_list(raw)


def test_json_value_that_is_not_an_array_raises():
    with pytest.raises(ListFormatError, match="not an array"):
        JsonArray('{"a": 1}').items()


def test_non_numeric_items_lists_offenders_in_order():
    assert non_numeric_items(["1", "x", "2", "", "3.5"]) == ["x", "", "3.5"]


def test_parse_int_list_accepts_both_encodings():
    assert parse_int_list("1, 2,3") == [1, 2, 3]
    assert parse_int_list("[4, 5]") == [4, 5]
    assert parse_int_list('["6"]') == [6]


def test_parse_int_list_drops_non_digit_entries():
    assert parse_int_list("1, 2, x") == [1, 2]
    assert parse_int_list('[3, "y", 1.5, 4]') == [3, 4]


def test_parse_int_list_skips_digit_runs_too_long_to_convert():
    assert parse_int_list("1, " + "9" * 5000) == [1]


def test_parse_int_list_raises_only_for_broken_json():
    with pytest.raises(ListFormatError):
        parse_int_list("[1, 2")


@pytest.mark.parametrize("token", ["1\n", "\uff11", "\u0663", "1_0", "+1"])
def test_only_ascii_digit_runs_are_numeric(token):
    assert non_numeric_items([token]) == [token]


def test_deeply_nested_json_is_a_format_error():
    with pytest.raises(ListFormatError):
        parse_list("[" * 100_000)


@pytest.mark.parametrize(
    "value, blank", [(None, True), ("", True), ("  ", True), ("0", False), (0, False)]
)
def test_is_blank(value, blank):
    assert is_blank(value) is blank
