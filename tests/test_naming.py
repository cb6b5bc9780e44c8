"""Tests for identifier casing, enum successors and literal helpers."""

import pytest

from goheader.naming import (
    export_name,
    is_go_expr,
    is_go_keyword,
    next_enum_value,
    normalize_literal,
    parse_c_int,
    title,
)


@pytest.mark.parametrize(
    "ident,expected",
    [
        ("st_mode", "Mode"),
        ("tm_gmt_off", "Off"),
        ("x", "X"),
        ("_x", "X"),
        ("x_", "X_"),
        ("a_b_", "B_"),
        ("Already", "Already"),
        ("", ""),
    ],
)
def test_export_name(ident, expected):
    assert export_name(ident) == expected


@pytest.mark.parametrize("ident", ["st_mode", "tm_gmt_off", "x_", "a_b_", "__", "plain", "_"])
def test_export_name_is_idempotent(ident):
    once = export_name(ident)
    assert export_name(once) == once


def test_title_only_touches_first_letter():
    assert title("point") == "Point"
    assert title("RED_VALUE") == "RED_VALUE"


def test_enum_successors_from_explicit_value():
    """Explicit 5 followed by two bare enumerators gives 5, 6, 7."""
    values = [parse_c_int("5")]
    for _ in range(2):
        values.append(next_enum_value(values[-1]))
    assert values == [5, 6, 7]


def test_enum_successor_of_unknown_is_unknown():
    assert next_enum_value(None) is None
    assert next_enum_value(-1) == 0


@pytest.mark.parametrize(
    "text,value",
    [
        ("0", 0),
        ("42", 42),
        ("-3", -3),
        ("0x1F", 31),
        ("010", 8),
        ("0b101", 5),
        ("10UL", 10),
        (" 7 ", 7),
        ("FOO", None),
        ("1.5", None),
        ("08", None),
        ("1 << 2", None),
    ],
)
def test_parse_c_int(text, value):
    assert parse_c_int(text) == value


@pytest.mark.parametrize(
    "value,expected",
    [
        ("10UL", "10"),
        ("0xFFu", "0xFF"),
        ("1.5f", "1.5"),
        ("1e3", "1e3"),
        ("FOO", "FOO"),
        ('"abc"', '"abc"'),
    ],
)
def test_normalize_literal(value, expected):
    assert normalize_literal(value) == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        ("1U << 31", "1 << 31"),
        ("0x1FUL | 2u", "0x1F | 2"),
        ("(1.5f * 2)", "(1.5 * 2)"),
        ("x1UL + 1", "x1UL + 1"),
        ("0xFF", "0xFF"),
    ],
)
def test_normalize_literal_inside_expressions(value, expected):
    assert normalize_literal(value) == expected


@pytest.mark.parametrize(
    "value",
    ["1 << 31", "FOO", '"abc"', "-1", "(A | B) &^ C", "'x'", "^0", "1.5e3"],
)
def test_go_expressions(value):
    assert is_go_expr(value)


@pytest.mark.parametrize(
    "value",
    ["~0", "(int)5", "sizeof(int)", "1, 2", "10U", "", "A +", "(1", '"a" "b"', "A ! B"],
)
def test_not_go_expressions(value):
    assert not is_go_expr(value)


def test_go_keywords():
    assert is_go_keyword("type")
    assert is_go_keyword("func")
    assert not is_go_keyword("Type")
    assert not is_go_keyword("int")
