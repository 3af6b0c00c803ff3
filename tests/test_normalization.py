from __future__ import annotations

import math

import pytest

from onstar2mqtt.normalize import coerce_value, safe_float, safe_int, safe_scalar


def test_safe_float() -> None:
    assert safe_float("6013.8") == 6013.8
    assert safe_float(" 15 ") == 15.0
    assert safe_float("") is None
    assert safe_float(None) is None
    assert safe_float(True) is None
    assert safe_float("n/a") is None
    assert safe_float("nan") is None
    assert safe_float(math.inf) is None
    assert safe_float("1_000") is None
    assert safe_float("-Infinity") is None
    assert safe_float(".5") == 0.5


def test_safe_int() -> None:
    assert safe_int("120000") == 120_000
    assert safe_int("90.9") == 90
    assert safe_int("abc") is None


def test_safe_scalar_drops_nested_values() -> None:
    assert safe_scalar("1") == "1"
    assert safe_scalar(2.5) == 2.5
    assert safe_scalar({"a": 1}) is None
    assert safe_scalar([1]) is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("true", True),
        ("FALSE", False),
        ("15", 15),
        ("240.0", 240),
        ("-40", -40),
        ("19.98", 19.98),
        ("plugged", "plugged"),
        ("1_000", "1_000"),
        ("1e5", "1e5"),
        ("infinity", "infinity"),
        (" 12 ", 12),
        ("", ""),
        (None, None),
        (False, False),
        (5.0, 5),
        (math.nan, None),
    ],
)
def test_coerce_value(raw: object, expected: object) -> None:
    result = coerce_value(raw)
    assert result == expected
    assert type(result) is type(expected)
