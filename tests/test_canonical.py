"""
Canonical payload tests: equality, hashing, MISSING handling.

Tests:
1-5.   Equality matrix (missing vs null vs absent, key order, array order)
6-8.   Hash stability and format
9-12.  Stringify details (integral floats, nesting, non-ASCII, stray MISSING)
13-14. JS number text (small and huge floats, decimal positions)
"""

import copy
import re

from conveyor.canonical import (
    MISSING,
    canonical_stringify,
    canonicalize_payload,
    format_js_number,
    hash_canonical,
    payloads_equal,
    strip_undefined,
)


# ============================================================
# Equality matrix
# ============================================================

def test_missing_equals_absent():
    assert payloads_equal({"a": MISSING}, {}) is True


def test_null_not_equal_absent():
    assert payloads_equal({"a": None}, {}) is False


def test_missing_not_equal_null():
    assert payloads_equal({"a": MISSING}, {"a": None}) is False


def test_key_order_ignored():
    assert payloads_equal({"a": 1, "b": 2}, {"b": 2, "a": 1}) is True
    assert payloads_equal({"x": {"b": 1, "a": 2}}, {"x": {"a": 2, "b": 1}}) is True


def test_array_order_significant():
    assert payloads_equal([1, 2, 3], [3, 2, 1]) is False
    assert payloads_equal([1, 2, 3], [1, 2, 3]) is True


# ============================================================
# Hashing
# ============================================================

def test_hash_ignores_key_order():
    assert hash_canonical({"b": 1, "a": 2}) == hash_canonical({"a": 2, "b": 1})


def test_hash_differs_for_different_values():
    assert hash_canonical({"a": 1}) != hash_canonical({"a": 2})


def test_hash_is_64_lowercase_hex():
    digest = hash_canonical({"speed_mode": "belt_speed", "belt_speed_fpm": 104.72})
    assert re.fullmatch(r"[0-9a-f]{64}", digest)


# ============================================================
# Stringify details
# ============================================================

def test_integral_float_renders_as_integer():
    assert canonical_stringify({"x": 3.0}) == '{"x":3}'
    assert payloads_equal({"x": 3.0}, {"x": 3}) is True
    assert canonical_stringify([0.5, True, None]) == "[0.5,true,null]"


def test_nested_missing_stripped_inside_arrays():
    value = {"rows": [{"a": 1, "b": MISSING}, {"c": {"d": MISSING}}]}
    original = copy.deepcopy(value)
    assert strip_undefined(value) == {"rows": [{"a": 1}, {"c": {}}]}
    assert value == original  # input not mutated
    assert payloads_equal(value, {"rows": [{"a": 1}, {"c": {}}]})


def test_non_ascii_kept_literal_and_sorted_compact():
    assert canonicalize_payload({"b": "Ø", "a": [1, 2]}) == '{"a":[1,2],"b":"Ø"}'


def test_stray_missing_serializes_as_null():
    # canonical_stringify on an un-stripped list element
    assert canonical_stringify([MISSING]) == "[null]"
    assert canonical_stringify(float("nan")) == "null"
    assert bool(MISSING) is False
    assert copy.deepcopy(MISSING) is MISSING


# ============================================================
# JS number text
# ============================================================

def test_small_and_huge_floats_use_js_number_text():
    # JSON.stringify({a: 0.00001, b: 1.5e-7, c: 0.0001})
    assert canonicalize_payload({"a": 0.00001, "b": 1.5e-7, "c": 0.0001}) == \
        '{"a":0.00001,"b":1.5e-7,"c":0.0001}'
    assert canonical_stringify(1.5e21) == "1.5e+21"
    assert canonical_stringify(1e21) == "1e+21"
    assert canonical_stringify(-2.5e-9) == "-2.5e-9"


def test_js_number_decimal_positions():
    assert format_js_number(0.000001) == "0.000001"
    assert format_js_number(123.456) == "123.456"
    assert format_js_number(-0.5) == "-0.5"
    assert format_js_number(0.1 + 0.2) == "0.30000000000000004"
    assert format_js_number(1.2345e20) == "123450000000000000000"
