"""
Canonical payload serialization: the one place that defines payload equality.

Engine input hashing, recipe diffing and client dirty-tracking all go through
canonicalize_payload(). The rules must stay byte-compatible with the browser
client:

- dict keys sorted by code point at every depth
- list order preserved
- an absent value (MISSING) drops its dict entry; an explicit None is kept
- integral floats render as integers (3.0 -> "3"), and every other number uses
  JS number text (1e-05 -> "0.00001", 1.5e-07 -> "1.5e-7")
- no whitespace, non-ASCII kept literal
"""

import hashlib
import json
import math
from decimal import Decimal


class _Missing:
    """Marker for a key that is absent, as opposed to present-with-null."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "MISSING"

    def __bool__(self):
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING = _Missing()


def strip_undefined(value):
    """Return a copy of value with every MISSING dict entry removed, at any depth.

    Lists keep all their elements; only dicts lose entries. Input is not mutated.
    """
    if isinstance(value, dict):
        return {
            k: strip_undefined(v)
            for k, v in value.items()
            if v is not MISSING
        }
    if isinstance(value, (list, tuple)):
        return [strip_undefined(item) for item in value]
    return value


def _normalize(value):
    # bool is an int subclass, so it has to be checked first
    if value is None or value is MISSING:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer() and abs(value) < 1e21:
            return int(value)
        return value
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return {
            str(k): _normalize(v)
            for k, v in value.items()
            if v is not MISSING
        }
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    if hasattr(value, "value"):  # Enum
        return _normalize(value.value)
    return str(value)


def format_js_number(value: float) -> str:
    """Render a finite float the way JavaScript's Number toString does.

    Shortest round-trip digits (same as repr), placed as JS places them:
    plain decimal for 1e-6 <= |x| < 1e21, otherwise d.ddde±n with no
    exponent padding.
    """
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    n = exponent + k  # value == 0.digits * 10**n

    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
        text = "%se%s%d" % (mantissa, "+" if n - 1 >= 0 else "-", abs(n - 1))
    return sign + text


def _emit(value) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_js_number(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, dict):
        return "{%s}" % ",".join(
            "%s:%s" % (json.dumps(k, ensure_ascii=False), _emit(value[k]))
            for k in sorted(value)
        )
    return "[%s]" % ",".join(_emit(item) for item in value)


def canonical_stringify(value) -> str:
    """Serialize an already-stripped payload to its canonical JSON string.

    A stray MISSING that reaches this point serializes as null instead of raising.
    """
    return _emit(_normalize(value))


def canonicalize_payload(value) -> str:
    return canonical_stringify(strip_undefined(value))


def payloads_equal(a, b) -> bool:
    """True when both payloads have the same canonical form."""
    return canonicalize_payload(a) == canonicalize_payload(b)


def hash_canonical(value) -> str:
    """SHA-256 hex digest (64 lowercase chars) of the canonical form."""
    return hashlib.sha256(canonicalize_payload(value).encode("utf-8")).hexdigest()
