"""Canonical text forms of scalar values.

These encodings are the wire format of the tree and formatting must stay
byte-for-byte stable. Parsing accepts a slightly wider grammar than the
formatter emits: integers may carry a leading ``+`` or leading zeros, and
floats may use exponents and ``inf``/``infinity``/``nan`` in any case.
Booleans must be exactly ``true`` or ``false``. Whitespace is only
tolerated in lenient mode.
"""

import math
import re
from decimal import Decimal
from typing import Optional

from ..models.shape import ScalarKind
from ..models.value import (
    BoolValue,
    BytesValue,
    CharValue,
    FloatValue,
    IntegerValue,
    StringValue,
    UnitValue,
    Value,
    integer_bounds,
    round_f32,
)

_SIGNED_INTEGER = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_INTEGER = re.compile(r"\+?[0-9]+")
_FLOAT = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?)",
    re.IGNORECASE,
)


def _shortest_digits(value: float, width: int) -> str:
    if width == 64:
        return repr(value)
    target = round_f32(value)
    for precision in range(1, 10):
        candidate = f"{target:.{precision}g}"
        if round_f32(float(candidate)) == target:
            return candidate
    return repr(target)


def format_float(value: float, width: int = 64) -> str:
    """
    Format a float the way the tree stores it.

    Shortest round-trip digits at the given width, never in exponent
    notation, with integral values written without a fraction.

    Args:
        value: Float to format
        width: 32 or 64

    Returns:
        Canonical text form
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"

    text = format(Decimal(_shortest_digits(value, width)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_scalar(value: Value) -> bytes:
    """Return the file content for a scalar value."""
    if isinstance(value, UnitValue):
        return b""
    if isinstance(value, BoolValue):
        return b"true" if value.value else b"false"
    if isinstance(value, CharValue):
        return value.value.encode("utf-8")
    if isinstance(value, IntegerValue):
        return str(value.value).encode("ascii")
    if isinstance(value, FloatValue):
        return format_float(value.value, value.width).encode("ascii")
    if isinstance(value, StringValue):
        return value.value.encode("utf-8")
    if isinstance(value, BytesValue):
        return value.value
    raise ValueError(f"{type(value).__name__} is not a scalar value")


def _decode(content: bytes, what: str) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"{what} content is not valid UTF-8: {e.reason}")


def parse_integer(text: str, width: int, signed: bool) -> int:
    pattern = _SIGNED_INTEGER if signed else _UNSIGNED_INTEGER
    if not pattern.fullmatch(text):
        raise ValueError(f"{text!r} is not a valid {'i' if signed else 'u'}{width}")
    number = int(text)
    low, high = integer_bounds(width, signed)
    if not low <= number <= high:
        raise ValueError(f"{number} is out of range for {'i' if signed else 'u'}{width}")
    return number


def parse_float(text: str, width: int) -> float:
    if not _FLOAT.fullmatch(text):
        raise ValueError(f"{text!r} is not a valid f{width}")
    number = float(text)
    return round_f32(number) if width == 32 else number


def parse_bool(text: str) -> bool:
    if text == "true":
        return True
    if text == "false":
        return False
    raise ValueError(f"{text!r} is not a boolean, expected 'true' or 'false'")


def parse_scalar(kind: ScalarKind, content: bytes, strict: bool = True) -> Value:
    """
    Parse file content as the given scalar kind.

    Args:
        kind: Expected scalar kind
        content: Raw file content
        strict: When False, surrounding whitespace is ignored for bool,
            integer and float content

    Returns:
        The parsed Value

    Raises:
        ValueError: If the content is not in canonical form for the kind
    """
    if kind == ScalarKind.UNIT:
        return UnitValue()
    if kind == ScalarKind.BYTES:
        return BytesValue(content)
    if kind == ScalarKind.STRING:
        return StringValue(_decode(content, "string"))
    if kind == ScalarKind.CHAR:
        text = _decode(content, "char")
        if not text:
            raise ValueError("char file is empty")
        return CharValue(text[0])

    text = _decode(content, kind.value)
    if not strict:
        text = text.strip()
    if kind == ScalarKind.BOOL:
        return BoolValue(parse_bool(text))
    if kind.is_integer:
        return IntegerValue(parse_integer(text, kind.width, kind.signed), kind.width, kind.signed)
    if kind.is_float:
        return FloatValue(parse_float(text, kind.width), kind.width)
    raise ValueError(f"Unsupported scalar kind: {kind}")


def scalar_kind_of(value: Value) -> Optional[ScalarKind]:
    """Return the scalar kind a value is written as, or None for composites."""
    if isinstance(value, IntegerValue):
        prefix = "i" if value.signed else "u"
        return ScalarKind(f"{prefix}{value.width}")
    if isinstance(value, FloatValue):
        return ScalarKind(f"f{value.width}")
    mapping = {
        UnitValue: ScalarKind.UNIT,
        BoolValue: ScalarKind.BOOL,
        CharValue: ScalarKind.CHAR,
        StringValue: ScalarKind.STRING,
        BytesValue: ScalarKind.BYTES,
    }
    return mapping.get(type(value))
