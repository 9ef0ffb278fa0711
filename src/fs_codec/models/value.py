"""Abstract value model shared by the serializer and the deserializer."""

import math
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple

from ..naming import VARIANT_MARKER, field_entry_name
from ..types import InvalidNameError


class ValueKind(Enum):
    """Enumeration of value variants."""
    UNIT = "unit"
    BOOL = "bool"
    CHAR = "char"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BYTES = "bytes"
    OPTION = "option"
    SEQUENCE = "sequence"
    MAP = "map"
    RECORD = "record"
    VARIANT = "variant"


class VariantKind(Enum):
    """Payload layout of an enum variant."""
    UNIT = "unit"
    TUPLE = "tuple"
    RECORD = "record"
    NEWTYPE = "newtype"


INTEGER_WIDTHS = (8, 16, 32, 64)
FLOAT_WIDTHS = (32, 64)


def round_f32(value: float) -> float:
    """Round a Python float to the nearest single-precision value."""
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def integer_bounds(width: int, signed: bool) -> Tuple[int, int]:
    """Return the inclusive (min, max) range of an integer width."""
    if signed:
        return -(1 << (width - 1)), (1 << (width - 1)) - 1
    return 0, (1 << width) - 1


def _unique_names(pairs: Tuple[Tuple[str, Any], ...], what: str) -> None:
    seen = set()
    for name, _ in pairs:
        field_entry_name(name)
        if name in seen:
            raise InvalidNameError(f"Duplicate {what} {name!r}")
        seen.add(name)


class ValueVisitor(ABC):
    """Capability interface for walking a value without knowing its native type."""

    @abstractmethod
    def visit_unit(self, value: "UnitValue", *args): ...

    @abstractmethod
    def visit_bool(self, value: "BoolValue", *args): ...

    @abstractmethod
    def visit_char(self, value: "CharValue", *args): ...

    @abstractmethod
    def visit_integer(self, value: "IntegerValue", *args): ...

    @abstractmethod
    def visit_float(self, value: "FloatValue", *args): ...

    @abstractmethod
    def visit_string(self, value: "StringValue", *args): ...

    @abstractmethod
    def visit_bytes(self, value: "BytesValue", *args): ...

    @abstractmethod
    def visit_option(self, value: "OptionValue", *args): ...

    @abstractmethod
    def visit_sequence(self, value: "SequenceValue", *args): ...

    @abstractmethod
    def visit_map(self, value: "MapValue", *args): ...

    @abstractmethod
    def visit_record(self, value: "RecordValue", *args): ...

    @abstractmethod
    def visit_variant(self, value: "VariantValue", *args): ...


class Value(ABC):
    """Base class of every value variant."""

    kind: ValueKind

    @abstractmethod
    def accept(self, visitor: ValueVisitor, *args):
        """Dispatch to the visitor method for this variant."""

    def is_directory(self) -> bool:
        """Check whether this value is realized as a directory on disk."""
        return False


@dataclass(frozen=True)
class UnitValue(Value):
    kind = ValueKind.UNIT

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_unit(self, *args)


@dataclass(frozen=True)
class BoolValue(Value):
    value: bool
    kind = ValueKind.BOOL

    def __post_init__(self):
        if not isinstance(self.value, bool):
            raise ValueError(f"BoolValue expects bool, got {type(self.value).__name__}")

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_bool(self, *args)


@dataclass(frozen=True)
class CharValue(Value):
    value: str
    kind = ValueKind.CHAR

    def __post_init__(self):
        if not isinstance(self.value, str) or len(self.value) != 1:
            raise ValueError(f"CharValue expects a single character, got {self.value!r}")

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_char(self, *args)


@dataclass(frozen=True)
class IntegerValue(Value):
    """Integer of a fixed width and signedness."""

    value: int
    width: int = 64
    signed: bool = True
    kind = ValueKind.INTEGER

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"IntegerValue expects int, got {type(self.value).__name__}")
        if self.width not in INTEGER_WIDTHS:
            raise ValueError(f"Unsupported integer width: {self.width}")
        low, high = integer_bounds(self.width, self.signed)
        if not low <= self.value <= high:
            prefix = "i" if self.signed else "u"
            raise ValueError(f"{self.value} does not fit in {prefix}{self.width}")

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_integer(self, *args)


@dataclass(frozen=True)
class FloatValue(Value):
    """Float of 32 or 64 bits; 32-bit values are rounded to single precision."""

    value: float
    width: int = 64
    kind = ValueKind.FLOAT

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise ValueError(f"FloatValue expects float, got {type(self.value).__name__}")
        if self.width not in FLOAT_WIDTHS:
            raise ValueError(f"Unsupported float width: {self.width}")
        value = float(self.value)
        object.__setattr__(self, "value", round_f32(value) if self.width == 32 else value)

    def __eq__(self, other):
        if not isinstance(other, FloatValue):
            return NotImplemented
        if self.width != other.width:
            return False
        # NaN payloads compare equal so round trips of NaN hold
        if self.value != self.value and other.value != other.value:
            return True
        return self.value == other.value

    def __hash__(self):
        return hash((self.width, "nan" if self.value != self.value else self.value))

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_float(self, *args)


@dataclass(frozen=True)
class StringValue(Value):
    value: str
    kind = ValueKind.STRING

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise ValueError(f"StringValue expects str, got {type(self.value).__name__}")

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_string(self, *args)


@dataclass(frozen=True)
class BytesValue(Value):
    value: bytes
    kind = ValueKind.BYTES

    def __post_init__(self):
        if not isinstance(self.value, (bytes, bytearray)):
            raise ValueError(f"BytesValue expects bytes, got {type(self.value).__name__}")
        object.__setattr__(self, "value", bytes(self.value))

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_bytes(self, *args)


@dataclass(frozen=True)
class OptionValue(Value):
    """Optional value; ``None`` means absent."""

    value: Optional[Value] = None
    kind = ValueKind.OPTION

    def __post_init__(self):
        if self.value is not None and not isinstance(self.value, Value):
            raise ValueError(f"OptionValue wraps a Value, got {type(self.value).__name__}")

    @property
    def is_present(self) -> bool:
        return self.value is not None

    def is_directory(self) -> bool:
        return self.value is not None and self.value.is_directory()

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_option(self, *args)


@dataclass(frozen=True)
class SequenceValue(Value):
    """Ordered values stored under entries ``0``, ``1``, ..."""

    items: Tuple[Value, ...] = field(default_factory=tuple)
    kind = ValueKind.SEQUENCE

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))
        for item in self.items:
            if not isinstance(item, Value):
                raise ValueError(f"SequenceValue items must be Values, got {type(item).__name__}")

    def is_directory(self) -> bool:
        return True

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_sequence(self, *args)


@dataclass(frozen=True)
class MapValue(Value):
    """Keyed values; every key becomes an entry name."""

    entries: Tuple[Tuple[str, Value], ...] = field(default_factory=tuple)
    kind = ValueKind.MAP

    def __post_init__(self):
        entries = self.entries.items() if isinstance(self.entries, dict) else self.entries
        object.__setattr__(self, "entries", tuple((key, value) for key, value in entries))
        _unique_names(self.entries, "map key")

    def get(self, key: str) -> Optional[Value]:
        for name, value in self.entries:
            if name == key:
                return value
        return None

    # Directories do not record entry order, so maps compare by key
    def __eq__(self, other):
        if not isinstance(other, MapValue):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)

    def __hash__(self):
        return hash(frozenset(self.entries))

    def is_directory(self) -> bool:
        return True

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_map(self, *args)


@dataclass(frozen=True)
class RecordValue(Value):
    """Named fields in declaration order."""

    fields: Tuple[Tuple[str, Value], ...] = field(default_factory=tuple)
    kind = ValueKind.RECORD

    def __post_init__(self):
        fields = self.fields.items() if isinstance(self.fields, dict) else self.fields
        object.__setattr__(self, "fields", tuple((name, value) for name, value in fields))
        _unique_names(self.fields, "field")

    def get(self, name: str) -> Optional[Value]:
        for field_name, value in self.fields:
            if field_name == name:
                return value
        return None

    def is_directory(self) -> bool:
        return True

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_record(self, *args)


@dataclass(frozen=True)
class VariantValue(Value):
    """
    Enum variant identified by its tag.

    The payload depends on ``variant_kind``: nothing for unit variants, a
    SequenceValue for tuple variants, a RecordValue for record variants and
    any Value for newtype variants.
    """

    tag: str
    variant_kind: VariantKind = VariantKind.UNIT
    payload: Optional[Value] = None
    kind = ValueKind.VARIANT

    def __post_init__(self):
        if not isinstance(self.tag, str) or not self.tag:
            raise ValueError("Variant tag must be a non-empty string")
        if self.variant_kind == VariantKind.UNIT:
            if self.payload is not None:
                raise ValueError(f"Unit variant {self.tag!r} cannot carry a payload")
        elif self.variant_kind == VariantKind.TUPLE:
            if not isinstance(self.payload, SequenceValue):
                raise ValueError(f"Tuple variant {self.tag!r} needs a SequenceValue payload")
        elif self.variant_kind == VariantKind.RECORD:
            if not isinstance(self.payload, RecordValue):
                raise ValueError(f"Record variant {self.tag!r} needs a RecordValue payload")
            if self.payload.get(VARIANT_MARKER) is not None:
                raise InvalidNameError(
                    f"Record variant {self.tag!r} uses reserved field name {VARIANT_MARKER!r}"
                )
        elif not isinstance(self.payload, Value):
            raise ValueError(f"Newtype variant {self.tag!r} needs a Value payload")

    def is_directory(self) -> bool:
        return self.variant_kind != VariantKind.UNIT

    def accept(self, visitor: ValueVisitor, *args):
        return visitor.visit_variant(self, *args)
