"""Shape descriptors telling the deserializer what to expect at each entry."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from ..naming import VARIANT_MARKER, field_entry_name
from ..types import InvalidNameError
from .value import VariantKind


class ScalarKind(Enum):
    """Enumeration of scalar kinds stored as single files."""
    UNIT = "unit"
    BOOL = "bool"
    CHAR = "char"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    F32 = "f32"
    F64 = "f64"
    STRING = "string"
    BYTES = "bytes"

    @property
    def is_integer(self) -> bool:
        return self.value[0] in "iu" and self.value[1:].isdigit()

    @property
    def is_float(self) -> bool:
        return self in (ScalarKind.F32, ScalarKind.F64)

    @property
    def width(self) -> Optional[int]:
        if self.is_integer or self.is_float:
            return int(self.value[1:])
        return None

    @property
    def signed(self) -> bool:
        return self.value.startswith("i")


class Shape:
    """Base class of every shape descriptor."""

    def to_dict(self) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class ScalarShape(Shape):
    kind: ScalarKind

    def to_dict(self) -> Any:
        return self.kind.value


@dataclass(frozen=True)
class OptionShape(Shape):
    inner: Shape

    def to_dict(self) -> Any:
        return {"option": self.inner.to_dict()}


@dataclass(frozen=True)
class TupleShape(Shape):
    """Fixed-arity sequence with one shape per position."""

    elements: Tuple[Shape, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "elements", tuple(self.elements))

    @property
    def arity(self) -> int:
        return len(self.elements)

    def to_dict(self) -> Any:
        return {"tuple": [element.to_dict() for element in self.elements]}


@dataclass(frozen=True)
class ListShape(Shape):
    """Variable-length sequence of one element shape."""

    element: Shape

    def to_dict(self) -> Any:
        return {"list": self.element.to_dict()}


@dataclass(frozen=True)
class RecordShape(Shape):
    """Named fields in declaration order."""

    fields: Tuple[Tuple[str, Shape], ...] = field(default_factory=tuple)

    def __post_init__(self):
        fields = self.fields.items() if isinstance(self.fields, dict) else self.fields
        object.__setattr__(self, "fields", tuple((name, shape) for name, shape in fields))
        seen = set()
        for name, _ in self.fields:
            field_entry_name(name)
            if name in seen:
                raise InvalidNameError(f"Duplicate field {name!r} in record shape")
            seen.add(name)

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.fields)

    def to_dict(self) -> Any:
        return {"record": {name: shape.to_dict() for name, shape in self.fields}}


@dataclass(frozen=True)
class MapShape(Shape):
    """String-keyed map whose values all share one shape."""

    value: Shape

    def to_dict(self) -> Any:
        return {"map": self.value.to_dict()}


@dataclass(frozen=True)
class VariantShape:
    """One legal tag of an enum and the shape of its payload."""

    tag: str
    kind: VariantKind = VariantKind.UNIT
    payload: Optional[Shape] = None

    def __post_init__(self):
        if not isinstance(self.tag, str) or not self.tag:
            raise InvalidNameError("Variant tag must be a non-empty string")
        if self.kind == VariantKind.UNIT:
            if self.payload is not None:
                raise ValueError(f"Unit variant {self.tag!r} cannot declare a payload")
        elif self.kind == VariantKind.TUPLE:
            if not isinstance(self.payload, TupleShape):
                raise ValueError(f"Tuple variant {self.tag!r} needs a TupleShape payload")
        elif self.kind == VariantKind.RECORD:
            if not isinstance(self.payload, RecordShape):
                raise ValueError(f"Record variant {self.tag!r} needs a RecordShape payload")
            if VARIANT_MARKER in self.payload.field_names:
                raise InvalidNameError(
                    f"Record variant {self.tag!r} uses reserved field name {VARIANT_MARKER!r}"
                )
        elif not isinstance(self.payload, Shape):
            raise ValueError(f"Newtype variant {self.tag!r} needs a payload shape")

    def payload_dict(self) -> Any:
        if self.kind == VariantKind.UNIT:
            return "unit"
        if self.kind == VariantKind.TUPLE:
            return self.payload.to_dict()
        if self.kind == VariantKind.RECORD:
            return self.payload.to_dict()
        return {"newtype": self.payload.to_dict()}


@dataclass(frozen=True)
class EnumShape(Shape):
    """The set of legal variants at one position."""

    variants: Tuple[VariantShape, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "variants", tuple(self.variants))
        if not self.variants:
            raise ValueError("EnumShape needs at least one variant")
        tags = [variant.tag for variant in self.variants]
        if len(set(tags)) != len(tags):
            raise InvalidNameError(f"Duplicate variant tags in {tags}")

    @property
    def tags(self) -> Tuple[str, ...]:
        return tuple(variant.tag for variant in self.variants)

    def variant(self, tag: str) -> Optional[VariantShape]:
        for variant in self.variants:
            if variant.tag == tag:
                return variant
        return None

    def to_dict(self) -> Any:
        return {"enum": {variant.tag: variant.payload_dict() for variant in self.variants}}


UNIT = ScalarShape(ScalarKind.UNIT)
BOOL = ScalarShape(ScalarKind.BOOL)
CHAR = ScalarShape(ScalarKind.CHAR)
I8 = ScalarShape(ScalarKind.I8)
I16 = ScalarShape(ScalarKind.I16)
I32 = ScalarShape(ScalarKind.I32)
I64 = ScalarShape(ScalarKind.I64)
U8 = ScalarShape(ScalarKind.U8)
U16 = ScalarShape(ScalarKind.U16)
U32 = ScalarShape(ScalarKind.U32)
U64 = ScalarShape(ScalarKind.U64)
F32 = ScalarShape(ScalarKind.F32)
F64 = ScalarShape(ScalarKind.F64)
STRING = ScalarShape(ScalarKind.STRING)
BYTES = ScalarShape(ScalarKind.BYTES)


def unit_variant(tag: str) -> VariantShape:
    return VariantShape(tag, VariantKind.UNIT)


def tuple_variant(tag: str, *elements: Shape) -> VariantShape:
    return VariantShape(tag, VariantKind.TUPLE, TupleShape(elements))


def record_variant(tag: str, fields: Union[Dict[str, Shape], Tuple[Tuple[str, Shape], ...]]) -> VariantShape:
    return VariantShape(tag, VariantKind.RECORD, RecordShape(fields))


def newtype_variant(tag: str, payload: Shape) -> VariantShape:
    return VariantShape(tag, VariantKind.NEWTYPE, payload)


def shape_from_dict(data: Any) -> Shape:
    """
    Build a shape from its JSON-friendly form.

    Args:
        data: A scalar kind name such as ``"i32"``, or a single-key dict
            (``option``, ``tuple``, ``list``, ``record``, ``map``, ``enum``)

    Returns:
        The corresponding Shape

    Raises:
        ValueError: If the description is not understood
        InvalidNameError: If a field name or tag is not a valid entry name
    """
    if isinstance(data, str):
        try:
            return ScalarShape(ScalarKind(data))
        except ValueError:
            raise ValueError(f"Unknown scalar kind: {data!r}")

    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"Shape must be a scalar name or a single-key object, got {data!r}")

    (key, body), = data.items()
    if key == "option":
        return OptionShape(shape_from_dict(body))
    if key == "tuple":
        if not isinstance(body, list):
            raise ValueError("'tuple' expects a list of shapes")
        return TupleShape(tuple(shape_from_dict(item) for item in body))
    if key == "list":
        return ListShape(shape_from_dict(body))
    if key == "record":
        if not isinstance(body, dict):
            raise ValueError("'record' expects an object of field shapes")
        return RecordShape(tuple((name, shape_from_dict(item)) for name, item in body.items()))
    if key == "map":
        return MapShape(shape_from_dict(body))
    if key == "enum":
        if not isinstance(body, dict):
            raise ValueError("'enum' expects an object of variant payloads")
        return EnumShape(tuple(_variant_from_dict(tag, payload) for tag, payload in body.items()))
    raise ValueError(f"Unknown shape key: {key!r}")


def _variant_from_dict(tag: str, payload: Any) -> VariantShape:
    if payload == "unit":
        return VariantShape(tag, VariantKind.UNIT)
    if isinstance(payload, dict) and len(payload) == 1:
        (key, body), = payload.items()
        if key == "tuple":
            return VariantShape(tag, VariantKind.TUPLE, shape_from_dict(payload))
        if key == "record":
            return VariantShape(tag, VariantKind.RECORD, shape_from_dict(payload))
        if key == "newtype":
            return VariantShape(tag, VariantKind.NEWTYPE, shape_from_dict(body))
    raise ValueError(f"Variant {tag!r} payload must be 'unit', tuple, record or newtype")
