"""Conversion between plain Python data and the value model.

Plain data is what ``json.load`` produces (plus tuples and bytes). Enum
variants follow the externally tagged JSON convention: a unit variant is
its tag string, any other variant a single-key dict ``{tag: payload}``.
"""

from typing import Any

from .shape import (
    EnumShape,
    ListShape,
    MapShape,
    OptionShape,
    RecordShape,
    ScalarKind,
    ScalarShape,
    Shape,
    TupleShape,
)
from .value import (
    BoolValue,
    BytesValue,
    CharValue,
    FloatValue,
    IntegerValue,
    MapValue,
    OptionValue,
    RecordValue,
    SequenceValue,
    StringValue,
    UnitValue,
    Value,
    VariantKind,
    VariantValue,
)


def _fail(shape: Shape, data: Any, location: str) -> None:
    raise ValueError(
        f"Cannot convert {type(data).__name__} to {shape.to_dict()!r} at '{location or '.'}'"
    )


def _at(location: str, name: Any) -> str:
    return f"{location}/{name}" if location else str(name)


def to_value(data: Any, shape: Shape, location: str = "") -> Value:
    """
    Build a Value from plain Python data using the expected shape.

    Args:
        data: Python data (dict, list, tuple, str, int, float, bool, bytes, None)
        shape: Shape the data must follow
        location: Path prefix used in error messages

    Returns:
        The corresponding Value

    Raises:
        ValueError: If the data does not fit the shape
        InvalidNameError: If a key cannot be used as an entry name
    """
    if isinstance(shape, OptionShape):
        if data is None:
            return OptionValue(None)
        return OptionValue(to_value(data, shape.inner, location))

    if isinstance(shape, ScalarShape):
        return _scalar_to_value(data, shape, location)

    if isinstance(shape, TupleShape):
        if not isinstance(data, (list, tuple)) or len(data) != shape.arity:
            _fail(shape, data, location)
        return SequenceValue(tuple(
            to_value(item, element, _at(location, index))
            for index, (item, element) in enumerate(zip(data, shape.elements))
        ))

    if isinstance(shape, ListShape):
        if not isinstance(data, (list, tuple)):
            _fail(shape, data, location)
        return SequenceValue(tuple(
            to_value(item, shape.element, _at(location, index)) for index, item in enumerate(data)
        ))

    if isinstance(shape, RecordShape):
        if not isinstance(data, dict):
            _fail(shape, data, location)
        unknown = sorted(set(data) - set(shape.field_names))
        if unknown:
            raise ValueError(f"Unknown fields {unknown} at '{location or '.'}'")
        fields = []
        for name, field_shape in shape.fields:
            if name not in data and not isinstance(field_shape, OptionShape):
                raise ValueError(f"Missing field {name!r} at '{location or '.'}'")
            fields.append((name, to_value(data.get(name), field_shape, _at(location, name))))
        return RecordValue(tuple(fields))

    if isinstance(shape, MapShape):
        if not isinstance(data, dict):
            _fail(shape, data, location)
        return MapValue(tuple(
            (key, to_value(item, shape.value, _at(location, key))) for key, item in data.items()
        ))

    if isinstance(shape, EnumShape):
        return _variant_to_value(data, shape, location)

    raise TypeError(f"Unsupported shape: {type(shape).__name__}")


def _scalar_to_value(data: Any, shape: ScalarShape, location: str) -> Value:
    kind = shape.kind
    if kind == ScalarKind.UNIT:
        if data is not None and data != ():
            _fail(shape, data, location)
        return UnitValue()
    if kind == ScalarKind.BOOL:
        if not isinstance(data, bool):
            _fail(shape, data, location)
        return BoolValue(data)
    if kind == ScalarKind.CHAR:
        if not isinstance(data, str) or len(data) != 1:
            _fail(shape, data, location)
        return CharValue(data)
    if kind == ScalarKind.STRING:
        if not isinstance(data, str):
            _fail(shape, data, location)
        return StringValue(data)
    if kind == ScalarKind.BYTES:
        if isinstance(data, (bytes, bytearray)):
            return BytesValue(bytes(data))
        if isinstance(data, list) and all(isinstance(b, int) and 0 <= b < 256 for b in data):
            return BytesValue(bytes(data))
        _fail(shape, data, location)
    if kind.is_integer:
        if isinstance(data, bool) or not isinstance(data, int):
            _fail(shape, data, location)
        return IntegerValue(data, kind.width, kind.signed)
    if kind.is_float:
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            _fail(shape, data, location)
        return FloatValue(float(data), kind.width)
    raise TypeError(f"Unsupported scalar kind: {kind}")


def _variant_to_value(data: Any, shape: EnumShape, location: str) -> VariantValue:
    if isinstance(data, str):
        tag, payload = data, None
    elif isinstance(data, dict) and len(data) == 1:
        (tag, payload), = data.items()
    else:
        _fail(shape, data, location)

    variant = shape.variant(tag)
    if variant is None:
        raise ValueError(f"Unknown variant {tag!r} at '{location or '.'}', expected one of {list(shape.tags)}")
    if variant.kind == VariantKind.UNIT:
        if not isinstance(data, str):
            raise ValueError(f"Unit variant {tag!r} takes no payload at '{location or '.'}'")
        return VariantValue(tag)
    if isinstance(data, str):
        raise ValueError(f"Variant {tag!r} needs a payload at '{location or '.'}'")
    return VariantValue(tag, variant.kind, to_value(payload, variant.payload, location))


def to_native(value: Value) -> Any:
    """
    Convert a Value into plain Python data.

    Sequences become lists, maps and records dicts, absent options None and
    variants follow the externally tagged convention.
    """
    if isinstance(value, UnitValue):
        return None
    if isinstance(value, (BoolValue, CharValue, IntegerValue, FloatValue, StringValue, BytesValue)):
        return value.value
    if isinstance(value, OptionValue):
        return to_native(value.value) if value.is_present else None
    if isinstance(value, SequenceValue):
        return [to_native(item) for item in value.items]
    if isinstance(value, MapValue):
        return {key: to_native(item) for key, item in value.entries}
    if isinstance(value, RecordValue):
        return {name: to_native(item) for name, item in value.fields}
    if isinstance(value, VariantValue):
        if value.variant_kind == VariantKind.UNIT:
            return value.tag
        return {value.tag: to_native(value.payload)}
    raise TypeError(f"Unsupported value: {type(value).__name__}")
