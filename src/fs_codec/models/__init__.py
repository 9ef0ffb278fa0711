"""Value model and shape descriptors for the filesystem codec."""

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
    ValueKind,
    ValueVisitor,
    VariantKind,
    VariantValue,
)
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
    VariantShape,
    shape_from_dict,
)
from .convert import to_native, to_value

__all__ = [
    "BoolValue", "BytesValue", "CharValue", "FloatValue", "IntegerValue", "MapValue",
    "OptionValue", "RecordValue", "SequenceValue", "StringValue", "UnitValue", "Value",
    "ValueKind", "ValueVisitor", "VariantKind", "VariantValue",
    "EnumShape", "ListShape", "MapShape", "OptionShape", "RecordShape", "ScalarKind",
    "ScalarShape", "Shape", "TupleShape", "VariantShape", "shape_from_dict",
    "to_native", "to_value",
]
