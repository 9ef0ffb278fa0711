"""
fs-codec - Bidirectional codec between structured values and filesystem trees.

Composite values become directories, scalars become files, and enum
variants carry their tag in a reserved ``variant`` file.
"""

from .fs_codec import FsCodec, deserialize, serialize
from .models import (
    BoolValue,
    BytesValue,
    CharValue,
    EnumShape,
    FloatValue,
    IntegerValue,
    ListShape,
    MapShape,
    MapValue,
    OptionShape,
    OptionValue,
    RecordShape,
    RecordValue,
    ScalarKind,
    ScalarShape,
    SequenceValue,
    Shape,
    StringValue,
    TupleShape,
    UnitValue,
    Value,
    ValueVisitor,
    VariantKind,
    VariantShape,
    VariantValue,
    shape_from_dict,
    to_native,
    to_value,
)
from .types import (
    AlreadyExistsError,
    CodecError,
    ErrorType,
    InvalidNameError,
    IOFailureError,
    MalformedScalarError,
    OverwritePolicy,
    SerializeResult,
    ShapeMismatchError,
    UnknownVariantError,
)

__version__ = "1.0.0"
__all__ = [
    "FsCodec",
    "serialize",
    "deserialize",
    "BoolValue",
    "BytesValue",
    "CharValue",
    "FloatValue",
    "IntegerValue",
    "MapValue",
    "OptionValue",
    "RecordValue",
    "SequenceValue",
    "StringValue",
    "UnitValue",
    "Value",
    "ValueVisitor",
    "VariantKind",
    "VariantValue",
    "EnumShape",
    "ListShape",
    "MapShape",
    "OptionShape",
    "RecordShape",
    "ScalarKind",
    "ScalarShape",
    "Shape",
    "TupleShape",
    "VariantShape",
    "shape_from_dict",
    "to_native",
    "to_value",
    "CodecError",
    "ErrorType",
    "InvalidNameError",
    "AlreadyExistsError",
    "IOFailureError",
    "ShapeMismatchError",
    "MalformedScalarError",
    "UnknownVariantError",
    "OverwritePolicy",
    "SerializeResult",
]
