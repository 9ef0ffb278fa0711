"""Pytest configuration and fixtures."""

import pytest
import tempfile
from pathlib import Path

from fs_codec.models import (
    BoolValue,
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
    SequenceValue,
    StringValue,
    VariantKind,
    VariantValue,
)
from fs_codec.models.shape import (
    BOOL,
    F64,
    I32,
    STRING,
    U8,
    newtype_variant,
    record_variant,
    tuple_variant,
    unit_variant,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def point_shape():
    """Record shape with two integer fields."""
    return RecordShape({"x": I32, "y": I32})


@pytest.fixture
def command_shape():
    """Enum shape covering every variant kind."""
    return EnumShape((
        unit_variant("Stop"),
        tuple_variant("Move", I32, I32),
        record_variant("Jump", {"height": U8}),
        newtype_variant("Say", STRING),
    ))


@pytest.fixture
def player_shape(command_shape):
    """Nested shape exercising every composite kind."""
    return RecordShape({
        "name": STRING,
        "alive": BOOL,
        "score": F64,
        "tags": ListShape(STRING),
        "inventory": MapShape(I32),
        "nickname": OptionShape(STRING),
        "last_command": command_shape,
    })


@pytest.fixture
def player_value():
    """Value matching ``player_shape``."""
    return RecordValue({
        "name": StringValue("Alice"),
        "alive": BoolValue(True),
        "score": FloatValue(12.5),
        "tags": SequenceValue((StringValue("archer"), StringValue("elf"))),
        "inventory": MapValue({"arrows": IntegerValue(20, 32), "gold": IntegerValue(-3, 32)}),
        "nickname": OptionValue(None),
        "last_command": VariantValue(
            "Move", VariantKind.TUPLE,
            SequenceValue((IntegerValue(3, 32), IntegerValue(4, 32)))
        ),
    })


@pytest.fixture
def player_data():
    """Plain Python form of ``player_value``."""
    return {
        "name": "Alice",
        "alive": True,
        "score": 12.5,
        "tags": ["archer", "elf"],
        "inventory": {"arrows": 20, "gold": -3},
        "nickname": None,
        "last_command": {"Move": [3, 4]},
    }

