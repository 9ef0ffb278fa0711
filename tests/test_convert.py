"""Tests for conversion between plain Python data and values."""

import pytest

from fs_codec.models import (
    BytesValue,
    FloatValue,
    IntegerValue,
    MapShape,
    OptionShape,
    OptionValue,
    RecordShape,
    TupleShape,
    UnitValue,
    VariantKind,
    VariantValue,
    to_native,
    to_value,
)
from fs_codec.models.shape import BYTES, F32, I32, STRING, U8, UNIT
from fs_codec.types import InvalidNameError


class TestToValue:
    """Tests for building values from Python data."""

    def test_player(self, player_data, player_shape, player_value):
        """Test converting a nested document."""
        assert to_value(player_data, player_shape) == player_value

    def test_enum_conventions(self, command_shape):
        """Test externally tagged enum input."""
        assert to_value("Stop", command_shape) == VariantValue("Stop")

        jump = to_value({"Jump": {"height": 3}}, command_shape)
        assert jump.variant_kind == VariantKind.RECORD
        assert jump.payload.get("height") == IntegerValue(3, 8, signed=False)

        say = to_value({"Say": "hi"}, command_shape)
        assert say.variant_kind == VariantKind.NEWTYPE

    def test_enum_errors(self, command_shape):
        """Test enum conversion failures."""
        with pytest.raises(ValueError):
            to_value("Fly", command_shape)
        with pytest.raises(ValueError):
            to_value({"Stop": None}, command_shape)
        with pytest.raises(ValueError):
            to_value("Move", command_shape)

    def test_scalars(self):
        """Test scalar conversions."""
        assert to_value(None, UNIT) == UnitValue()
        assert to_value(2, F32) == FloatValue(2.0, 32)
        assert to_value([0, 255], BYTES) == BytesValue(b"\x00\xff")

        with pytest.raises(ValueError):
            to_value(True, I32)
        with pytest.raises(ValueError):
            to_value(300, U8)
        with pytest.raises(ValueError):
            to_value(1, STRING)

    def test_records(self):
        """Test record field checks."""
        shape = RecordShape({"a": I32, "b": OptionShape(I32)})

        value = to_value({"a": 1}, shape)
        assert value.get("b") == OptionValue(None)

        with pytest.raises(ValueError):
            to_value({"b": 1}, shape)
        with pytest.raises(ValueError):
            to_value({"a": 1, "c": 2}, shape)

    def test_tuple_arity(self):
        """Test that tuples need the declared number of items."""
        with pytest.raises(ValueError):
            to_value([1], TupleShape((I32, I32)))

    def test_invalid_map_key(self):
        """Test that unsafe map keys are refused."""
        with pytest.raises(InvalidNameError):
            to_value({"a/b": 1}, MapShape(I32))


class TestToNative:
    """Tests for converting values back to Python data."""

    def test_player(self, player_data, player_value):
        """Test converting a nested value."""
        assert to_native(player_value) == player_data

    def test_variants(self, command_shape):
        """Test externally tagged enum output."""
        assert to_native(VariantValue("Stop")) == "Stop"
        assert to_native(to_value({"Move": [1, 2]}, command_shape)) == {"Move": [1, 2]}
