"""Integration tests for the filesystem codec."""

import math
import os
from pathlib import Path

import pytest

import fs_codec
from fs_codec import (
    AlreadyExistsError,
    FsCodec,
    InvalidNameError,
    MalformedScalarError,
    OverwritePolicy,
    ShapeMismatchError,
    UnknownVariantError,
    shape_from_dict,
)
from fs_codec.models import (
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
    SequenceValue,
    StringValue,
    TupleShape,
    UnitValue,
    VariantKind,
    VariantValue,
)
from fs_codec.models.shape import BYTES, CHAR, F32, F64, I8, STRING, U64, UNIT, unit_variant


class TestFsCodecIntegration:
    """Integration tests for the complete codec."""

    def setup_method(self):
        """Set up test fixtures."""
        self.codec = FsCodec(fsync=False)

    def teardown_method(self):
        """Release the codec's thread pool."""
        self.codec.close()

    def test_round_trip(self, temp_dir, player_value, player_shape):
        """Test that deserialize(serialize(v)) == v."""
        self.codec.serialize(player_value, temp_dir / "player")

        assert self.codec.deserialize(temp_dir / "player", player_shape) == player_value

    def test_round_trip_scalar_edge_cases(self, temp_dir):
        """Test scalars whose text forms are easy to get wrong."""
        shape = RecordShape({
            "unit": UNIT,
            "char": CHAR,
            "empty": STRING,
            "spaces": STRING,
            "raw": BYTES,
            "small": I8,
            "big": U64,
            "f32": F32,
            "nan": F64,
            "neg_zero": F64,
            "huge": F64,
            "tiny": F64,
        })
        value = RecordValue({
            "unit": UnitValue(),
            "char": CharValue("€"),
            "empty": StringValue(""),
            "spaces": StringValue("  two lines\n\n"),
            "raw": BytesValue(bytes(range(256))),
            "small": IntegerValue(-128, 8),
            "big": IntegerValue(2 ** 64 - 1, 64, signed=False),
            "f32": FloatValue(0.1, 32),
            "nan": FloatValue(math.nan),
            "neg_zero": FloatValue(-0.0),
            "huge": FloatValue(1.7976931348623157e308),
            "tiny": FloatValue(2.2250738585072014e-308),
        })

        self.codec.serialize(value, temp_dir / "edge", shape=shape)
        result = self.codec.deserialize(temp_dir / "edge", shape)

        assert result == value
        assert math.copysign(1.0, result.get("neg_zero").value) == -1.0

    def test_deep_nesting(self, temp_dir):
        """Test nested lists, maps, tuples and options."""
        shape = MapShape(ListShape(TupleShape((STRING, OptionShape(ListShape(I8))))))
        value = MapValue({
            "a": SequenceValue((
                SequenceValue((StringValue("x"), OptionValue(SequenceValue((IntegerValue(1, 8),))))),
                SequenceValue((StringValue("y"), OptionValue(None))),
            )),
            "b": SequenceValue(()),
        })

        self.codec.serialize(value, temp_dir / "deep")

        assert self.codec.deserialize(temp_dir / "deep", shape) == value

    def test_round_trip_unsorted_map_keys(self, temp_dir):
        """Test that maps built in any key order survive a round trip."""
        value = MapValue({"b": IntegerValue(1, 8), "a": IntegerValue(2, 8), "c": IntegerValue(3, 8)})

        self.codec.serialize(value, temp_dir / "m")
        result = self.codec.deserialize(temp_dir / "m", MapShape(I8))

        assert result == value
        assert [key for key, _ in result.entries] == ["a", "b", "c"]

    def test_move_variant_layout(self, temp_dir, command_shape):
        """Test the Move(3, 4) layout end to end."""
        value = VariantValue("Move", VariantKind.TUPLE,
                             SequenceValue((IntegerValue(3, 32), IntegerValue(4, 32))))

        self.codec.serialize(value, temp_dir / "cmd")

        assert sorted(os.listdir(temp_dir / "cmd")) == ["0", "1", "variant"]
        assert (temp_dir / "cmd" / "variant").read_bytes() == b"Move"
        assert self.codec.deserialize(temp_dir / "cmd", command_shape) == value

        with pytest.raises(UnknownVariantError):
            self.codec.deserialize(temp_dir / "cmd", EnumShape((unit_variant("Stop"),)))

    def test_hand_edit_is_visible(self, temp_dir, player_value, player_shape):
        """Test that editing one file changes only that field."""
        self.codec.serialize(player_value, temp_dir / "p")
        (temp_dir / "p" / "name").write_text("Bob", encoding="utf-8")

        result = self.codec.deserialize(temp_dir / "p", player_shape)

        assert result.get("name") == StringValue("Bob")
        assert result.get("inventory") == player_value.get("inventory")

    def test_hand_edit_with_newline_needs_lenient_mode(self, temp_dir, player_value, player_shape):
        """Test the strict default against an echo-style edit."""
        self.codec.serialize(player_value, temp_dir / "p")
        (temp_dir / "p" / "alive").write_text("false\n", encoding="utf-8")

        with pytest.raises(MalformedScalarError):
            self.codec.deserialize(temp_dir / "p", player_shape)

        with FsCodec(strict_scalars=False) as lenient:
            assert lenient.load(temp_dir / "p", player_shape)["alive"] is False

    def test_unknown_variant_on_disk(self, temp_dir, player_value, player_shape):
        """Test that a tag edited to an undeclared name is reported."""
        self.codec.serialize(player_value, temp_dir / "p")
        (temp_dir / "p" / "last_command" / "variant").write_text("Fly", encoding="utf-8")

        with pytest.raises(UnknownVariantError) as exc_info:
            self.codec.deserialize(temp_dir / "p", player_shape)

        assert exc_info.value.path == "last_command/variant"

    def test_serialize_validates_against_shape(self, temp_dir, point_shape):
        """Test that a value not matching the shape is rejected before writing."""
        value = RecordValue({"x": IntegerValue(1, 32), "y": StringValue("2")})

        with pytest.raises(ShapeMismatchError) as exc_info:
            self.codec.serialize(value, temp_dir / "p", shape=point_shape)

        assert exc_info.value.path == "y"
        assert not (temp_dir / "p").exists()

    def test_invalid_key_is_rejected_before_writing(self, temp_dir):
        """Test that unsafe keys never reach the filesystem."""
        with pytest.raises(InvalidNameError):
            self.codec.dump({"../evil": 1}, MapShape(I8), temp_dir / "m")

        assert os.listdir(temp_dir) == []

    def test_dump_and_load(self, temp_dir, player_data, player_shape):
        """Test the plain data helpers."""
        result = self.codec.dump(player_data, player_shape, temp_dir / "p")

        assert result.success
        assert self.codec.load(temp_dir / "p", player_shape) == player_data

    def test_dump_rejects_data_not_matching_shape(self, temp_dir, player_shape):
        """Test that conversion failures are shape mismatches."""
        with pytest.raises(ShapeMismatchError):
            self.codec.dump({"name": "Alice"}, player_shape, temp_dir / "p")

    def test_idempotence(self, temp_dir, player_value):
        """Test that serializing twice yields identical trees."""
        self.codec.serialize(player_value, temp_dir / "a")
        self.codec.serialize(player_value, temp_dir / "b")

        def snapshot(root):
            return {
                os.path.relpath(os.path.join(d, f), root): Path(d, f).read_bytes()
                for d, _, files in os.walk(root) for f in files
            }

        assert snapshot(temp_dir / "a") == snapshot(temp_dir / "b")

    def test_overwrite_policies(self, temp_dir, player_value, player_shape):
        """Test the three destination policies through the facade."""
        target = temp_dir / "p"
        self.codec.serialize(player_value, target)

        with pytest.raises(AlreadyExistsError):
            self.codec.serialize(player_value, target)

        changed = RecordValue(tuple(
            (name, StringValue("Carol") if name == "name" else item)
            for name, item in player_value.fields
        ))
        with FsCodec(overwrite="replace", fsync=False) as replacing:
            replacing.serialize(changed, target)
        assert self.codec.deserialize(target, player_shape) == changed

        empty = temp_dir / "empty"
        empty.mkdir()
        with FsCodec(overwrite=OverwritePolicy.ALLOW_EMPTY, fsync=False) as allowing:
            allowing.serialize(player_value, empty)
        assert self.codec.deserialize(empty, player_shape) == player_value

    def test_sequential_and_parallel_agree(self, temp_dir, player_shape, player_value):
        """Test that disabling worker threads does not change results."""
        with FsCodec(enable_parallel_processing=False, fsync=False) as sequential:
            sequential.serialize(player_value, temp_dir / "seq")
            assert sequential.deserialize(temp_dir / "seq", player_shape) == player_value

        with FsCodec(max_workers=2, fsync=False) as parallel:
            assert parallel.deserialize(temp_dir / "seq", player_shape) == player_value

    def test_profiling(self, temp_dir, player_value, player_shape):
        """Test that profiled operations are recorded."""
        with FsCodec(enable_profiling=True, fsync=False) as codec:
            codec.serialize(player_value, temp_dir / "p")
            codec.deserialize(temp_dir / "p", player_shape)
            summary = codec.get_performance_summary()

        assert summary["total_operations"] == 2
        assert [op["name"] for op in summary["operations"]] == ["serialize", "deserialize"]
        assert summary["operations"][0]["entries"] == summary["operations"][1]["entries"]

    def test_profiling_disabled(self):
        """Test the summary when profiling is off."""
        assert self.codec.get_performance_summary() == {"total_operations": 0}

    @pytest.mark.asyncio
    async def test_async_round_trip(self, temp_dir, player_value, player_shape):
        """Test the async wrappers."""
        result = await self.codec.serialize_async(player_value, temp_dir / "p")

        assert result.success
        assert await self.codec.deserialize_async(temp_dir / "p", player_shape) == player_value

    @pytest.mark.asyncio
    async def test_async_errors_propagate(self, temp_dir, player_shape):
        """Test that codec errors surface from the async wrappers."""
        with pytest.raises(ShapeMismatchError):
            await self.codec.deserialize_async(temp_dir / "missing", player_shape)


class TestModuleFunctions:
    """Tests for the module-level helpers."""

    def test_serialize_and_deserialize(self, temp_dir, point_shape):
        """Test one-off serialization with keyword options."""
        value = RecordValue({"x": IntegerValue(5, 32), "y": IntegerValue(6, 32)})

        fs_codec.serialize(value, temp_dir / "p", fsync=False)

        assert fs_codec.deserialize(temp_dir / "p", point_shape) == value

    def test_options_are_forwarded(self, temp_dir, point_shape):
        """Test that deserialize options reach the engine."""
        root = temp_dir / "p"
        root.mkdir()
        for name, content in [("x", b"1"), ("y", b"2"), ("z", b"3")]:
            (root / name).write_bytes(content)

        with pytest.raises(ShapeMismatchError):
            fs_codec.deserialize(root, point_shape)

        value = fs_codec.deserialize(root, point_shape, allow_unknown_entries=True)
        assert value.get("x") == IntegerValue(1, 32)

    def test_shape_from_json_round_trip(self, temp_dir):
        """Test a shape described in JSON form."""
        shape = shape_from_dict({"list": {"option": "string"}})
        data = ["a", None, "c"]

        with FsCodec(fsync=False) as codec:
            codec.dump(data, shape, temp_dir / "l")
            assert codec.load(temp_dir / "l", shape) == data
