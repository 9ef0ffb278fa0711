"""Tests for the filesystem deserializer."""

import pytest

from fs_codec.engines import FilesystemDeserializer
from fs_codec.models import (
    BoolValue,
    CharValue,
    EnumShape,
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
    VariantKind,
    VariantValue,
)
from fs_codec.models.shape import BOOL, CHAR, I32, STRING, newtype_variant, unit_variant
from fs_codec.types import (
    ErrorType,
    MalformedScalarError,
    ShapeMismatchError,
    UnknownVariantError,
)


def make_tree(root, entries):
    """Create files (bytes) and directories (None) below root."""
    root.mkdir(parents=True, exist_ok=True)
    for name, content in entries.items():
        path = root / name
        if content is None:
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
    return root


class TestFilesystemDeserializer:
    """Tests for FilesystemDeserializer class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.deserializer = FilesystemDeserializer()

    def test_scalar_root(self, temp_dir):
        """Test reading a single file."""
        (temp_dir / "flag").write_bytes(b"true")

        assert self.deserializer.deserialize(temp_dir / "flag", BOOL) == BoolValue(True)

    def test_record(self, temp_dir, point_shape):
        """Test reading a record directory."""
        root = make_tree(temp_dir / "p", {"x": b"1", "y": b"-2"})

        value = self.deserializer.deserialize(root, point_shape)

        assert value == RecordValue({"x": IntegerValue(1, 32), "y": IntegerValue(-2, 32)})

    def test_missing_field(self, temp_dir, point_shape):
        """Test that a missing required entry is a shape mismatch."""
        root = make_tree(temp_dir / "p", {"x": b"1"})

        with pytest.raises(ShapeMismatchError) as exc_info:
            self.deserializer.deserialize(root, point_shape)

        assert exc_info.value.path == "y"

    def test_unknown_entry_is_rejected(self, temp_dir, point_shape):
        """Test that undeclared record entries are errors by default."""
        root = make_tree(temp_dir / "p", {"x": b"1", "y": b"2", "z": b"3"})

        with pytest.raises(ShapeMismatchError) as exc_info:
            self.deserializer.deserialize(root, point_shape)

        assert "'z'" in str(exc_info.value)

    def test_unknown_entry_allowed(self, temp_dir, point_shape):
        """Test that undeclared entries are ignored when allowed."""
        root = make_tree(temp_dir / "p", {"x": b"1", "y": b"2", "z": b"3"})
        deserializer = FilesystemDeserializer(allow_unknown_entries=True)

        value = deserializer.deserialize(root, point_shape)

        assert [name for name, _ in value.fields] == ["x", "y"]
        assert value.get("y") == IntegerValue(2, 32)

    def test_name_stability(self, temp_dir):
        """Test that tuple entries must be exactly 0..n-1."""
        root = make_tree(temp_dir / "t", {"0": b"a", "1": b"b", "3": b"c"})
        shape = TupleShape((STRING, STRING, STRING))

        with pytest.raises(ShapeMismatchError):
            self.deserializer.deserialize(root, shape)

    def test_tuple_with_optional_gap(self, temp_dir):
        """Test that an absent optional tuple element reads as absent."""
        root = make_tree(temp_dir / "t", {"0": b"a", "2": b"c"})
        shape = TupleShape((STRING, OptionShape(STRING), STRING))

        value = self.deserializer.deserialize(root, shape)

        assert value.items[1] == OptionValue(None)

    def test_list(self, temp_dir):
        """Test reading lists in index order."""
        entries = {str(i): str(i).encode() for i in range(11)}
        root = make_tree(temp_dir / "l", entries)

        value = self.deserializer.deserialize(root, ListShape(I32))

        assert [item.value for item in value.items] == list(range(11))

    def test_list_gaps(self, temp_dir):
        """Test that gaps are only allowed for optional elements."""
        root = make_tree(temp_dir / "l", {"0": b"1", "2": b"3"})

        with pytest.raises(ShapeMismatchError):
            self.deserializer.deserialize(root, ListShape(I32))

        value = self.deserializer.deserialize(root, ListShape(OptionShape(I32)))
        assert value.items[1] == OptionValue(None)
        assert len(value.items) == 3

    def test_list_rejects_non_index_entries(self, temp_dir):
        """Test that list directories hold only canonical indices."""
        root = make_tree(temp_dir / "l", {"0": b"1", "01": b"2"})

        with pytest.raises(ShapeMismatchError):
            self.deserializer.deserialize(root, ListShape(I32))

    def test_map_keys_sorted(self, temp_dir):
        """Test that map entries are read in sorted key order."""
        root = make_tree(temp_dir / "m", {"b": b"2", "a": b"1"})

        value = self.deserializer.deserialize(root, MapShape(I32))

        assert value == MapValue({"a": IntegerValue(1, 32), "b": IntegerValue(2, 32)})

    def test_malformed_scalar(self, temp_dir):
        """Test that non-canonical content is rejected with its path."""
        root = make_tree(temp_dir / "r", {"flag": b"True"})

        with pytest.raises(MalformedScalarError) as exc_info:
            self.deserializer.deserialize(root, RecordShape({"flag": BOOL}))

        assert exc_info.value.error_type == ErrorType.MALFORMED_SCALAR
        assert exc_info.value.path == "flag"

    def test_lenient_scalars(self, temp_dir):
        """Test that lenient mode accepts trailing newlines."""
        root = make_tree(temp_dir / "r", {"flag": b"true\n", "n": b" 5\n"})
        deserializer = FilesystemDeserializer(strict_scalars=False)

        value = deserializer.deserialize(root, RecordShape({"flag": BOOL, "n": I32}))

        assert value.get("flag") == BoolValue(True)
        assert value.get("n") == IntegerValue(5, 32)

    def test_file_where_directory_expected(self, temp_dir, point_shape):
        """Test entry type mismatches."""
        (temp_dir / "p").write_bytes(b"1")

        with pytest.raises(ShapeMismatchError):
            self.deserializer.deserialize(temp_dir / "p", point_shape)

    def test_directory_where_file_expected(self, temp_dir):
        """Test that a directory cannot be read as a scalar."""
        (temp_dir / "c").mkdir()

        with pytest.raises(ShapeMismatchError):
            self.deserializer.deserialize(temp_dir / "c", CHAR)

    def test_missing_root(self, temp_dir):
        """Test missing roots for required and optional shapes."""
        with pytest.raises(ShapeMismatchError):
            self.deserializer.deserialize(temp_dir / "none", STRING)

        assert self.deserializer.deserialize(temp_dir / "none", OptionShape(STRING)) == OptionValue(None)

    def test_variant_tagging(self, temp_dir, command_shape):
        """Test reading a tuple variant."""
        root = make_tree(temp_dir / "cmd", {"variant": b"Move", "0": b"3", "1": b"4"})

        value = self.deserializer.deserialize(root, command_shape)

        assert value == VariantValue("Move", VariantKind.TUPLE,
                                     SequenceValue((IntegerValue(3, 32), IntegerValue(4, 32))))

    def test_unit_and_newtype_variants(self, temp_dir, command_shape):
        """Test reading unit and newtype variants."""
        (temp_dir / "stop").write_bytes(b"Stop")
        root = make_tree(temp_dir / "say", {"variant": b"Say", "value": b"hello"})

        assert self.deserializer.deserialize(temp_dir / "stop", command_shape) == VariantValue("Stop")
        assert self.deserializer.deserialize(root, command_shape) == VariantValue(
            "Say", VariantKind.NEWTYPE, StringValue("hello")
        )

    def test_record_variant(self, temp_dir, command_shape):
        """Test reading a record variant, ignoring the marker file."""
        root = make_tree(temp_dir / "jump", {"variant": b"Jump", "height": b"9"})

        value = self.deserializer.deserialize(root, command_shape)

        assert value.variant_kind == VariantKind.RECORD
        assert value.payload.get("height").value == 9

    def test_unknown_variant(self, temp_dir, command_shape):
        """Test that undeclared tags raise UnknownVariantError."""
        (temp_dir / "cmd").write_bytes(b"Fly")

        with pytest.raises(UnknownVariantError) as exc_info:
            self.deserializer.deserialize(temp_dir / "cmd", command_shape)

        assert exc_info.value.context["legal_tags"] == ["Stop", "Move", "Jump", "Say"]

    def test_variant_tag_not_trimmed_in_strict_mode(self, temp_dir, command_shape):
        """Test that a tag with a trailing newline is unknown unless lenient."""
        (temp_dir / "cmd").write_bytes(b"Stop\n")

        with pytest.raises(UnknownVariantError):
            self.deserializer.deserialize(temp_dir / "cmd", command_shape)

        lenient = FilesystemDeserializer(strict_scalars=False)
        assert lenient.deserialize(temp_dir / "cmd", command_shape) == VariantValue("Stop")

    def test_variant_kind_mismatch(self, temp_dir, command_shape):
        """Test unit tags in directories and payload tags in files."""
        (temp_dir / "move").write_bytes(b"Move")
        root = make_tree(temp_dir / "stop", {"variant": b"Stop"})

        with pytest.raises(ShapeMismatchError):
            self.deserializer.deserialize(temp_dir / "move", command_shape)
        with pytest.raises(ShapeMismatchError):
            self.deserializer.deserialize(root, command_shape)

    def test_variant_directory_without_marker(self, temp_dir, command_shape):
        """Test that variant directories need their marker file."""
        root = make_tree(temp_dir / "cmd", {"0": b"3", "1": b"4"})

        with pytest.raises(ShapeMismatchError) as exc_info:
            self.deserializer.deserialize(root, command_shape)

        assert "variant marker" in str(exc_info.value)

    def test_newtype_extra_entries(self, temp_dir):
        """Test that newtype directories hold only the marker and the value."""
        shape = EnumShape((newtype_variant("Wrap", CHAR), unit_variant("Empty")))
        root = make_tree(temp_dir / "w", {"variant": b"Wrap", "value": b"c", "extra": b""})

        with pytest.raises(ShapeMismatchError):
            self.deserializer.deserialize(root, shape)

        (root / "extra").unlink()
        assert self.deserializer.deserialize(root, shape).payload == CharValue("c")

    def test_parallel_reads_report_first_error(self, temp_dir):
        """Test deterministic error selection with worker threads."""
        root = make_tree(temp_dir / "r", {"a": b"1", "b": b"x", "c": b"2", "d": b"y"})
        shape = RecordShape({name: I32 for name in "abcd"})
        deserializer = FilesystemDeserializer(max_workers=4)

        with pytest.raises(MalformedScalarError) as exc_info:
            deserializer.deserialize(root, shape)

        assert exc_info.value.path == "b"
