"""Deserializer reading filesystem trees back into values."""

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from pathlib import Path
from typing import Collection, List, NamedTuple, Optional, Tuple, Union

from ..error_handler import ErrorHandler
from ..io.file_reader import FileReader
from ..models.shape import (
    EnumShape,
    ListShape,
    MapShape,
    OptionShape,
    RecordShape,
    ScalarShape,
    Shape,
    TupleShape,
)
from ..models.value import (
    MapValue,
    OptionValue,
    RecordValue,
    SequenceValue,
    Value,
    VariantKind,
    VariantValue,
)
from ..naming import (
    field_entry_name,
    join_relative,
    newtype_value_name,
    parse_tuple_entry_name,
    tuple_entry_name,
    variant_marker_name,
)
from ..types import (
    DeserializerInterface,
    EntryKind,
    MalformedScalarError,
    ShapeMismatchError,
    UnknownVariantError,
)
from ..utils.scalars import parse_scalar


class _Source(NamedTuple):
    path: Path
    relative: str
    executor: Optional[Executor] = None

    def child(self, name: str) -> "_Source":
        return _Source(self.path / name, join_relative(self.relative, name))


class FilesystemDeserializer(DeserializerInterface):
    """
    Reads a tree back into a Value, guided by a shape descriptor.

    The filesystem alone cannot tell a 3-tuple from a record with three
    fields, so every directory level is interpreted through the shape the
    caller expects there.
    """

    def __init__(self, file_reader: Optional[FileReader] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 logger: Optional[logging.Logger] = None,
                 strict_scalars: bool = True,
                 allow_unknown_entries: bool = False,
                 max_workers: Optional[int] = None):
        """
        Initialize the deserializer.

        Args:
            file_reader: Optional FileReader instance
            error_handler: Optional ErrorHandler instance
            logger: Optional logger instance
            strict_scalars: When False, whitespace around bool, number and tag content is ignored
            allow_unknown_entries: When True, record directories may hold undeclared entries
            max_workers: Number of threads reading the root's children; None or 1 reads sequentially
        """
        self.logger = logger or logging.getLogger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)
        self.file_reader = file_reader or FileReader(self.error_handler, self.logger)
        self.strict_scalars = strict_scalars
        self.allow_unknown_entries = allow_unknown_entries
        self.max_workers = max_workers

    def deserialize(self, source: Union[str, Path], shape: Shape) -> Value:
        """
        Read the tree rooted at source.

        Args:
            source: Path of the root entry
            shape: Expected shape of the value

        Returns:
            The reconstructed Value

        Raises:
            ShapeMismatchError: If the tree disagrees structurally with the shape
            MalformedScalarError: If a file cannot be parsed as its scalar kind
            UnknownVariantError: If a variant tag is not declared by the shape
            IOFailureError: If a filesystem call fails
        """
        source = Path(source)
        self.logger.info(f"Deserializing {type(shape).__name__} from {source}")

        if self.max_workers and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                value = self._read(shape, _Source(source, ".", executor))
        else:
            value = self._read(shape, _Source(source, "."))

        self.logger.info(f"Deserialized {value.kind.value} value from {source}")
        return value

    def _read(self, shape: Shape, source: _Source) -> Value:
        kind = self.file_reader.entry_kind(source.path, source.relative)

        if isinstance(shape, OptionShape):
            if kind == EntryKind.MISSING:
                return OptionValue(None)
            return OptionValue(self._read(shape.inner, source))

        if kind == EntryKind.MISSING:
            raise ShapeMismatchError("Expected entry is missing", source.relative)

        if isinstance(shape, ScalarShape):
            self._expect(kind, EntryKind.FILE, source, f"{shape.kind.value} scalar")
            return self._read_scalar(shape, source)
        if isinstance(shape, TupleShape):
            self._expect(kind, EntryKind.DIRECTORY, source, f"tuple of arity {shape.arity}")
            return self._read_tuple(shape, source)
        if isinstance(shape, ListShape):
            self._expect(kind, EntryKind.DIRECTORY, source, "list")
            return self._read_list(shape, source)
        if isinstance(shape, RecordShape):
            self._expect(kind, EntryKind.DIRECTORY, source, "record")
            return self._read_record(shape, source)
        if isinstance(shape, MapShape):
            self._expect(kind, EntryKind.DIRECTORY, source, "map")
            return self._read_map(shape, source)
        if isinstance(shape, EnumShape):
            return self._read_enum(shape, source, kind)
        raise TypeError(f"Unsupported shape: {type(shape).__name__}")

    def _expect(self, kind: EntryKind, expected: EntryKind, source: _Source, what: str) -> None:
        if kind != expected:
            raise ShapeMismatchError(
                f"Expected a {expected.value} for {what}, found a {kind.value}",
                source.relative,
            )

    def _read_scalar(self, shape: ScalarShape, source: _Source) -> Value:
        content = self.file_reader.read_bytes(source.path, source.relative)
        try:
            return parse_scalar(shape.kind, content, strict=self.strict_scalars)
        except ValueError as e:
            raise MalformedScalarError(str(e), source.relative)

    def _read_tuple(self, shape: TupleShape, source: _Source,
                    exclude: Collection[str] = ()) -> SequenceValue:
        entries = set(self.file_reader.list_entries(source.path, source.relative)) - set(exclude)
        expected = {tuple_entry_name(index) for index in range(shape.arity)}
        unexpected = sorted(entries - expected)
        if unexpected:
            raise ShapeMismatchError(
                f"Unexpected entries {unexpected} for tuple of arity {shape.arity}",
                source.relative,
            )
        children = [
            (element, source.child(tuple_entry_name(index)))
            for index, element in enumerate(shape.elements)
        ]
        return SequenceValue(tuple(self._read_children(children, source)))

    def _read_list(self, shape: ListShape, source: _Source) -> SequenceValue:
        indices = set()
        for name in self.file_reader.list_entries(source.path, source.relative):
            index = parse_tuple_entry_name(name)
            if index is None:
                raise ShapeMismatchError(f"Entry {name!r} is not a list index", source.relative)
            indices.add(index)

        length = max(indices) + 1 if indices else 0
        if not isinstance(shape.element, OptionShape):
            missing = sorted(set(range(length)) - indices)
            if missing:
                raise ShapeMismatchError(f"List is missing indices {missing}", source.relative)

        children = [(shape.element, source.child(tuple_entry_name(index))) for index in range(length)]
        return SequenceValue(tuple(self._read_children(children, source)))

    def _read_record(self, shape: RecordShape, source: _Source,
                     exclude: Collection[str] = ()) -> RecordValue:
        entries = set(self.file_reader.list_entries(source.path, source.relative)) - set(exclude)
        unexpected = sorted(entries - set(shape.field_names))
        if unexpected:
            if not self.allow_unknown_entries:
                raise ShapeMismatchError(f"Unexpected entries {unexpected} in record", source.relative)
            self.logger.warning(f"Ignoring unknown entries {unexpected} at {source.relative}")

        children = [(field_shape, source.child(field_entry_name(name))) for name, field_shape in shape.fields]
        values = self._read_children(children, source)
        return RecordValue(tuple(zip(shape.field_names, values)))

    def _read_map(self, shape: MapShape, source: _Source) -> MapValue:
        keys = self.file_reader.list_entries(source.path, source.relative)
        children = [(shape.value, source.child(field_entry_name(key))) for key in keys]
        values = self._read_children(children, source)
        return MapValue(tuple(zip(keys, values)))

    def _read_tag(self, source: _Source) -> str:
        content = self.file_reader.read_bytes(source.path, source.relative)
        try:
            tag = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedScalarError(f"Variant tag is not valid UTF-8: {e.reason}", source.relative)
        return tag if self.strict_scalars else tag.strip()

    def _lookup_variant(self, shape: EnumShape, tag: str, source: _Source):
        variant = shape.variant(tag)
        if variant is None:
            raise UnknownVariantError(
                f"Unknown variant {tag!r}, expected one of {list(shape.tags)}",
                source.relative,
                context={"tag": tag, "legal_tags": list(shape.tags)},
            )
        return variant

    def _read_enum(self, shape: EnumShape, source: _Source, kind: EntryKind) -> VariantValue:
        if kind == EntryKind.FILE:
            tag = self._read_tag(source)
            variant = self._lookup_variant(shape, tag, source)
            if variant.kind != VariantKind.UNIT:
                raise ShapeMismatchError(
                    f"Variant {tag!r} is a {variant.kind.value} variant and must be a directory",
                    source.relative,
                )
            return VariantValue(tag)

        marker = source.child(variant_marker_name())
        if self.file_reader.entry_kind(marker.path, marker.relative) != EntryKind.FILE:
            raise ShapeMismatchError("Variant directory has no variant marker file", source.relative)
        tag = self._read_tag(marker)
        variant = self._lookup_variant(shape, tag, marker)

        if variant.kind == VariantKind.UNIT:
            raise ShapeMismatchError(
                f"Variant {tag!r} is a unit variant and must be a file", source.relative
            )
        if variant.kind == VariantKind.TUPLE:
            payload = self._read_tuple(variant.payload, source, exclude={variant_marker_name()})
        elif variant.kind == VariantKind.RECORD:
            payload = self._read_record(variant.payload, source, exclude={variant_marker_name()})
        else:
            entries = set(self.file_reader.list_entries(source.path, source.relative))
            unexpected = sorted(entries - {variant_marker_name(), newtype_value_name()})
            if unexpected:
                raise ShapeMismatchError(
                    f"Unexpected entries {unexpected} in newtype variant {tag!r}", source.relative
                )
            payload = self._read(variant.payload, source.child(newtype_value_name()))
        return VariantValue(tag, variant.kind, payload)

    def _read_children(self, children: List[Tuple[Shape, _Source]], parent: _Source) -> List[Value]:
        """
        Read the entries of one directory in declaration order.

        With an executor (root directory only) the children are read
        concurrently and the error of the first failing child is raised.
        """
        if parent.executor is None or len(children) < 2:
            return [self._read(shape, child) for shape, child in children]

        futures = [parent.executor.submit(self._read, shape, child) for shape, child in children]
        values = []
        first_error = None
        for future in futures:
            try:
                values.append(future.result())
            except Exception as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
        return values
