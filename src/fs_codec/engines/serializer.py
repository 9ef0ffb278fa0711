"""Serializer writing values as filesystem trees."""

import logging
import os
import shutil
import tempfile
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple, Union

from ..error_handler import ErrorHandler
from ..io.file_writer import FileWriter
from ..models.value import (
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
    ValueVisitor,
    VariantKind,
    VariantValue,
)
from ..naming import (
    field_entry_name,
    join_relative,
    newtype_value_name,
    tuple_entry_name,
    variant_marker_name,
)
from ..types import OverwritePolicy, SerializeResult, SerializerInterface
from ..utils.scalars import format_scalar


@dataclass
class WriteStats:
    """Counts of entries produced while writing a subtree."""
    files: int = 0
    directories: int = 0
    bytes_written: int = 0

    def __add__(self, other: "WriteStats") -> "WriteStats":
        return WriteStats(
            self.files + other.files,
            self.directories + other.directories,
            self.bytes_written + other.bytes_written,
        )


class _Target(NamedTuple):
    path: Path
    relative: str
    exists: bool = False
    executor: Optional[Executor] = None

    def child(self, name: str) -> "_Target":
        return _Target(self.path / name, join_relative(self.relative, name))


class FilesystemSerializer(SerializerInterface, ValueVisitor):
    """
    Writes a Value depth-first as a tree of directories and files.

    Composite values become directories, scalars become files written
    atomically through a FileWriter. The serializer keeps no state between
    calls, so one instance can serve any number of destinations.
    """

    def __init__(self, file_writer: Optional[FileWriter] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 logger: Optional[logging.Logger] = None,
                 overwrite: OverwritePolicy = OverwritePolicy.FAIL,
                 fsync: bool = True,
                 max_workers: Optional[int] = None):
        """
        Initialize the serializer.

        Args:
            file_writer: Optional FileWriter instance
            error_handler: Optional ErrorHandler instance
            logger: Optional logger instance
            overwrite: Policy for an existing destination
            fsync: Whether every file is synced to disk before being renamed into place
            max_workers: Number of threads writing the root's children; None or 1 writes sequentially
        """
        self.logger = logger or logging.getLogger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)
        self.file_writer = file_writer or FileWriter(fsync=fsync, error_handler=self.error_handler,
                                                     logger=self.logger)
        self.overwrite = OverwritePolicy(overwrite)
        self.max_workers = max_workers

    def serialize(self, value: Value, destination: Union[str, Path]) -> SerializeResult:
        """
        Serialize a value into a new tree rooted at destination.

        Args:
            value: Value to write
            destination: Path of the root entry

        Returns:
            SerializeResult with entry counts

        Raises:
            InvalidNameError: If a key or field cannot be an entry name
            AlreadyExistsError: If the destination collides with existing entries
            IOFailureError: If a filesystem call fails
        """
        destination = Path(destination)
        self.logger.info(f"Serializing {value.kind.value} value to {destination} "
                         f"(overwrite={self.overwrite.value})")

        validation = self.error_handler.validate_destination(
            destination, self.overwrite, value.is_directory()
        )
        self.error_handler.raise_for_validation(validation)

        if isinstance(value, OptionValue) and not value.is_present:
            if self.overwrite == OverwritePolicy.REPLACE and os.path.lexists(destination):
                self.logger.info(f"Root value is absent, removing existing {destination}")
                stats = self._serialize_replacing(value, destination)
            else:
                self.logger.info("Root value is absent, nothing written")
                stats = WriteStats()
        elif self.overwrite == OverwritePolicy.REPLACE:
            stats = self._serialize_replacing(value, destination)
        else:
            self.file_writer.ensure_parent(destination, ".")
            exists = self.overwrite == OverwritePolicy.ALLOW_EMPTY and destination.is_dir()
            stats = self._write_root(value, _Target(destination, ".", exists))

        self.logger.info(f"Wrote {stats.files} files and {stats.directories} directories "
                         f"({stats.bytes_written} bytes) to {destination}")
        return SerializeResult(
            success=True,
            output_path=str(destination.absolute()),
            file_count=stats.files,
            directory_count=stats.directories,
            total_size=stats.bytes_written,
        )

    def _write_root(self, value: Value, target: _Target) -> WriteStats:
        if self.max_workers and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                return value.accept(self, target._replace(executor=executor))
        return value.accept(self, target)

    def _serialize_replacing(self, value: Value, destination: Path) -> WriteStats:
        """Build the tree in a staging directory, then swap it over the destination.

        An absent value builds nothing, so the old destination is only moved away.
        """
        absent = isinstance(value, OptionValue) and not value.is_present
        self.file_writer.ensure_parent(destination, ".")
        try:
            staging = Path(tempfile.mkdtemp(prefix=f".{destination.name}.", suffix=".staging",
                                            dir=destination.parent))
        except OSError as e:
            raise self.error_handler.wrap_os_error(e, ".", "create staging directory")

        built = staging / "new"
        previous = staging / "old"
        try:
            stats = WriteStats() if absent else self._write_root(value, _Target(built, "."))
            had_previous = os.path.lexists(destination)
            if had_previous:
                os.replace(destination, previous)
            if not absent:
                try:
                    os.replace(built, destination)
                except OSError:
                    if had_previous:
                        os.replace(previous, destination)
                    raise
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise self.error_handler.wrap_os_error(e, ".", "replace destination")
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        try:
            shutil.rmtree(staging)
        except OSError as e:
            self.logger.warning(f"Failed to remove staging directory {staging}: {e}")
        return stats

    # Scalars

    def _write_scalar(self, value: Value, target: _Target) -> WriteStats:
        written = self.file_writer.write_file(target.path, format_scalar(value), target.relative)
        return WriteStats(files=1, bytes_written=written)

    def visit_unit(self, value: UnitValue, target: _Target) -> WriteStats:
        return self._write_scalar(value, target)

    def visit_bool(self, value: BoolValue, target: _Target) -> WriteStats:
        return self._write_scalar(value, target)

    def visit_char(self, value: CharValue, target: _Target) -> WriteStats:
        return self._write_scalar(value, target)

    def visit_integer(self, value: IntegerValue, target: _Target) -> WriteStats:
        return self._write_scalar(value, target)

    def visit_float(self, value: FloatValue, target: _Target) -> WriteStats:
        return self._write_scalar(value, target)

    def visit_string(self, value: StringValue, target: _Target) -> WriteStats:
        return self._write_scalar(value, target)

    def visit_bytes(self, value: BytesValue, target: _Target) -> WriteStats:
        return self._write_scalar(value, target)

    # Composites

    def visit_option(self, value: OptionValue, target: _Target) -> WriteStats:
        if not value.is_present:
            return WriteStats()
        return value.value.accept(self, target)

    def visit_sequence(self, value: SequenceValue, target: _Target) -> WriteStats:
        stats = self._make_directory(target)
        children = [
            (item, target.child(tuple_entry_name(index)))
            for index, item in enumerate(value.items)
        ]
        return stats + self._write_children(children, target)

    def visit_map(self, value: MapValue, target: _Target) -> WriteStats:
        stats = self._make_directory(target)
        children = [(item, target.child(field_entry_name(key))) for key, item in value.entries]
        return stats + self._write_children(children, target)

    def visit_record(self, value: RecordValue, target: _Target) -> WriteStats:
        stats = self._make_directory(target)
        children = [(item, target.child(field_entry_name(name))) for name, item in value.fields]
        return stats + self._write_children(children, target)

    def visit_variant(self, value: VariantValue, target: _Target) -> WriteStats:
        tag = value.tag.encode("utf-8")
        if value.variant_kind == VariantKind.UNIT:
            written = self.file_writer.write_file(target.path, tag, target.relative)
            return WriteStats(files=1, bytes_written=written)

        stats = self._make_directory(target)
        marker = target.child(variant_marker_name())
        written = self.file_writer.write_file(marker.path, tag, marker.relative)
        stats = stats + WriteStats(files=1, bytes_written=written)

        if value.variant_kind == VariantKind.TUPLE:
            children = [
                (item, target.child(tuple_entry_name(index)))
                for index, item in enumerate(value.payload.items)
            ]
        elif value.variant_kind == VariantKind.RECORD:
            children = [
                (item, target.child(field_entry_name(name)))
                for name, item in value.payload.fields
            ]
        else:
            children = [(value.payload, target.child(newtype_value_name()))]
        return stats + self._write_children(children, target)

    def _make_directory(self, target: _Target) -> WriteStats:
        if target.exists:
            return WriteStats()
        self.file_writer.create_directory(target.path, target.relative)
        return WriteStats(directories=1)

    def _write_children(self, children: List[Tuple[Value, _Target]], parent: _Target) -> WriteStats:
        """
        Write the entries of one directory.

        With an executor (root directory only) the children are written
        concurrently; every worker is awaited and the error of the first
        failing child in declaration order is raised.
        """
        if parent.executor is None or len(children) < 2:
            stats = WriteStats()
            for child, target in children:
                stats = stats + child.accept(self, target)
            return stats

        futures = [parent.executor.submit(child.accept, self, target) for child, target in children]
        stats = WriteStats()
        first_error = None
        for future in futures:
            try:
                stats = stats + future.result()
            except Exception as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
        return stats
