"""Main filesystem codec facade."""

import asyncio
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Optional, Union

from .engines import FilesystemDeserializer, FilesystemSerializer
from .error_handler import ErrorHandler
from .models.convert import to_native, to_value
from .models.shape import Shape
from .models.value import Value
from .profiler import PerformanceProfiler
from .types import (
    ErrorType,
    OverwritePolicy,
    SerializeResult,
    ShapeMismatchError,
    UnknownVariantError,
    ValidationResult,
)
from .utils.validation import ValidationUtils


class FsCodec:
    """
    Bidirectional codec between values and filesystem trees.

    Wires the serializer, deserializer, validation and profiling together
    behind one configuration. Instances hold no per-call state, so a single
    codec can be shared between threads and coroutines.
    """

    def __init__(self, logger: Optional[logging.Logger] = None,
                 overwrite: Union[OverwritePolicy, str] = OverwritePolicy.FAIL,
                 strict_scalars: bool = True,
                 allow_unknown_entries: bool = False,
                 fsync: bool = True,
                 enable_parallel_processing: bool = True,
                 max_workers: Optional[int] = None,
                 enable_profiling: bool = False):
        """
        Initialize the codec.

        Args:
            logger: Optional logger instance
            overwrite: Policy for an existing destination (fail, allow_empty or replace)
            strict_scalars: When False, whitespace around bool, number and tag content is ignored
            allow_unknown_entries: When True, record directories may hold undeclared entries
            fsync: Whether written files are synced to disk before being renamed into place
            enable_parallel_processing: Process the children of the root concurrently
            max_workers: Maximum number of worker threads (None = auto-detect)
            enable_profiling: Record duration, memory and throughput of each operation
        """
        self.logger = logger or logging.getLogger(__name__)
        self.overwrite = OverwritePolicy(overwrite)
        self.enable_parallel_processing = enable_parallel_processing
        self.max_workers = max_workers
        self.enable_profiling = enable_profiling

        # Thread pool for the async wrappers
        self.executor = ThreadPoolExecutor(max_workers=max_workers) if enable_parallel_processing else None

        engine_workers = None
        if enable_parallel_processing:
            engine_workers = max_workers or min(32, (os.cpu_count() or 1) + 4)

        self.error_handler = ErrorHandler(self.logger)
        self.serializer = FilesystemSerializer(
            error_handler=self.error_handler,
            logger=self.logger,
            overwrite=self.overwrite,
            fsync=fsync,
            max_workers=engine_workers,
        )
        self.deserializer = FilesystemDeserializer(
            error_handler=self.error_handler,
            logger=self.logger,
            strict_scalars=strict_scalars,
            allow_unknown_entries=allow_unknown_entries,
            max_workers=engine_workers,
        )
        self.profiler = PerformanceProfiler(self.logger) if enable_profiling else None

    def __enter__(self) -> "FsCodec":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Shut down the thread pool used by the async wrappers."""
        if self.executor is not None:
            self.executor.shutdown(wait=True)

    def validate(self, value: Value, shape: Shape) -> ValidationResult:
        """
        Check a value against a shape without touching the filesystem.

        Args:
            value: Value to check
            shape: Expected shape

        Returns:
            ValidationResult with every disagreement found
        """
        return ValidationUtils.validate_value(value, shape)

    def serialize(self, value: Value, destination: Union[str, Path],
                  shape: Optional[Shape] = None) -> SerializeResult:
        """
        Write a value as a filesystem tree.

        Args:
            value: Value to write
            destination: Path of the root entry
            shape: Optional shape the value is checked against before anything is written

        Returns:
            SerializeResult with entry counts

        Raises:
            CodecError: If validation fails or the tree cannot be written
        """
        if shape is not None:
            validation = self.validate(value, shape)
            for warning in validation.warnings:
                self.logger.warning(warning)
            if not validation.is_valid:
                first = validation.errors[0]
                error_class = UnknownVariantError if first.type == ErrorType.UNKNOWN_VARIANT else ShapeMismatchError
                raise error_class(
                    f"Value does not match shape: {first.message}",
                    first.location,
                    context=[error.message for error in validation.errors],
                )

        if self.profiler is None:
            return self.serializer.serialize(value, destination)

        with self.profiler.profile_operation("serialize") as session:
            result = self.serializer.serialize(value, destination)
            session.record_output(result.file_count + result.directory_count, result.total_size)
        return result

    def deserialize(self, source: Union[str, Path], shape: Shape) -> Value:
        """
        Read a filesystem tree back into a value.

        Args:
            source: Path of the root entry
            shape: Expected shape of the value

        Returns:
            The reconstructed Value

        Raises:
            CodecError: If the tree cannot be read as the shape
        """
        if self.profiler is None:
            return self.deserializer.deserialize(source, shape)

        with self.profiler.profile_operation("deserialize") as session:
            value = self.deserializer.deserialize(source, shape)
            entries, size = _tree_size(Path(source))
            session.record_output(entries, size)
        return value

    def dump(self, data: Any, shape: Shape, destination: Union[str, Path]) -> SerializeResult:
        """
        Write plain Python data as a tree.

        Args:
            data: Python data following the shape (for example parsed JSON)
            shape: Shape of the data
            destination: Path of the root entry

        Returns:
            SerializeResult with entry counts

        Raises:
            ShapeMismatchError: If the data cannot be converted to the shape
            CodecError: If the tree cannot be written
        """
        try:
            value = to_value(data, shape)
        except ValueError as e:
            raise ShapeMismatchError(str(e)) from e
        return self.serialize(value, destination)

    def load(self, source: Union[str, Path], shape: Shape) -> Any:
        """Read a tree and return it as plain Python data."""
        return to_native(self.deserialize(source, shape))

    async def serialize_async(self, value: Value, destination: Union[str, Path],
                              shape: Optional[Shape] = None) -> SerializeResult:
        """Run ``serialize`` in the codec's thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.serialize, value, destination, shape)

    async def deserialize_async(self, source: Union[str, Path], shape: Shape) -> Value:
        """Run ``deserialize`` in the codec's thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.deserialize, source, shape)

    def get_performance_summary(self) -> dict:
        """Summary of profiled operations; empty when profiling is disabled."""
        if self.profiler is None:
            return {"total_operations": 0}
        return self.profiler.get_performance_summary()


def _tree_size(root: Path):
    """Count entries and file bytes below root."""
    if not root.is_dir():
        return (1, root.stat().st_size) if root.is_file() else (0, 0)
    entries = 1
    size = 0
    for directory, dirnames, filenames in os.walk(root):
        entries += len(dirnames) + len(filenames)
        for name in filenames:
            size += os.path.getsize(os.path.join(directory, name))
    return entries, size


def serialize(value: Value, destination: Union[str, Path], **options) -> SerializeResult:
    """
    Write a value as a filesystem tree with a one-off codec.

    Keyword options are passed to ``FsCodec``.
    """
    with FsCodec(**options) as codec:
        return codec.serialize(value, destination)


def deserialize(source: Union[str, Path], shape: Shape, **options) -> Value:
    """
    Read a filesystem tree back into a value with a one-off codec.

    Keyword options are passed to ``FsCodec``.
    """
    with FsCodec(**options) as codec:
        return codec.deserialize(source, shape)
