"""Core type definitions for the filesystem codec."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional


class ErrorType(Enum):
    """Enumeration of error types."""
    INVALID_NAME = "invalid_name"
    ALREADY_EXISTS = "already_exists"
    IO_FAILURE = "io_failure"
    SHAPE_MISMATCH = "shape_mismatch"
    MALFORMED_SCALAR = "malformed_scalar"
    UNKNOWN_VARIANT = "unknown_variant"


class OverwritePolicy(Enum):
    """What the serializer does with an existing destination."""
    FAIL = "fail"
    ALLOW_EMPTY = "allow_empty"
    REPLACE = "replace"


class EntryKind(Enum):
    """Kind of a filesystem entry as seen by the reader."""
    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


@dataclass
class SerializeResult:
    """Result of a serialize operation."""
    success: bool
    output_path: str
    file_count: int
    directory_count: int
    total_size: int
    errors: Optional[List[str]] = None


@dataclass
class ValidationError:
    """Validation error details."""
    type: ErrorType
    message: str
    location: Optional[str] = None


@dataclass
class ValidationResult:
    """Result of a validation pass."""
    is_valid: bool
    errors: List[ValidationError]
    warnings: List[str]


@dataclass
class ErrorResponse:
    """Response for error handling."""
    can_recover: bool
    suggested_action: str
    partial_results: Optional[Any] = None


class CodecError(Exception):
    """Base exception for every serialize and deserialize failure.

    ``path`` is the entry where the failure was detected, relative to the
    root handed to the codec (``"."`` for the root itself).
    """

    def __init__(self, message: str, error_type: ErrorType,
                 path: Optional[str] = None, context: Optional[Any] = None):
        if path is not None:
            message = f"{message} (at '{path}')"
        super().__init__(message)
        self.error_type = error_type
        self.path = path
        self.context = context


class InvalidNameError(CodecError):
    """A key, field or index cannot be used as a filesystem entry name."""

    def __init__(self, message: str, path: Optional[str] = None, context: Optional[Any] = None):
        super().__init__(message, ErrorType.INVALID_NAME, path, context)


class AlreadyExistsError(CodecError):
    """The serializer would have overwritten an existing entry."""

    def __init__(self, message: str, path: Optional[str] = None, context: Optional[Any] = None):
        super().__init__(message, ErrorType.ALREADY_EXISTS, path, context)


class IOFailureError(CodecError):
    """An operating system call failed."""

    def __init__(self, message: str, path: Optional[str] = None,
                 os_error: Optional[OSError] = None, context: Optional[Any] = None):
        super().__init__(message, ErrorType.IO_FAILURE, path, context)
        self.os_error = os_error


class ShapeMismatchError(CodecError):
    """The tree on disk disagrees structurally with the expected shape."""

    def __init__(self, message: str, path: Optional[str] = None, context: Optional[Any] = None):
        super().__init__(message, ErrorType.SHAPE_MISMATCH, path, context)


class MalformedScalarError(CodecError):
    """File content cannot be parsed as the expected scalar kind."""

    def __init__(self, message: str, path: Optional[str] = None, context: Optional[Any] = None):
        super().__init__(message, ErrorType.MALFORMED_SCALAR, path, context)


class UnknownVariantError(CodecError):
    """A variant tag is not one of the tags the shape declares."""

    def __init__(self, message: str, path: Optional[str] = None, context: Optional[Any] = None):
        super().__init__(message, ErrorType.UNKNOWN_VARIANT, path, context)


# Abstract base classes for interfaces

class SerializerInterface(ABC):
    """Abstract interface for the value-to-tree direction."""

    @abstractmethod
    def serialize(self, value: Any, destination: Any) -> SerializeResult:
        """Write a value as a filesystem tree rooted at destination."""
        pass


class DeserializerInterface(ABC):
    """Abstract interface for the tree-to-value direction."""

    @abstractmethod
    def deserialize(self, source: Any, shape: Any) -> Any:
        """Read the tree at source back into a value of the given shape."""
        pass
