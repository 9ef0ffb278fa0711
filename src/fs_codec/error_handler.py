"""Error handling implementation for the filesystem codec."""

import errno
import logging
import os
from pathlib import Path
from typing import Optional, Union

from .types import (
    AlreadyExistsError,
    CodecError,
    ErrorResponse,
    ErrorType,
    IOFailureError,
    OverwritePolicy,
    ValidationError,
    ValidationResult,
)


class ErrorHandler:
    """
    Error handler for codec operations.

    Classifies operating system errors into the codec taxonomy, suggests a
    recovery action for each error type and checks destinations before a
    serializer starts writing.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the error handler.

        Args:
            logger: Optional logger instance for error reporting
        """
        self.logger = logger or logging.getLogger(__name__)

    def wrap_os_error(self, error: OSError, path: str, action: str = "access") -> CodecError:
        """
        Convert an OSError into the matching codec error.

        Args:
            error: The operating system error
            path: Relative path of the entry involved
            action: Verb describing what was attempted

        Returns:
            AlreadyExistsError for collisions, IOFailureError otherwise
        """
        if isinstance(error, FileExistsError) or error.errno == errno.EEXIST:
            return AlreadyExistsError(f"Cannot {action}: entry already exists", path)
        reason = error.strerror or str(error)
        return IOFailureError(f"Cannot {action}: {reason}", path, os_error=error)

    def handle_error(self, error: CodecError) -> ErrorResponse:
        """
        Suggest how a caller can recover from a codec error.

        Args:
            error: CodecError to handle

        Returns:
            ErrorResponse with recovery information
        """
        self.logger.error(f"Codec error: {error.error_type.value} - {error}")

        if error.error_type == ErrorType.INVALID_NAME:
            return ErrorResponse(
                can_recover=False,
                suggested_action="Rename the offending key or field. Entry names cannot be empty, "
                               "'.', '..' or contain path separators.",
            )
        elif error.error_type == ErrorType.ALREADY_EXISTS:
            return ErrorResponse(
                can_recover=True,
                suggested_action="Choose a fresh destination, or use the 'replace' overwrite policy "
                               "to swap the new tree in atomically.",
                partial_results=error.path,
            )
        elif error.error_type == ErrorType.IO_FAILURE:
            return ErrorResponse(
                can_recover=True,
                suggested_action="Check file permissions, available disk space and path length. "
                               "A partially written tree is safe to delete and retry.",
                partial_results=error.path,
            )
        elif error.error_type == ErrorType.SHAPE_MISMATCH:
            return ErrorResponse(
                can_recover=False,
                suggested_action="The tree does not match the expected shape. Look for missing, "
                               "extra or stale entries at the reported path.",
                partial_results=error.path,
            )
        elif error.error_type == ErrorType.MALFORMED_SCALAR:
            return ErrorResponse(
                can_recover=False,
                suggested_action="Fix the file content at the reported path so it is in canonical "
                               "form (for example 'true'/'false' or a plain decimal number).",
                partial_results=error.path,
            )
        elif error.error_type == ErrorType.UNKNOWN_VARIANT:
            return ErrorResponse(
                can_recover=False,
                suggested_action="The variant tag is not declared by the shape. Fix the tag or add "
                               "the variant to the shape.",
                partial_results=error.path,
            )
        else:
            return ErrorResponse(
                can_recover=False,
                suggested_action="Unknown error type. Please check logs and retry.",
            )

    def validate_destination(self, destination: Union[str, Path],
                             policy: OverwritePolicy = OverwritePolicy.FAIL,
                             is_directory: bool = True) -> ValidationResult:
        """
        Check that a serializer may write to a destination.

        Args:
            destination: Root path of the tree to write
            policy: Overwrite policy in effect
            is_directory: Whether the root value is realized as a directory

        Returns:
            ValidationResult with validation details
        """
        errors = []
        warnings = []
        path = Path(destination)

        if not str(destination):
            errors.append(ValidationError(
                type=ErrorType.IO_FAILURE,
                message="Destination path cannot be empty",
                location="destination"
            ))
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

        if path.exists() or path.is_symlink():
            if policy == OverwritePolicy.REPLACE:
                warnings.append(f"Destination {path} exists and will be replaced")
            elif policy == OverwritePolicy.ALLOW_EMPTY and is_directory and path.is_dir():
                if any(path.iterdir()):
                    errors.append(ValidationError(
                        type=ErrorType.ALREADY_EXISTS,
                        message="Destination directory is not empty",
                        location="."
                    ))
            else:
                errors.append(ValidationError(
                    type=ErrorType.ALREADY_EXISTS,
                    message="Destination already exists",
                    location="."
                ))

        probe = path.parent
        while not probe.exists() and probe != probe.parent:
            probe = probe.parent
        if probe.exists() and not os.access(probe, os.W_OK):
            errors.append(ValidationError(
                type=ErrorType.IO_FAILURE,
                message=f"Directory {probe} is not writable",
                location="destination"
            ))

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )

    def raise_for_validation(self, result: ValidationResult) -> None:
        """Raise the codec error matching the first validation error, if any."""
        for warning in result.warnings:
            self.logger.warning(warning)
        if result.is_valid:
            return
        first = result.errors[0]
        if first.type == ErrorType.ALREADY_EXISTS:
            raise AlreadyExistsError(first.message, first.location)
        raise IOFailureError(first.message, first.location)
