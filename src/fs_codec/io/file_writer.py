"""Write-side filesystem primitives for the serializer."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..error_handler import ErrorHandler
from ..types import AlreadyExistsError


class FileWriter:
    """
    Atomic file writer for scalar entries.

    Each file is written to a temporary sibling, flushed, optionally synced
    to disk and renamed into place, so a crash never leaves a half-written
    file under its final name.
    """

    def __init__(self, fsync: bool = True,
                 error_handler: Optional[ErrorHandler] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the file writer.

        Args:
            fsync: Whether to fsync each file before renaming it into place
            error_handler: Optional ErrorHandler used to classify OS errors
            logger: Optional logger instance
        """
        self.fsync = fsync
        self.logger = logger or logging.getLogger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)

    def write_file(self, path: Path, content: bytes, relative: str) -> int:
        """
        Atomically create a file holding ``content``.

        Args:
            path: Final path of the file
            content: Bytes to write
            relative: Path reported in errors

        Returns:
            Number of bytes written

        Raises:
            AlreadyExistsError: If an entry already exists at ``path``
            IOFailureError: If any filesystem call fails
        """
        if os.path.lexists(path):
            raise AlreadyExistsError("Refusing to overwrite existing entry", relative)

        try:
            fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        except OSError as e:
            raise self.error_handler.wrap_os_error(e, relative, "create temporary file")

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                if self.fsync:
                    os.fsync(f.fileno())
            os.replace(temp_name, path)
        except OSError as e:
            self._discard(temp_name)
            raise self.error_handler.wrap_os_error(e, relative, "write file")
        except BaseException:
            self._discard(temp_name)
            raise

        self.logger.debug(f"Wrote {len(content)} bytes to {relative}")
        return len(content)

    def create_directory(self, path: Path, relative: str, parents: bool = False) -> None:
        """
        Create a directory that must not exist yet.

        Args:
            path: Directory to create
            relative: Path reported in errors
            parents: Whether missing parent directories may be created

        Raises:
            AlreadyExistsError: If an entry already exists at ``path``
            IOFailureError: If the directory cannot be created
        """
        try:
            path.mkdir(parents=parents, exist_ok=False)
        except OSError as e:
            raise self.error_handler.wrap_os_error(e, relative, "create directory")
        self.logger.debug(f"Created directory {relative}")

    def ensure_parent(self, path: Path, relative: str) -> None:
        """Create the parent directories of a destination if they are missing."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise self.error_handler.wrap_os_error(e, relative, "create parent directory")

    def _discard(self, temp_name: str) -> None:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Failed to remove temporary file {temp_name}: {e}")
