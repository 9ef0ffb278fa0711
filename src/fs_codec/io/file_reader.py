"""Read-side filesystem primitives for the deserializer."""

import logging
import os
from pathlib import Path
from typing import List, Optional

from ..error_handler import ErrorHandler
from ..types import EntryKind


class FileReader:
    """Reads entries of a serialized tree, reporting failures with their relative path."""

    def __init__(self, error_handler: Optional[ErrorHandler] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the file reader.

        Args:
            error_handler: Optional ErrorHandler used to classify OS errors
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)

    def entry_kind(self, path: Path, relative: str) -> EntryKind:
        """Return whether ``path`` is a file, a directory or missing."""
        try:
            if path.is_dir():
                return EntryKind.DIRECTORY
            if path.is_file():
                return EntryKind.FILE
        except OSError as e:
            raise self.error_handler.wrap_os_error(e, relative, "inspect entry")
        if os.path.lexists(path):
            # Dangling symlinks, sockets and devices are not tree entries
            self.logger.warning(f"Ignoring special entry at {relative}")
        return EntryKind.MISSING

    def read_bytes(self, path: Path, relative: str) -> bytes:
        """Read the full content of a file."""
        try:
            with open(path, "rb") as f:
                content = f.read()
        except OSError as e:
            raise self.error_handler.wrap_os_error(e, relative, "read file")
        self.logger.debug(f"Read {len(content)} bytes from {relative}")
        return content

    def list_entries(self, path: Path, relative: str) -> List[str]:
        """Return the entry names of a directory in sorted order."""
        try:
            with os.scandir(path) as entries:
                return sorted(entry.name for entry in entries)
        except OSError as e:
            raise self.error_handler.wrap_os_error(e, relative, "list directory")
