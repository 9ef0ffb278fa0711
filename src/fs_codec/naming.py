"""Mapping between structural positions and filesystem entry names.

Everything in here is pure: no function touches the filesystem. The
serializer and the deserializer both go through ``field_entry_name`` so a
name that could escape its parent directory is rejected in one place.
"""

import re
from typing import Optional

from .types import InvalidNameError

VARIANT_MARKER = "variant"
NEWTYPE_VALUE = "value"

_RESERVED_NAMES = frozenset({".", ".."})
_FORBIDDEN_CHARACTERS = ("/", "\\", "\x00")
_CANONICAL_INDEX = re.compile(r"0|[1-9][0-9]*")


def tuple_entry_name(index: int) -> str:
    """Return the entry name for tuple position ``index``."""
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise InvalidNameError(f"Tuple index must be a non-negative integer, got {index!r}")
    return str(index)


def parse_tuple_entry_name(name: str) -> Optional[int]:
    """Return the index encoded by ``name``, or None if it is not canonical."""
    if _CANONICAL_INDEX.fullmatch(name):
        return int(name)
    return None


def is_valid_entry_name(name: str) -> bool:
    """Check whether ``name`` can be used verbatim as a directory entry."""
    if not isinstance(name, str) or not name:
        return False
    if name in _RESERVED_NAMES:
        return False
    return not any(character in name for character in _FORBIDDEN_CHARACTERS)


def field_entry_name(name: str) -> str:
    """
    Return the entry name for a record field or map key.

    Args:
        name: Field name or map key

    Returns:
        The name unchanged

    Raises:
        InvalidNameError: If the name is empty, reserved or contains a separator
    """
    if is_valid_entry_name(name):
        return name
    if not isinstance(name, str):
        raise InvalidNameError(f"Entry names must be strings, got {type(name).__name__}")
    if not name:
        raise InvalidNameError("Entry name cannot be empty")
    if name in _RESERVED_NAMES:
        raise InvalidNameError(f"Entry name {name!r} is reserved by the filesystem")
    for character in _FORBIDDEN_CHARACTERS:
        if character in name:
            raise InvalidNameError(f"Entry name {name!r} contains forbidden character {character!r}")
    return name


def variant_marker_name() -> str:
    """Name of the file holding the tag of a tuple, record or newtype variant."""
    return VARIANT_MARKER


def newtype_value_name() -> str:
    """Name of the entry holding the payload of a newtype variant."""
    return NEWTYPE_VALUE


def join_relative(parent: str, name: str) -> str:
    """Join a relative error path with a child entry name."""
    if parent in ("", "."):
        return name
    return f"{parent}/{name}"
