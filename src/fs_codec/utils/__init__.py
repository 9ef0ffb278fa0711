"""Utility functions for the filesystem codec."""

from .scalars import format_float, format_scalar, parse_scalar
from .validation import ValidationUtils

__all__ = ["format_float", "format_scalar", "parse_scalar", "ValidationUtils"]
