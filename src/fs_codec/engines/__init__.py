"""Core serialization engines."""

from .deserializer import FilesystemDeserializer
from .serializer import FilesystemSerializer

__all__ = ["FilesystemDeserializer", "FilesystemSerializer"]
