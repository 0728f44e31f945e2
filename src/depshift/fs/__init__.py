"""Filesystem backends for workspace access."""

from .base import FileInfo, FileSystem, WalkEntry, directory_patterns, normalize_path
from .local import LocalFileSystem
from .memory import MemoryFileSystem

__all__ = [
    "FileInfo",
    "FileSystem",
    "WalkEntry",
    "LocalFileSystem",
    "MemoryFileSystem",
    "directory_patterns",
    "normalize_path",
]
