"""Connection handling and non-blocking filesystem access."""

from .connection import Connection, ConnectionState
from .filesystem import (
    DirectoryEntry,
    FileMetadata,
    list_directory,
    read_file,
    resolve_path,
    stat_path,
)

__all__ = [
    "Connection",
    "ConnectionState",
    "DirectoryEntry",
    "FileMetadata",
    "list_directory",
    "read_file",
    "resolve_path",
    "stat_path",
]
