"""Key-Value Store Interface and adapters."""

from modules.notestore.storage.base import KeyValueStore
from modules.notestore.storage.file import FileKeyValueStore
from modules.notestore.storage.memory import MemoryKeyValueStore

__all__ = [
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
]
