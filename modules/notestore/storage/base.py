"""
Key-Value Store Interface.

The note store persists its collections as independently keyed string
records. Any durable asynchronous store that can get, set and delete a
string by key can back it. Adapters raise StorageError on failure.
"""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Asynchronous string-keyed storage."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""

    async def close(self) -> None:
        """Release any held resources."""
