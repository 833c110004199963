"""
In-Memory Key-Value Store.

Dictionary-backed store for tests and ephemeral sessions.
"""

from modules.notestore.storage.base import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """Keeps every record in a dict owned by the instance."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)
