"""Unit tests for building the configured key-value store."""

from unittest.mock import patch

from modules.notestore.core.config_schema import (
    FileStoreSchema,
    RedisStoreSchema,
    StorageSchema,
)
from modules.notestore.storage.factory import create_store
from modules.notestore.storage.file import FileKeyValueStore
from modules.notestore.storage.memory import MemoryKeyValueStore
from modules.notestore.storage.redis_store import RedisKeyValueStore


def _storage(backend: str, tmp_path) -> StorageSchema:
    return StorageSchema(
        backend=backend,
        file=FileStoreSchema(directory=str(tmp_path / "store")),
        redis=RedisStoreSchema(host="localhost", port=6379, db=0, fail_max=2, timeout_duration=5),
    )


class TestCreateStore:
    def test_memory_backend(self, tmp_path):
        assert isinstance(create_store(_storage("memory", tmp_path)), MemoryKeyValueStore)

    def test_file_backend(self, tmp_path):
        store = create_store(_storage("file", tmp_path))

        assert isinstance(store, FileKeyValueStore)
        assert store.directory == tmp_path / "store"

    def test_redis_backend_uses_configured_breaker(self, tmp_path):
        with patch(
            "modules.notestore.storage.factory.get_redis_url",
            return_value="redis://localhost:6379/0",
        ):
            store = create_store(_storage("redis", tmp_path))

        assert isinstance(store, RedisKeyValueStore)
        assert store.breaker.fail_max == 2
