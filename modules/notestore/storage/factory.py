"""
Store Factory.

Builds the key-value store selected in config/settings/storage.yaml.
"""

from modules.notestore.core.config import get_redis_url, resolve_path
from modules.notestore.core.config_schema import StorageSchema
from modules.notestore.core.logging import get_logger
from modules.notestore.core.resilience import create_circuit_breaker
from modules.notestore.storage.base import KeyValueStore
from modules.notestore.storage.file import FileKeyValueStore
from modules.notestore.storage.memory import MemoryKeyValueStore

logger = get_logger(__name__)


def create_store(storage: StorageSchema) -> KeyValueStore:
    """
    Create the configured key-value store.

    Args:
        storage: Validated storage.yaml settings

    Returns:
        A ready-to-use store adapter
    """
    if storage.backend == "memory":
        store: KeyValueStore = MemoryKeyValueStore()
    elif storage.backend == "file":
        store = FileKeyValueStore(resolve_path(storage.file.directory))
    else:
        from modules.notestore.storage.redis_store import RedisKeyValueStore

        store = RedisKeyValueStore.from_url(
            get_redis_url(),
            breaker=create_circuit_breaker(
                "redis",
                fail_max=storage.redis.fail_max,
                timeout_duration=storage.redis.timeout_duration,
            ),
        )

    logger.debug("Key-value store created", extra={"backend": storage.backend})
    return store
