"""
Redis Key-Value Store.

Keeps note records in Redis string keys. Every call goes through a circuit
breaker so a Redis outage fails fast instead of stalling each mutation for
the full retry budget.
"""

from typing import Any

import aiobreaker
import redis.asyncio as redis
from redis.exceptions import RedisError

from modules.notestore.core.exceptions import StorageError
from modules.notestore.core.logging import get_logger
from modules.notestore.core.resilience import create_circuit_breaker
from modules.notestore.storage.base import KeyValueStore

logger = get_logger(__name__)


class RedisKeyValueStore(KeyValueStore):
    """Store backed by a ``redis.asyncio`` client."""

    def __init__(
        self,
        client: redis.Redis,
        breaker: aiobreaker.CircuitBreaker | None = None,
    ) -> None:
        self.client = client
        self.breaker = breaker or create_circuit_breaker("redis")

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisKeyValueStore":
        """Build a store from a redis:// URL."""
        client = redis.from_url(url, decode_responses=True)
        return cls(client, **kwargs)

    async def _call(self, operation: str, key: str, func: Any, *args: Any) -> Any:
        try:
            return await self.breaker.call_async(func, *args)
        except aiobreaker.CircuitBreakerError as e:
            logger.warning("Redis circuit open", extra={"operation": operation, "key": key})
            raise StorageError(f"Redis unavailable during {operation} of {key}") from e
        except RedisError as e:
            logger.error(
                "Redis operation failed",
                extra={"operation": operation, "key": key, "error": str(e)},
            )
            raise StorageError(f"Redis {operation} of {key} failed: {e}") from e

    async def get(self, key: str) -> str | None:
        value = await self._call("get", key, self.client.get, key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        await self._call("set", key, self.client.set, key, value)

    async def delete(self, key: str) -> None:
        await self._call("delete", key, self.client.delete, key)

    async def close(self) -> None:
        await self.client.aclose()
