"""Key-value document store with Redis primary and in-memory fallback.

Profiles and the recommendation audit log are small JSON documents
addressed by owner id, so they live in Redis when it is reachable.  If
Redis is unavailable, operations degrade to a process-local dict so the
service keeps working in development and tests; data held in the
fallback does not survive a restart.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Protocol, runtime_checkable

import orjson
import structlog

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Store backend protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class StoreBackend(Protocol):
    """Async byte-level storage interface."""

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def exists(self, key: str) -> bool: ...

    async def append_list(self, key: str, values: list[bytes], max_len: int) -> int: ...

    async def get_list(self, key: str) -> list[bytes]: ...


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------


class RedisStoreBackend:
    """Redis-backed store using ``redis.asyncio`` with connection pooling."""

    __slots__ = ("_pool", "_redis")

    def __init__(self, url: str = "redis://localhost:6379/0", *, max_connections: int = 20) -> None:
        import redis.asyncio as aioredis

        self._pool = aioredis.ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            decode_responses=False,
        )
        self._redis = aioredis.Redis(connection_pool=self._pool)

    async def get(self, key: str) -> bytes | None:
        return await self._redis.get(key)

    async def set(self, key: str, value: bytes) -> None:
        await self._redis.set(key, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def exists(self, key: str) -> bool:
        return bool(await self._redis.exists(key))

    async def append_list(self, key: str, values: list[bytes], max_len: int) -> int:
        """RPUSH *values* and LTRIM to the newest *max_len* in one MULTI/EXEC."""
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.rpush(key, *values)
            pipe.ltrim(key, -max_len, -1)
            length, _ = await pipe.execute()
        return min(int(length), max_len)

    async def get_list(self, key: str) -> list[bytes]:
        return await self._redis.lrange(key, 0, -1)

    async def close(self) -> None:
        await self._redis.aclose()
        await self._pool.aclose()

    async def ping(self) -> bool:
        """Return *True* if the Redis server is reachable."""
        try:
            return bool(await self._redis.ping())
        except Exception:
            return False


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryStoreBackend:
    """Plain dict store guarded by an :class:`asyncio.Lock`.

    Unlike a cache nothing is evicted: a stored profile stays until the
    process exits.
    """

    __slots__ = ("_data", "_lists", "_lock")

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lists: dict[str, list[bytes]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> bytes | None:
        async with self._lock:
            return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        async with self._lock:
            self._data[key] = value

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)
            self._lists.pop(key, None)

    async def exists(self, key: str) -> bool:
        async with self._lock:
            return key in self._data or key in self._lists

    async def append_list(self, key: str, values: list[bytes], max_len: int) -> int:
        async with self._lock:
            items = self._lists.setdefault(key, [])
            items.extend(values)
            if len(items) > max_len:
                del items[: len(items) - max_len]
            return len(items)

    async def get_list(self, key: str) -> list[bytes]:
        async with self._lock:
            return list(self._lists.get(key, ()))


# ---------------------------------------------------------------------------
# KeyValueStore  --  public API
# ---------------------------------------------------------------------------


class KeyValueStore:
    """JSON document store with automatic Redis -> in-memory fallback.

    Parameters
    ----------
    redis_url:
        Redis connection string.  Pass *None* to skip Redis entirely.
    namespace:
        Optional prefix prepended to every key (e.g. ``"profile:"``).
    """

    __slots__ = (
        "_fallback",
        "_namespace",
        "_redis",
        "_redis_available",
        "_redis_checked",
    )

    def __init__(
        self,
        *,
        redis_url: str | None = "redis://localhost:6379/0",
        namespace: str = "",
    ) -> None:
        self._namespace = namespace
        self._fallback = InMemoryStoreBackend()
        self._redis: RedisStoreBackend | None = None
        self._redis_available: bool = False
        self._redis_checked: bool = False

        if redis_url:
            try:
                self._redis = RedisStoreBackend(url=redis_url)
            except Exception:
                logger.warning("store.redis_init_failed", redis_url=redis_url)
                self._redis = None

    # -- Internal helpers ------------------------------------------------------

    def _make_key(self, key: str) -> str:
        if self._namespace:
            return f"{self._namespace}{key}"
        return key

    async def _backend(self) -> StoreBackend:
        """Return the best available backend, checking Redis once lazily."""
        if self._redis is not None and not self._redis_checked:
            self._redis_checked = True
            self._redis_available = await self._redis.ping()
            if self._redis_available:
                logger.info("store.redis_connected", namespace=self._namespace)
            else:
                logger.warning("store.redis_unavailable_using_inmemory", namespace=self._namespace)

        if self._redis_available and self._redis is not None:
            return self._redis
        return self._fallback

    async def _safe_op(self, method: str, key: str, *args: Any) -> Any:
        """Try Redis; on failure, flip to in-memory and retry transparently."""
        await self._backend()
        if self._redis_available and self._redis is not None:
            try:
                return await getattr(self._redis, method)(key, *args)
            except Exception:
                logger.warning("store.redis_op_failed", method=method, key=key)
                self._redis_available = False

        return await getattr(self._fallback, method)(key, *args)

    # -- Public API ------------------------------------------------------------

    async def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a stored document, deserialised via *orjson*."""
        raw: bytes | None = await self._safe_op("get", self._make_key(key))
        if raw is None:
            return default
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning("store.corrupt_document", key=key)
            return default

    async def set(self, key: str, value: Any) -> None:
        """Serialise *value* via *orjson* and store it."""
        await self._safe_op("set", self._make_key(key), orjson.dumps(value))

    async def delete(self, key: str) -> None:
        await self._safe_op("delete", self._make_key(key))

    async def exists(self, key: str) -> bool:
        return bool(await self._safe_op("exists", self._make_key(key)))

    async def append_to_list(self, key: str, values: list[Any], *, max_len: int) -> int:
        """Append *values* to the list at *key*, keeping only the newest *max_len*.

        The append and the trim happen as one step on the backend, so
        concurrent appends to the same key never overwrite each other.
        Returns the list length after trimming.
        """
        if max_len < 1:
            raise ValueError("max_len must be at least 1")
        if not values:
            return 0
        encoded = [orjson.dumps(value) for value in values]
        return await self._safe_op("append_list", self._make_key(key), encoded, max_len)

    async def get_list(self, key: str) -> list[Any]:
        """Return every item of the list at *key*, oldest first; corrupt items are skipped."""
        items: list[Any] = []
        for raw in await self._safe_op("get_list", self._make_key(key)):
            try:
                items.append(orjson.loads(raw))
            except orjson.JSONDecodeError:
                logger.warning("store.corrupt_list_item", key=key)
        return items

    @property
    def using_redis(self) -> bool:
        return self._redis_available

    # -- Lifecycle -------------------------------------------------------------

    async def close(self) -> None:
        """Cleanly shut down the Redis connection pool (if any)."""
        if self._redis is not None:
            with contextlib.suppress(Exception):
                await self._redis.close()

    @staticmethod
    def for_namespace(namespace: str, *, redis_url: str | None = None) -> KeyValueStore:
        """Create a :class:`KeyValueStore` scoped to *namespace*.

        Example::

            profiles = KeyValueStore.for_namespace("profile:", redis_url=settings.redis_url)
        """
        return KeyValueStore(redis_url=redis_url, namespace=namespace)
