"""Tests for the key-value document store (in-memory backend + KeyValueStore)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from src.services.store import InMemoryStoreBackend, KeyValueStore, RedisStoreBackend


# -----------------------------------------------------------------------
# InMemoryStoreBackend tests
# -----------------------------------------------------------------------


class TestInMemoryStoreBackend:
    """Test the in-memory dict backend."""

    async def test_get_set_basic(self) -> None:
        backend = InMemoryStoreBackend()
        await backend.set("key1", b"value1")
        assert await backend.get("key1") == b"value1", "get should return the value that was set"

    async def test_get_missing_key_returns_none(self) -> None:
        backend = InMemoryStoreBackend()
        assert await backend.get("nonexistent") is None

    async def test_delete_and_exists(self) -> None:
        backend = InMemoryStoreBackend()
        await backend.set("key1", b"value1")
        assert await backend.exists("key1") is True
        await backend.delete("key1")
        assert await backend.exists("key1") is False
        await backend.delete("key1")  # should not raise

    async def test_nothing_is_evicted(self) -> None:
        backend = InMemoryStoreBackend()
        for i in range(5000):
            await backend.set(f"k{i}", b"v")
        assert await backend.exists("k0"), "documents must never be evicted"
        assert await backend.get("k4999") == b"v"

    async def test_append_list_trims_oldest(self) -> None:
        backend = InMemoryStoreBackend()
        assert await backend.append_list("l", [b"1", b"2"], 3) == 2
        assert await backend.append_list("l", [b"3", b"4"], 3) == 3
        assert await backend.get_list("l") == [b"2", b"3", b"4"]
        await backend.delete("l")
        assert await backend.get_list("l") == []


# -----------------------------------------------------------------------
# RedisStoreBackend tests
# -----------------------------------------------------------------------


class TestRedisStoreBackend:
    async def test_append_list_pushes_and_trims_in_one_transaction(self) -> None:
        pipe = MagicMock()
        pipe.__aenter__.return_value = pipe
        pipe.execute = AsyncMock(return_value=[7, True])
        fake_redis = MagicMock()
        fake_redis.pipeline.return_value = pipe

        backend = RedisStoreBackend()
        backend._redis = fake_redis

        assert await backend.append_list("audit:o1", [b"a", b"b"], 5) == 5
        fake_redis.pipeline.assert_called_once_with(transaction=True)
        pipe.rpush.assert_called_once_with("audit:o1", b"a", b"b")
        pipe.ltrim.assert_called_once_with("audit:o1", -5, -1)
        pipe.execute.assert_awaited_once()


# -----------------------------------------------------------------------
# KeyValueStore tests
# -----------------------------------------------------------------------


class TestKeyValueStore:
    async def test_round_trips_json_documents(self) -> None:
        store = KeyValueStore(redis_url=None)
        await store.set("owner", {"state": "Odisha", "income": 150000, "tags": ["a"]})
        assert await store.get("owner") == {"state": "Odisha", "income": 150000, "tags": ["a"]}

    async def test_default_returned_for_missing_key(self) -> None:
        store = KeyValueStore(redis_url=None)
        assert await store.get("missing", default=[]) == []

    async def test_empty_redis_url_skips_redis(self) -> None:
        store = KeyValueStore(redis_url="")
        await store.set("k", 1)
        assert store.using_redis is False

    async def test_namespaces_are_isolated_keys(self) -> None:
        store = KeyValueStore.for_namespace("profile:")
        assert store._make_key("abc") == "profile:abc"

    async def test_corrupt_document_returns_default(self) -> None:
        store = KeyValueStore(redis_url=None)
        await store._fallback.set("bad", b"{not json")
        assert await store.get("bad", default="fallback") == "fallback"

    async def test_unreachable_redis_falls_back_to_memory(self) -> None:
        store = KeyValueStore(redis_url=None)
        fake_redis = AsyncMock()
        fake_redis.ping.return_value = False
        store._redis = fake_redis

        await store.set("k", {"v": 1})
        assert await store.get("k") == {"v": 1}
        assert store.using_redis is False
        fake_redis.set.assert_not_called()

    async def test_redis_error_mid_operation_flips_to_memory(self) -> None:
        store = KeyValueStore(redis_url=None)
        fake_redis = AsyncMock()
        fake_redis.ping.return_value = True
        fake_redis.set.side_effect = ConnectionError("connection reset")
        store._redis = fake_redis

        await store.set("k", "v")
        assert store.using_redis is False, "a failing Redis op should disable Redis"
        assert await store.get("k") == "v", "the write should land in the fallback"

    async def test_close_without_redis_is_noop(self) -> None:
        store = KeyValueStore(redis_url=None)
        await store.close()

    async def test_list_items_round_trip_and_trim(self) -> None:
        store = KeyValueStore(redis_url=None)
        await store.append_to_list("o1", [{"n": 1}, {"n": 2}], max_len=2)
        assert await store.append_to_list("o1", [{"n": 3}], max_len=2) == 2
        assert await store.get_list("o1") == [{"n": 2}, {"n": 3}]

    async def test_corrupt_list_item_skipped(self) -> None:
        store = KeyValueStore(redis_url=None)
        await store._fallback.append_list("o1", [b"{not json", b'{"n": 1}'], 10)
        assert await store.get_list("o1") == [{"n": 1}]

    async def test_redis_list_error_flips_to_memory(self) -> None:
        store = KeyValueStore(redis_url=None)
        fake_redis = AsyncMock()
        fake_redis.ping.return_value = True
        fake_redis.append_list.side_effect = ConnectionError("connection reset")
        store._redis = fake_redis

        assert await store.append_to_list("o1", ["x"], max_len=5) == 1
        assert store.using_redis is False
        assert await store.get_list("o1") == ["x"]
