"""Tests for ``roster.core.cache.RedisCache`` — Redis-backed snapshot backend.

Requires ``redis`` package. Tests are skipped if not installed.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

redis = pytest.importorskip("redis")

from roster.core.errors import StorageError


@pytest.fixture
def cache_and_client():
    from roster.core.cache import RedisCache

    with pytest.MonkeyPatch.context() as mp:
        client = MagicMock()
        mock_from_url = MagicMock(return_value=client)
        mp.setattr(redis, "from_url", mock_from_url)

        cache = RedisCache("redis://custom:6380/1")
        mock_from_url.assert_called_once_with("redis://custom:6380/1", decode_responses=False)
        yield cache, client


class TestRedisCache:
    def test_get_existing_key(self, cache_and_client):
        cache, client = cache_and_client
        client.get.return_value = json.dumps([{"id": 1}]).encode()

        assert cache.get("users") == [{"id": 1}]
        client.get.assert_called_once_with("roster:users")

    def test_get_missing_key(self, cache_and_client):
        cache, client = cache_and_client
        client.get.return_value = None
        assert cache.get("users") is None

    def test_corrupt_value(self, cache_and_client):
        cache, client = cache_and_client
        client.get.return_value = b"{not json"
        with pytest.raises(StorageError) as exc_info:
            cache.get("users")
        assert exc_info.value.context.cache_key == "users"

    def test_set_serializes_without_expiry(self, cache_and_client):
        cache, client = cache_and_client
        cache.set("users", [{"id": 1}])
        client.set.assert_called_once_with("roster:users", json.dumps([{"id": 1}]))
        client.setex.assert_not_called()

    def test_redis_failure_becomes_storage_error(self, cache_and_client):
        cache, client = cache_and_client
        client.set.side_effect = redis.ConnectionError("down")
        with pytest.raises(StorageError, match="Redis SET users failed"):
            cache.set("users", [])

    def test_exists_and_delete(self, cache_and_client):
        cache, client = cache_and_client
        client.exists.return_value = 1
        assert cache.exists("users") is True
        cache.delete("users")
        client.delete.assert_called_once_with("roster:users")

    def test_clear_only_touches_namespace(self, cache_and_client):
        cache, client = cache_and_client
        client.scan_iter.return_value = iter([b"roster:a", b"roster:b"])

        cache.clear()

        client.scan_iter.assert_called_once_with(match="roster:*")
        client.delete.assert_called_once_with(b"roster:a", b"roster:b")
        client.flushdb.assert_not_called()

    def test_custom_namespace(self):
        from roster.core.cache import RedisCache

        with pytest.MonkeyPatch.context() as mp:
            client = MagicMock()
            mp.setattr(redis, "from_url", MagicMock(return_value=client))
            cache = RedisCache(namespace="ops:")

        client.get.return_value = None
        cache.get("users")
        assert cache.namespace == "ops:"
        client.get.assert_called_once_with("ops:users")
