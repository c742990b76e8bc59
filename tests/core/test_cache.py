"""
Tests for roster.core.cache module.

Covers:
- CacheBackend protocol compliance
- InMemoryCache: get/set/delete/exists/clear, copy semantics
- FileCache: persistence across instances, atomic replace, error wrapping
"""

import json

import pytest

from roster.core.cache import CacheBackend, FileCache, InMemoryCache
from roster.core.errors import StorageError


class TestInMemoryCache:
    def test_basic_get_set(self):
        cache = InMemoryCache()
        cache.set("key1", {"data": [1, 2, 3]})
        assert cache.get("key1") == {"data": [1, 2, 3]}

    def test_get_missing_key(self):
        assert InMemoryCache().get("missing") is None

    def test_values_are_copies(self):
        """Mutating a stored or returned value must not change the cache."""
        cache = InMemoryCache()
        value = [{"id": 1}]
        cache.set("k", value)
        value.append({"id": 2})
        cache.get("k").append({"id": 3})
        assert cache.get("k") == [{"id": 1}]

    def test_delete_and_exists(self):
        cache = InMemoryCache()
        cache.set("key1", "value1")
        assert cache.exists("key1")
        cache.delete("key1")
        cache.delete("key1")
        assert not cache.exists("key1")

    def test_clear(self):
        cache = InMemoryCache()
        cache.set("k1", 1)
        cache.set("k2", 2)
        assert cache.exists("k1") and cache.exists("k2")
        cache.clear()
        assert cache.get("k1") is None
        assert not cache.exists("k2")

    def test_protocol(self):
        assert isinstance(InMemoryCache(), CacheBackend)


class TestFileCache:
    def test_persists_across_instances(self, tmp_path):
        FileCache(tmp_path).set("managementAppUsers", [{"id": 1, "name": "Ann"}])
        assert FileCache(tmp_path).get("managementAppUsers") == [{"id": 1, "name": "Ann"}]

    def test_creates_directory(self, tmp_path):
        cache = FileCache(tmp_path / "nested" / "dir")
        cache.set("k", 1)
        assert cache.path_for("k").is_file()

    def test_missing_key_is_none(self, tmp_path):
        cache = FileCache(tmp_path / "never-created")
        assert cache.get("k") is None
        assert not cache.exists("k")

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        cache = FileCache(tmp_path)
        cache.set("k", [1])
        cache.set("k", [1, 2])
        assert cache.get("k") == [1, 2]
        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]

    def test_key_is_sanitized(self, tmp_path):
        cache = FileCache(tmp_path)
        cache.set("../escape me", 1)
        assert cache.path_for("../escape me").parent == tmp_path
        assert cache.get("../escape me") == 1

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        cache = FileCache(tmp_path)
        cache.path_for("k").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError) as exc_info:
            cache.get("k")
        assert exc_info.value.context.cache_key == "k"
        assert isinstance(exc_info.value.cause, json.JSONDecodeError)

    def test_unwritable_directory_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(StorageError):
            FileCache(blocker).set("k", 1)

    def test_delete_and_clear(self, tmp_path):
        cache = FileCache(tmp_path)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        assert not cache.exists("a")
        cache.clear()
        assert not cache.exists("b")

    def test_protocol(self, tmp_path):
        assert isinstance(FileCache(tmp_path), CacheBackend)
