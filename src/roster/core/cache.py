"""
Key-value backends for the collection snapshot.

Provides a ``CacheBackend`` protocol with in-memory, file and Redis
implementations.  The snapshot store (:mod:`roster.engine.snapshot`) keeps
the whole collection under one key of one of these backends, the same way
the browser screen kept it in a single ``localStorage`` slot.

Manifesto:
    A snapshot is absolute truth at startup, so backends never expire
    keys and never write partially.  Values are JSON-serializable.

    - **Protocol-based:** CacheBackend defines the contract
    - **No TTL:** a snapshot lives until it is overwritten
    - **Atomic writes:** FileCache replaces the file in one rename

Architecture:
    ::

        CacheBackend (Protocol)
        ├── InMemoryCache  — single process, lost on exit (tests, demos)
        ├── FileCache      — one JSON file per key under a directory
        └── RedisCache     — shared, persistent (optional ``redis`` extra)

        API: get(key) → value | None
             set(key, value)
             delete(key)
             exists(key) → bool
             clear()

Examples:
    >>> from roster.core.cache import InMemoryCache
    >>> cache = InMemoryCache()
    >>> cache.set("managementAppUsers", [{"id": 1, "name": "Ann"}])
    >>> cache.get("managementAppUsers")
    [{'id': 1, 'name': 'Ann'}]

Tags:
    cache, storage, redis, file, in-memory, roster

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .errors import StorageError


@runtime_checkable
class CacheBackend(Protocol):
    """Protocol for snapshot backend implementations.

    Keys are strings, values are JSON-serializable.  Implementations raise
    :class:`~roster.core.errors.StorageError` when the underlying medium
    fails; a missing key is not an error.
    """

    def get(self, key: str) -> Any | None:
        """Retrieve a value by key, or ``None`` if absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous one in full."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. No-op if the key does not exist."""
        ...

    def exists(self, key: str) -> bool:
        """Check if a key exists."""
        ...

    def clear(self) -> None:
        """Remove all keys."""
        ...


# ------------------------------------------------------------------ #
# In-Memory Cache
# ------------------------------------------------------------------ #


class InMemoryCache:
    """Process-local cache.

    Values are stored as JSON text so callers never share mutable state
    with the cache, matching the copy semantics of the persistent backends.
    """

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._store.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._store[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def exists(self, key: str) -> bool:
        return key in self._store

    def clear(self) -> None:
        self._store.clear()


# ------------------------------------------------------------------ #
# File Cache
# ------------------------------------------------------------------ #

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class FileCache:
    """One JSON document per key under ``directory``.

    Writes go to a temporary file in the same directory and are moved into
    place with :func:`os.replace`, so readers see either the old or the new
    document, never a partial one.

    Example:
        cache = FileCache(Path.home() / ".roster")
        cache.set("managementAppUsers", [...])
    """

    def __init__(self, directory: Path | str):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """File that holds ``key``."""
        return self._directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> Any | None:
        path = self.path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot read {path}", cause=exc).with_context(cache_key=key)

        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt JSON in {path}", cause=exc).with_context(cache_key=key)

    def set(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        serialized = json.dumps(value, indent=2)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(serialized)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Cannot write {path}", cause=exc).with_context(cache_key=key)

    def delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot delete {key}", cause=exc).with_context(cache_key=key)

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def clear(self) -> None:
        if not self._directory.is_dir():
            return
        for path in self._directory.glob("*.json"):
            path.unlink(missing_ok=True)


# ------------------------------------------------------------------ #
# Redis Cache (optional)
# ------------------------------------------------------------------ #


class RedisCache:
    """Redis-backed cache, for snapshots shared between machines.

    Keys are stored under ``namespace`` so that :meth:`clear` only removes
    what roster wrote.  Requires the ``redis`` extra
    (``pip install roster[redis]``).

    Example:
        cache = RedisCache("redis://localhost:6379/0")
        cache.set("managementAppUsers", [...])   # stored as roster:managementAppUsers

    Raises:
        ImportError: If ``redis`` is not installed.
    """

    def __init__(self, url: str = "redis://localhost:6379/0", *, namespace: str = "roster:"):
        try:
            import redis
        except ImportError as exc:
            raise ImportError(
                "RedisCache needs the 'redis' package: pip install roster[redis]"
            ) from exc

        self._errors = redis.RedisError
        self._client = redis.from_url(url, decode_responses=False)
        self._namespace = namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    def _call(self, command: str, key: str, *args: Any) -> Any:
        try:
            return getattr(self._client, command)(self._namespace + key, *args)
        except self._errors as exc:
            raise StorageError(f"Redis {command.upper()} {key} failed", cause=exc).with_context(
                cache_key=key
            )

    def get(self, key: str) -> Any | None:
        raw = self._call("get", key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt JSON under {key}", cause=exc).with_context(cache_key=key)

    def set(self, key: str, value: Any) -> None:
        self._call("set", key, json.dumps(value))

    def delete(self, key: str) -> None:
        self._call("delete", key)

    def exists(self, key: str) -> bool:
        return bool(self._call("exists", key))

    def clear(self) -> None:
        """Delete every key under this cache's namespace."""
        try:
            keys = list(self._client.scan_iter(match=self._namespace + "*"))
            if keys:
                self._client.delete(*keys)
        except self._errors as exc:
            raise StorageError("Redis clear failed", cause=exc).with_context(
                cache_key=self._namespace + "*"
            )


__all__ = [
    "CacheBackend",
    "InMemoryCache",
    "FileCache",
    "RedisCache",
]
