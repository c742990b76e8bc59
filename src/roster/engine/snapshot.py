"""
Local cache store for the collection.

``SnapshotStore`` keeps the whole collection as one JSON array under a single
key of a :class:`~roster.core.cache.CacheBackend`.  It is read once at
startup and overwritten in full after every accepted mutation.  There is no
TTL and no versioning: if a snapshot exists it is believed.

Examples:
    >>> from roster.core.cache import InMemoryCache
    >>> store = SnapshotStore(InMemoryCache())
    >>> store.load() is None
    True
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from roster.core.cache import CacheBackend, FileCache, InMemoryCache, RedisCache
from roster.core.errors import (
    RecordNotFoundError,
    SnapshotCorruptError,
    SnapshotMissingError,
)
from roster.core.logging import get_logger
from roster.core.models import Record
from roster.core.settings import CacheBackendKind, RosterSettings

logger = get_logger(__name__)

DEFAULT_KEY = "managementAppUsers"

_RECORDS = TypeAdapter(list[Record])


class SnapshotStore:
    """Single-slot persistence of a collection.

    Args:
        backend: Where the snapshot lives.
        key: Name of the slot.
    """

    def __init__(self, backend: CacheBackend, key: str = DEFAULT_KEY):
        self._backend = backend
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    def load(self) -> list[Record] | None:
        """Return the stored collection, or ``None`` when no snapshot exists.

        Raises:
            StorageError: If the backend cannot be read.
            SnapshotCorruptError: If the slot holds something other than a
                list of records.
        """
        raw = self._backend.get(self._key)
        if raw is None:
            return None
        try:
            records = _RECORDS.validate_python(raw)
        except PydanticValidationError as exc:
            raise SnapshotCorruptError(
                f"Snapshot {self._key!r} is not a list of users", cause=exc
            ).with_context(cache_key=self._key)
        logger.debug("snapshot_loaded", key=self._key, count=len(records))
        return records

    def save(self, records: Sequence[Record]) -> None:
        """Replace the snapshot with ``records``.

        Raises:
            StorageError: If the backend cannot be written.
        """
        self._backend.set(self._key, [record.to_payload() for record in records])
        logger.debug("snapshot_saved", key=self._key, count=len(records))

    def clear(self) -> None:
        """Forget the snapshot; the next load falls back to the directory."""
        self._backend.delete(self._key)

    def exists(self) -> bool:
        return self._backend.exists(self._key)


def lookup_cached(store: SnapshotStore, record_id: int) -> Record:
    """Find one record in the snapshot without contacting the directory.

    Raises:
        SnapshotMissingError: If no snapshot has been written yet.
        RecordNotFoundError: If the snapshot has no record with ``record_id``.
    """
    records = store.load()
    if records is None:
        raise SnapshotMissingError().with_context(cache_key=store.key)
    for record in records:
        if record.id == record_id:
            return record
    raise RecordNotFoundError(record_id)


def build_store(settings: RosterSettings) -> SnapshotStore:
    """Create the snapshot store described by ``settings``."""
    backend: CacheBackend
    if settings.cache_backend is CacheBackendKind.MEMORY:
        backend = InMemoryCache()
    elif settings.cache_backend is CacheBackendKind.REDIS:
        backend = RedisCache(settings.redis_url)
    else:
        backend = FileCache(settings.data_dir)
    return SnapshotStore(backend, key=settings.cache_key)


__all__ = ["SnapshotStore", "lookup_cached", "build_store", "DEFAULT_KEY"]
