"""Tests for ReconciliationEngine.load — startup reconciliation of snapshot vs directory."""

import pytest

from roster.core.errors import LoadError, MutationError, SnapshotCorruptError
from roster.core.models import Record
from roster.directory.memory import EchoDirectoryClient
from roster.engine.reconciler import ReconciliationEngine
from roster.engine.snapshot import DEFAULT_KEY
from roster.engine.state import Phase, Source


def _payloads(records):
    return [record.to_payload() for record in records]


class TestLoadPrecedence:
    @pytest.mark.asyncio
    async def test_without_snapshot_directory_seeds_collection(self, engine, remote_users, store):
        records = await engine.load()

        assert _payloads(records) == remote_users
        assert engine.state.phase is Phase.READY
        assert engine.state.source is Source.REMOTE
        # Loading alone never writes the snapshot
        assert store.load() is None

    @pytest.mark.asyncio
    async def test_snapshot_overrides_directory(self, engine, directory, store, cached_users):
        store.save([Record.model_validate(u) for u in cached_users])

        records = await engine.load()

        assert _payloads(records) == cached_users
        assert engine.state.source is Source.CACHE
        # The directory is still consulted first
        assert directory.calls == [("fetch_all", ())]

    @pytest.mark.asyncio
    async def test_empty_snapshot_still_wins(self, engine, store):
        store.save([])
        assert await engine.load() == []
        assert engine.state.source is Source.CACHE

    @pytest.mark.asyncio
    async def test_second_load_is_a_no_op(self, engine, directory):
        await engine.load()
        await engine.load()
        assert directory.calls == [("fetch_all", ())]

    @pytest.mark.asyncio
    async def test_phases(self, engine):
        phases = []
        engine.subscribe(lambda state: phases.append((state.phase, state.busy)))

        await engine.load()

        assert phases == [(Phase.LOADING, True), (Phase.READY, False)]


class TestLoadFailures:
    @pytest.mark.asyncio
    async def test_fetch_failure_is_fatal_even_with_snapshot(self, store, cached_users):
        store.save([Record.model_validate(u) for u in cached_users])
        engine = ReconciliationEngine(EchoDirectoryClient([], fail_on={"fetch_all"}), store)

        with pytest.raises(LoadError, match="Failed to fetch users"):
            await engine.load()

        assert engine.state.phase is Phase.LOAD_ERROR
        assert engine.state.load_failed
        assert engine.state.records == ()
        assert engine.state.error == "Failed to fetch users"
        assert not engine.state.busy

    @pytest.mark.asyncio
    async def test_corrupt_snapshot(self, engine, cache):
        cache.set(DEFAULT_KEY, [{"id": "not-an-int"}])

        with pytest.raises(LoadError) as exc_info:
            await engine.load()

        assert isinstance(exc_info.value.cause, SnapshotCorruptError)
        assert engine.state.load_failed

    @pytest.mark.asyncio
    async def test_duplicate_ids_rejected(self, engine, store):
        store.save([Record(id=1, name="Ann"), Record(id=1, name="Twin")])

        with pytest.raises(LoadError, match="Duplicate user ids"):
            await engine.load()

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, store, remote_users):
        directory = EchoDirectoryClient(remote_users, fail_on={"fetch_all"})
        engine = ReconciliationEngine(directory, store)
        with pytest.raises(LoadError):
            await engine.load()

        directory.fail_on.clear()
        assert len(await engine.load()) == 3
        assert engine.state.error is None

    @pytest.mark.asyncio
    async def test_mutations_refused_before_load(self, engine):
        with pytest.raises(MutationError, match="not loaded"):
            await engine.delete(1)
