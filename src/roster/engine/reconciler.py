"""
Reconciliation engine.

Owns the canonical collection for one session and keeps it consistent with
both the remote directory and the local snapshot.

Manifesto:
    The directory echoes writes but never keeps them, so the only durable
    copy of the operator's work is the local snapshot.  Three rules follow:

    - **Cache wins at startup:** if a snapshot exists it seeds the
      collection and the freshly fetched directory data is discarded.
    - **Optimistic mutations:** once the remote call returns without
      raising, the local change is applied regardless of what the
      directory answered.
    - **Local ids:** new records get ``max(id) + 1``; the id the directory
      echoes is ignored.

    After every accepted mutation the whole collection is written back to
    the snapshot.  A failed write is logged and does not fail the mutation.

Architecture:
    ::

        front-end ──intent──▶ ReconciliationEngine ──▶ DirectoryClient
            ▲                    │   │                 (fetch/create/
            │                    │   └──────────────▶  update/delete)
            └──SessionState──────┘
                                 └──────────────────▶ SnapshotStore
                                                      (load once, save
                                                       after mutations)

Guardrails:
    Mutations are serialized by an ``asyncio.Lock`` so two overlapping
    creates can never compute the same next id.  Front-ends are still
    expected to disable mutation triggers while ``state.busy`` is true:
    queued mutations run against whatever collection exists when they get
    the lock.

Examples:
    >>> engine = ReconciliationEngine(EchoDirectoryClient(), SnapshotStore(InMemoryCache()))
    >>> await engine.load()
    >>> engine.open_form()
    >>> engine.edit("name", "Jane Doe")
    >>> engine.state.draft.username
    'USER-janedoe'

Tags:
    roster, reconciliation, optimistic-mutation, cache, state-machine

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator, Callable, Iterable, Sequence
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from roster.core.errors import (
    DirectoryError,
    DraftValidationError,
    LoadError,
    MutationError,
    RecordNotFoundError,
    StorageError,
)
from roster.core.logging import LogContext, get_logger
from roster.core.models import FIELD_ALIASES, Draft, Record
from roster.directory.client import DirectoryClient
from roster.engine.snapshot import SnapshotStore
from roster.engine.state import Phase, SessionState, Source
from roster.engine.validation import validate_draft

logger = get_logger(__name__)

DEFAULT_USERNAME_PREFIX = "USER-"

_WHITESPACE = re.compile(r"\s")

Listener = Callable[[SessionState], None]


def next_id(records: Iterable[Record]) -> int:
    """One more than the largest id in ``records`` (``1`` when empty)."""
    return max((record.id for record in records), default=0) + 1


def derive_username(name: str, prefix: str = DEFAULT_USERNAME_PREFIX) -> str:
    """``prefix`` followed by the lowercased name with all whitespace removed."""
    return prefix + _WHITESPACE.sub("", name.lower())


def _duplicate_ids(records: Sequence[Record]) -> set[int]:
    seen: set[int] = set()
    duplicates: set[int] = set()
    for record in records:
        if record.id in seen:
            duplicates.add(record.id)
        seen.add(record.id)
    return duplicates


class ReconciliationEngine:
    """Session owner of the user collection.

    Args:
        client: Remote directory.
        store: Local snapshot store.
        username_prefix: Prefix for usernames derived while creating.
    """

    def __init__(
        self,
        client: DirectoryClient,
        store: SnapshotStore,
        *,
        username_prefix: str = DEFAULT_USERNAME_PREFIX,
    ):
        self._client = client
        self._store = store
        self._username_prefix = username_prefix
        self._state = SessionState()
        self._mutation_lock = asyncio.Lock()
        self._listeners: list[Listener] = []

    # ── State access ─────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def records(self) -> list[Record]:
        return list(self._state.records)

    @property
    def view(self) -> list[Record]:
        return self._state.view

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the new state after every change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def aclose(self) -> None:
        """Release the directory client's resources."""
        await self._client.aclose()

    def _set(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    # ── Startup ──────────────────────────────────────────────────

    async def load(self) -> list[Record]:
        """Seed the collection: snapshot if present, directory otherwise.

        The directory is always fetched first; a failed fetch is fatal even
        when a snapshot exists.  Calling ``load`` on a ready session returns
        the current collection without touching either source.

        The winning source is taken as-is with one exception:
        duplicate ids are rejected with ``LoadError`` instead of being shown.
        This deliberately departs from treating the snapshot as absolute
        truth, since update and delete address records by id.

        Raises:
            LoadError: If the fetch or the snapshot read failed, or the
                winning source repeats an id.
        """
        if self._state.ready:
            return self.records

        self._set(phase=Phase.LOADING, error=None)
        logger.info("load_started")

        try:
            fetched = await self._client.fetch_all()
        except DirectoryError as exc:
            raise self._load_failed("Failed to fetch users", exc) from exc

        try:
            cached = self._store.load()
        except StorageError as exc:
            raise self._load_failed("Failed to read cached users", exc) from exc

        if cached is not None:
            records, source = cached, Source.CACHE
        else:
            records, source = fetched, Source.REMOTE

        duplicates = _duplicate_ids(records)
        if duplicates:
            raise self._load_failed(f"Duplicate user ids from {source.value}: {sorted(duplicates)}")

        self._set(phase=Phase.READY, records=tuple(records), source=source)
        logger.info(
            "collection_loaded",
            source=source.value,
            count=len(records),
            discarded_remote=len(fetched) if source is Source.CACHE else 0,
        )
        return self.records

    def _load_failed(self, message: str, cause: Exception | None = None) -> LoadError:
        error = LoadError(message, cause=cause).with_context(operation="load")
        self._set(phase=Phase.LOAD_ERROR, records=(), source=None, error=message)
        logger.error("load_failed", **error.to_dict())
        return error

    # ── Form intents ─────────────────────────────────────────────

    def get(self, record_id: int) -> Record:
        """Record with ``record_id``.

        Raises:
            RecordNotFoundError: If no such record exists.
        """
        for record in self._state.records:
            if record.id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    def open_form(self, record_id: int | None = None) -> Draft:
        """Start editing ``record_id``, or start a new record when ``None``."""
        if record_id is None:
            draft = Draft()
        else:
            draft = Draft.from_record(self.get(record_id))
        self._set(form_open=True, selected_id=record_id, draft=draft, field_errors={})
        return draft

    def close_form(self) -> None:
        """Drop the selection and the draft."""
        self._set(form_open=False, selected_id=None, draft=Draft(), field_errors={})

    def edit(self, path: str, value: str) -> Draft:
        """Change one draft field.

        While creating (no selection) every ``name`` edit also rewrites
        ``username``; once a record is selected the username stays fixed.

        Raises:
            KeyError: If ``path`` is not a draft field.
        """
        draft = self._state.draft.with_field(path, value)
        if FIELD_ALIASES.get(path, path) == "name" and self._state.selected_id is None:
            draft = draft.with_field("username", derive_username(value, self._username_prefix))
        self._set(draft=draft)
        return draft

    def set_search(self, term: str) -> list[Record]:
        self._set(search_term=term)
        return self._state.view

    # ── Mutations ────────────────────────────────────────────────

    async def create(self, draft: Draft | None = None) -> Record:
        """Commit the draft as a new record.

        Args:
            draft: Replaces the session draft before committing, if given.

        Raises:
            DraftValidationError: Draft is invalid; nothing was sent.
            MutationError: The directory call failed; collection unchanged.
        """
        if draft is not None:
            self._set(draft=draft)
        draft = self._validated_draft()

        async with self._mutation("create"):
            try:
                echoed = await self._client.create(draft)
            except DirectoryError as exc:
                raise self._mutation_failed(
                    "Failed to create user. Please try again.", exc, operation="create"
                ) from exc

            new_id = next_id(self._state.records)
            try:
                record = Record.model_validate({**draft.to_payload(), **echoed, "id": new_id})
            except PydanticValidationError as exc:
                raise self._mutation_failed(
                    "Directory returned an unusable user", exc, operation="create"
                ) from exc

            self._commit(
                (*self._state.records, record),
                form_open=False,
                selected_id=None,
                draft=Draft(),
                field_errors={},
            )
            logger.info("record_created", record_id=new_id, remote_id=echoed.get("id"))
            return record

    async def update(self, draft: Draft | None = None) -> Record:
        """Commit the draft over the selected record.

        The directory's answer is ignored.  Fields the draft does not carry
        are kept, and the record keeps its id and its position.

        Raises:
            MutationError: Nothing is selected, or the directory call failed.
            RecordNotFoundError: The selected record no longer exists.
            DraftValidationError: Draft is invalid; nothing was sent.
        """
        if draft is not None:
            self._set(draft=draft)
        record_id = self._state.selected_id
        if record_id is None:
            raise MutationError("No user selected for update", retryable=False).with_context(
                operation="update"
            )
        draft = self._validated_draft()

        async with self._mutation("update", record_id=record_id):
            current = self.get(record_id)
            try:
                await self._client.update(record_id, draft)
            except DirectoryError as exc:
                raise self._mutation_failed(
                    "Failed to update user. Please try again.",
                    exc,
                    operation="update",
                    record_id=record_id,
                ) from exc

            updated = current.merged_with(draft)
            self._commit(
                tuple(updated if record.id == record_id else record for record in self._state.records),
                form_open=False,
                selected_id=None,
                draft=Draft(),
                field_errors={},
            )
            logger.info("record_updated", record_id=record_id)
            return updated

    async def delete(self, record_id: int) -> bool:
        """Remove ``record_id`` once the directory call returns.

        Returns:
            True if a record was removed, False if the id was not present
            (the collection and the snapshot are then left untouched).

        Raises:
            MutationError: The directory call failed; collection unchanged.
        """
        async with self._mutation("delete", record_id=record_id):
            try:
                await self._client.delete(record_id)
            except DirectoryError as exc:
                raise self._mutation_failed(
                    "Failed to delete user. Please try again.",
                    exc,
                    operation="delete",
                    record_id=record_id,
                ) from exc

            remaining = tuple(record for record in self._state.records if record.id != record_id)
            if len(remaining) == len(self._state.records):
                logger.info("delete_missing", record_id=record_id)
                return False

            changes: dict[str, Any] = {}
            if self._state.selected_id == record_id:
                changes = dict(form_open=False, selected_id=None, draft=Draft(), field_errors={})
            self._commit(remaining, **changes)
            logger.info("record_deleted", record_id=record_id)
            return True

    # ── Internals ────────────────────────────────────────────────

    def _validated_draft(self) -> Draft:
        draft = self._state.draft
        errors = validate_draft(draft)
        self._set(field_errors=errors)
        if errors:
            logger.info("draft_rejected", fields=sorted(errors))
            raise DraftValidationError(errors)
        return draft

    @asynccontextmanager
    async def _mutation(self, operation: str, **fields: Any) -> AsyncIterator[None]:
        if not self._state.ready:
            raise MutationError(
                f"Cannot {operation}: users are not loaded", retryable=False
            ).with_context(operation=operation, **fields)

        self._set(phase=Phase.MUTATING, pending=self._state.pending + 1, error=None)
        try:
            async with self._mutation_lock:
                async with LogContext(operation=operation, **fields):
                    yield
        finally:
            pending = self._state.pending - 1
            self._set(phase=Phase.MUTATING if pending else Phase.READY, pending=pending)

    def _mutation_failed(self, message: str, cause: Exception, **context: Any) -> MutationError:
        error = MutationError(message, cause=cause).with_context(**context)
        self._set(error=message)
        logger.warning("mutation_failed", **error.to_dict())
        return error

    def _commit(self, records: tuple[Record, ...], **changes: Any) -> None:
        self._set(records=records, **changes)
        try:
            self._store.save(records)
        except StorageError as exc:
            logger.warning("snapshot_save_failed", **exc.to_dict())


__all__ = ["ReconciliationEngine", "next_id", "derive_username", "DEFAULT_USERNAME_PREFIX"]
