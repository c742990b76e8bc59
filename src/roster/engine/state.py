"""
Session state of the management screen.

Everything a front-end renders lives in one immutable ``SessionState``
value owned by the engine: the collection, the search term, the selection,
the draft and its field errors, the busy flag and the last error.  The
engine replaces the value on every change; front-ends render it and send
intents back, holding no state of their own.

Architecture:
    ::

        IDLE ──load()──▶ LOADING ──▶ READY ◀──┐
                            │          │       │ mutation settles
                            ▼          ▼       │ (success or MutationError)
                        LOAD_ERROR   MUTATING ─┘

Tags:
    roster, state, session, state-machine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from roster.core.models import Draft, Record
from roster.engine.query import filter_records


class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    LOAD_ERROR = "load_error"
    MUTATING = "mutating"


class Source(str, Enum):
    """Which data source seeded the collection at startup."""

    CACHE = "cache"
    REMOTE = "remote"


@dataclass(frozen=True)
class SessionState:
    """Snapshot of one session.

    Attributes:
        phase: Where the session is in its lifecycle.
        records: Canonical collection, in display order.
        source: Data source that won startup reconciliation.
        search_term: Current search input.
        form_open: Whether the create/edit form is shown.
        selected_id: Record being edited, ``None`` while creating.
        draft: Form contents.
        field_errors: Dotted field path → message from the last commit attempt.
        pending: Mutations started and not yet settled.
        error: Message of the last load or mutation failure.
    """

    phase: Phase = Phase.IDLE
    records: tuple[Record, ...] = ()
    source: Source | None = None
    search_term: str = ""
    form_open: bool = False
    selected_id: int | None = None
    draft: Draft = field(default_factory=Draft)
    field_errors: dict[str, str] = field(default_factory=dict)
    pending: int = 0
    error: str | None = None

    @property
    def busy(self) -> bool:
        """True while a load or a mutation is outstanding."""
        return self.phase in (Phase.LOADING, Phase.MUTATING)

    @property
    def load_failed(self) -> bool:
        return self.phase is Phase.LOAD_ERROR

    @property
    def ready(self) -> bool:
        return self.phase in (Phase.READY, Phase.MUTATING)

    @property
    def editing(self) -> bool:
        """True when the draft targets an existing record."""
        return self.selected_id is not None

    @property
    def view(self) -> list[Record]:
        """Records matching ``search_term``, in collection order."""
        return filter_records(self.records, self.search_term)


__all__ = ["Phase", "Source", "SessionState"]
