"""
Client-side state reconciliation for the user-management screen.

Public surface:

- :class:`ReconciliationEngine` — owns the session collection
- :class:`SessionState` / :class:`Phase` — what front-ends render
- :class:`SnapshotStore` — local cache store
- :func:`validate_draft`, :func:`filter_records` — pure helpers
"""

from __future__ import annotations

from roster.core.settings import RosterSettings
from roster.directory import build_client
from roster.engine.query import filter_records
from roster.engine.reconciler import ReconciliationEngine, derive_username, next_id
from roster.engine.snapshot import SnapshotStore, build_store, lookup_cached
from roster.engine.state import Phase, SessionState, Source
from roster.engine.validation import validate_draft


def build_engine(settings: RosterSettings, *, offline: bool = False) -> ReconciliationEngine:
    """Wire an engine to the directory and snapshot described by ``settings``."""
    return ReconciliationEngine(
        build_client(settings, offline=offline),
        build_store(settings),
        username_prefix=settings.username_prefix,
    )


__all__ = [
    "ReconciliationEngine",
    "SessionState",
    "Phase",
    "Source",
    "SnapshotStore",
    "build_engine",
    "build_store",
    "lookup_cached",
    "filter_records",
    "validate_draft",
    "derive_username",
    "next_id",
]
