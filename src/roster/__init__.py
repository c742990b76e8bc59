"""
roster — user-directory management with a locally reconciled collection.

The remote directory is treated as non-durable; the engine keeps the
operator's work in a local snapshot and reconciles the two at startup.
"""

__version__ = "0.1.0"

from roster.core.errors import (
    DraftValidationError,
    LoadError,
    MutationError,
    RecordNotFoundError,
    RosterError,
)
from roster.core.models import Draft, Record
from roster.engine import ReconciliationEngine, SessionState, build_engine

__all__ = [
    "__version__",
    "Draft",
    "Record",
    "ReconciliationEngine",
    "SessionState",
    "build_engine",
    "RosterError",
    "LoadError",
    "DraftValidationError",
    "MutationError",
    "RecordNotFoundError",
]
