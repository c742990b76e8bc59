"""
Structured error types for the roster engine.

Every failure the engine can surface to a front-end is one of a small set
of typed errors.  Each carries a category for routing, a ``retryable`` hint
telling the operator whether re-triggering the same action can succeed, a
structured context, and the chained underlying cause.

Manifesto:
    A user-management screen has exactly three kinds of failure the
    operator cares about: the session could not start, the form is wrong,
    or the remote call failed.  Those map one-to-one onto ``LoadError``,
    ``DraftValidationError`` and ``MutationError``.  Everything else
    (transport, storage, configuration) is raised by a collaborator and
    wrapped by the engine with the original exception chained.

    - **Typed hierarchy:** front-ends branch on the class, not on strings
    - **Manual retry only:** nothing in roster retries automatically
    - **Rich context:** record id, operation, url and status for logs
    - **Error chaining:** ``cause`` and ``__cause__`` keep the root cause

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                         RosterError                           │
        │             (category, retryable, context, cause)             │
        ├──────────────────────────────────────────────────────────────┤
        │  LoadError          DraftValidationError     MutationError    │
        │  (LOAD, fatal)      (VALIDATION, errors)     (MUTATION)       │
        │                                                  │            │
        │                                          RecordNotFoundError  │
        │                                                               │
        │  DirectoryError     StorageError             ConfigError      │
        │  (NETWORK)          (STORAGE)                (CONFIG)         │
        │                          │                                    │
        │                  SnapshotMissingError                         │
        │                  SnapshotCorruptError                         │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> err = MutationError("Failed to update user. Please try again.")
    >>> err.retryable
    True
    >>> err.with_context(operation="update", record_id=3).context.record_id
    3

Tags:
    errors, exception-hierarchy, roster, observability

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and log routing."""

    # Session / engine
    LOAD = "LOAD"                 # Startup reconciliation failed
    VALIDATION = "VALIDATION"     # Draft field constraints
    MUTATION = "MUTATION"         # Create / update / delete failed

    # Collaborators
    NETWORK = "NETWORK"           # Directory transport, non-2xx
    STORAGE = "STORAGE"           # Snapshot read / write
    CONFIG = "CONFIG"             # Invalid settings

    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a ``RosterError``.

    Only the non-``None`` fields are emitted by :meth:`to_dict`, so errors
    log cleanly as structlog key/value pairs.

    Attributes:
        operation: Engine operation (``load``, ``create``, ``update``, ``delete``)
        record_id: Record the operation targeted, if any
        url: Remote URL that was being accessed
        http_status: HTTP status code returned by the directory
        cache_key: Snapshot slot involved in a storage failure
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    record_id: int | None = None
    url: str | None = None
    http_status: int | None = None
    cache_key: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def known_keys(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls) if f.name != "metadata")

    def to_dict(self) -> dict[str, Any]:
        """Set fields, then metadata, flattened into one mapping."""
        flat = {key: getattr(self, key) for key in sorted(self.known_keys())}
        return {key: value for key, value in flat.items() if value is not None} | self.metadata


class RosterError(Exception):
    """
    Base exception for all roster errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance.  ``retryable`` is a hint to the operator
    (re-trigger the action by hand), never a signal for automatic retry.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = self.default_category if category is None else category
        self.retryable = self.default_retryable if retryable is None else retryable
        self.context = ErrorContext() if context is None else context
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **values: Any) -> RosterError:
        """Record context on this error and return it, for ``raise X(...).with_context(...)``.

        Names that are not ``ErrorContext`` fields land in ``metadata``.
        """
        known = ErrorContext.known_keys()
        for key, value in values.items():
            if key in known:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Loggable summary, suitable for ``logger.warning(event, **err.to_dict())``."""
        summary: dict[str, Any] = dict(
            error_type=type(self).__name__,
            message=self.message,
            category=self.category.value,
            retryable=self.retryable,
        )
        if context := self.context.to_dict():
            summary["context"] = context
        if self.cause is not None:
            summary["cause"] = str(self.cause)
        return summary

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# ENGINE ERRORS
# =============================================================================


class LoadError(RosterError):
    """
    Startup reconciliation failed (remote fetch or snapshot read).

    Fatal to the session: no collection is shown.
    """

    default_category = ErrorCategory.LOAD
    default_retryable = False


class DraftValidationError(RosterError):
    """
    The draft violates one or more field rules.

    ``errors`` maps dotted field paths to human-readable messages.  No
    mutation and no network call happened.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(self, errors: dict[str, str], message: str | None = None, **kwargs: Any):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(message or f"Invalid fields: {fields}", **kwargs)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = dict(self.errors)
        return result


class MutationError(RosterError):
    """
    Create, update or delete failed.

    The collection is left at its pre-mutation state and the operator may
    re-trigger the action.
    """

    default_category = ErrorCategory.MUTATION
    default_retryable = True


class RecordNotFoundError(MutationError):
    """No record with the requested id exists in the collection."""

    default_retryable = False

    def __init__(self, record_id: int, message: str | None = None):
        self.record_id = record_id
        super().__init__(message or "User not found")
        self.context.record_id = record_id


# =============================================================================
# COLLABORATOR ERRORS
# =============================================================================


class DirectoryError(RosterError):
    """Remote directory call failed (transport error, non-2xx, bad body)."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class StorageError(RosterError):
    """Snapshot backend failure."""

    default_category = ErrorCategory.STORAGE
    default_retryable = False


class SnapshotMissingError(StorageError):
    """No snapshot has been written yet."""

    def __init__(self, message: str | None = None):
        super().__init__(message or "No user data available")


class SnapshotCorruptError(StorageError):
    """The stored snapshot is not a valid serialized collection."""


class ConfigError(RosterError):
    """
    Settings failed validation.

    Raised by ``get_settings``; fix the environment and restart.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RosterError",
    "LoadError",
    "DraftValidationError",
    "MutationError",
    "RecordNotFoundError",
    "DirectoryError",
    "StorageError",
    "SnapshotMissingError",
    "SnapshotCorruptError",
    "ConfigError",
]
