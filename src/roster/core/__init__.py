"""
Roster core primitives: models, errors, logging, settings and cache backends.
"""

from roster.core.cache import CacheBackend, FileCache, InMemoryCache, RedisCache
from roster.core.errors import (
    ConfigError,
    DirectoryError,
    DraftValidationError,
    ErrorCategory,
    ErrorContext,
    LoadError,
    MutationError,
    RecordNotFoundError,
    RosterError,
    SnapshotCorruptError,
    SnapshotMissingError,
    StorageError,
)
from roster.core.logging import LogContext, configure_logging, get_logger
from roster.core.models import Address, Company, Draft, Record
from roster.core.settings import RosterSettings, get_settings

__all__ = [
    # Models
    "Address",
    "Company",
    "Draft",
    "Record",
    # Errors
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
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # Settings
    "RosterSettings",
    "get_settings",
    # Cache
    "CacheBackend",
    "InMemoryCache",
    "FileCache",
    "RedisCache",
]
