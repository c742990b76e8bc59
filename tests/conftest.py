"""
Shared pytest fixtures for roster tests.

This module provides:
- A small directory seed with one record carrying extra remote-only fields
- In-memory snapshot stores and echo directory clients
- A ready-to-load ``ReconciliationEngine``
- A draft that passes every validation rule
"""

import os
import sys
from pathlib import Path
from typing import Any

import pytest
import structlog

# Ensure roster package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from roster.core.cache import InMemoryCache
from roster.core.models import AddressDraft, CompanyDraft, Draft
from roster.core.settings import clear_settings_cache
from roster.directory.memory import EchoDirectoryClient
from roster.engine.reconciler import ReconciliationEngine
from roster.engine.snapshot import SnapshotStore


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        if "integration" in str(item.fspath) or "cli" in Path(str(item.fspath)).parts:
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """Never let a developer's ROSTER_* environment leak into tests."""
    for key in list(os.environ):
        if key.startswith("ROSTER_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Data
# =============================================================================


@pytest.fixture
def remote_users() -> list[dict[str, Any]]:
    """What the directory answers to GET /users."""
    return [
        {
            "id": 1,
            "name": "Ann Lee",
            "username": "ann",
            "email": "ann@example.com",
            "phone": "555-123-4567",
            "address": {"street": "Main", "suite": "Apt. 1", "city": "Springfield", "zipcode": "12345"},
            "company": {"name": "Acme", "catchPhrase": "We make things"},
            "website": "ann.dev",
        },
        {
            "id": 2,
            "name": "Bob Stone",
            "username": "bob",
            "email": "bob@example.com",
            "phone": "555 987 6543",
            "address": {"street": "Oak", "city": "Shelbyville"},
            "company": {"name": "Globex"},
            "website": "bob.org",
        },
        {
            "id": 5,
            "name": "anna Park",
            "username": "anna",
            "email": "anna@example.com",
            "phone": "+1 555 000 1111",
            "address": {"street": "Elm", "city": "Ogdenville"},
        },
    ]


@pytest.fixture
def cached_users() -> list[dict[str, Any]]:
    """A snapshot that differs from the directory."""
    return [
        {"id": 7, "name": "Cached Carol", "email": "carol@example.com", "phone": "5551234567"},
        {"id": 3, "name": "Cached Dave", "email": "dave@example.com", "phone": "5557654321"},
    ]


@pytest.fixture
def valid_draft() -> Draft:
    return Draft(
        name="Alice",
        email="a@b.co",
        phone="1234567890",
        address=AddressDraft(street="Main", city="Springfield"),
    )


@pytest.fixture
def full_draft(valid_draft: Draft) -> Draft:
    return valid_draft.model_copy(
        update={"company": CompanyDraft(name="Initech"), "website": "https://alice.example.com"}
    )


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def store(cache: InMemoryCache) -> SnapshotStore:
    return SnapshotStore(cache)


@pytest.fixture
def directory(remote_users) -> EchoDirectoryClient:
    return EchoDirectoryClient(remote_users)


@pytest.fixture
def engine(directory: EchoDirectoryClient, store: SnapshotStore) -> ReconciliationEngine:
    """Engine in IDLE phase; tests call ``await engine.load()``."""
    return ReconciliationEngine(directory, store)
