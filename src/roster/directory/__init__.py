"""
Remote directory access.

``build_client`` picks the implementation from settings so front-ends never
construct clients by hand.
"""

from __future__ import annotations

from roster.core.settings import RosterSettings
from roster.directory.client import DirectoryClient, HttpDirectoryClient
from roster.directory.memory import SAMPLE_USERS, EchoDirectoryClient


def build_client(settings: RosterSettings, *, offline: bool = False) -> DirectoryClient:
    """Create the directory client described by ``settings``.

    ``offline=True`` returns an :class:`EchoDirectoryClient` seeded with
    ``SAMPLE_USERS`` instead of talking to ``settings.api_base_url``.
    """
    if offline:
        return EchoDirectoryClient()
    return HttpDirectoryClient(settings.api_base_url, timeout=settings.request_timeout)


__all__ = [
    "DirectoryClient",
    "HttpDirectoryClient",
    "EchoDirectoryClient",
    "SAMPLE_USERS",
    "build_client",
]
