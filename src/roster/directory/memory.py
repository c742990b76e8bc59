"""In-process echo directory.

Behaves like the public mock API the management screen was built against:
``fetch_all`` always returns the same seed, writes are answered with an echo
of the request and then forgotten.  Used by tests and by ``roster --offline``.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from roster.core.errors import DirectoryError
from roster.core.models import Draft, Record

SAMPLE_USERS: list[dict[str, Any]] = [
    {
        "id": 1,
        "name": "Leanne Graham",
        "username": "Bret",
        "email": "Sincere@april.biz",
        "address": {"street": "Kulas Light", "suite": "Apt. 556", "city": "Gwenborough"},
        "phone": "1-770-736-8031",
        "website": "hildegard.org",
        "company": {"name": "Romaguera-Crona"},
    },
    {
        "id": 2,
        "name": "Ervin Howell",
        "username": "Antonette",
        "email": "Shanna@melissa.tv",
        "address": {"street": "Victor Plains", "suite": "Suite 879", "city": "Wisokyburgh"},
        "phone": "010-692-6593",
        "website": "anastasia.net",
        "company": {"name": "Deckow-Crist"},
    },
    {
        "id": 3,
        "name": "Clementine Bauch",
        "username": "Samantha",
        "email": "Nathan@yesenia.net",
        "address": {"street": "Douglas Extension", "suite": "Suite 847", "city": "McKenziehaven"},
        "phone": "1-463-123-4447",
        "website": "ramiro.info",
        "company": {"name": "Romaguera-Jacobson"},
    },
]


class EchoDirectoryClient:
    """Non-durable directory living in process memory.

    Args:
        seed: Records returned by every ``fetch_all``; defaults to ``SAMPLE_USERS``.
        fail_on: Operation names (``fetch_all``, ``create``, ``update``,
            ``delete``) that raise ``DirectoryError`` instead of answering.

    Every call is appended to ``calls`` as ``(operation, args)``.
    """

    def __init__(
        self,
        seed: Iterable[dict[str, Any] | Record] | None = None,
        *,
        fail_on: Iterable[str] = (),
    ):
        source = SAMPLE_USERS if seed is None else seed
        self._seed = [
            item.to_payload() if isinstance(item, Record) else dict(item) for item in source
        ]
        self.fail_on = set(fail_on)
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _enter(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if operation in self.fail_on:
            raise DirectoryError(f"{operation} failed").with_context(operation=operation)

    async def fetch_all(self) -> list[Record]:
        self._enter("fetch_all")
        return [Record.model_validate(item) for item in self._seed]

    async def create(self, draft: Draft) -> dict[str, Any]:
        self._enter("create", draft)
        # Same as the public mock: every new user gets "the next" id, and it is never stored
        return {**draft.to_payload(), "id": len(self._seed) + 1}

    async def update(self, record_id: int, draft: Draft) -> dict[str, Any] | None:
        self._enter("update", record_id, draft)
        return {**draft.to_payload(), "id": record_id}

    async def delete(self, record_id: int) -> None:
        self._enter("delete", record_id)

    async def aclose(self) -> None:
        pass


__all__ = ["EchoDirectoryClient", "SAMPLE_USERS"]
