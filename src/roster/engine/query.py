"""Search over the collection.

The filtered view is derived on demand and never cached; the canonical
collection is not touched.
"""

from __future__ import annotations

from collections.abc import Iterable

from roster.core.models import Record


def filter_records(records: Iterable[Record], term: str) -> list[Record]:
    """Records whose ``name`` contains ``term``, case-insensitively, in collection order.

    An empty term matches every record.
    """
    needle = term.lower()
    return [record for record in records if needle in record.name.lower()]


__all__ = ["filter_records"]
