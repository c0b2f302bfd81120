"""Per-recipe cache records.

Each recipe id owns a record with two slots: the recipe page and its edit
page. ``PageCacheMap`` only guards its own dict. Its lock is released before
any slot is touched, so looking up one recipe never waits for another
recipe's render, nor for the render of the record it returns.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field

from recipebox.cache.slot import PageCacheSlot


@dataclass
class RecipePagesRecord:
    recipe_page: PageCacheSlot = field(default_factory=PageCacheSlot)
    edit_page: PageCacheSlot = field(default_factory=PageCacheSlot)

    def invalidate(self) -> None:
        self.edit_page.invalidate()
        self.recipe_page.invalidate()


class PageCacheMap:
    """Dynamic set of recipe records keyed by recipe id."""

    def __init__(self) -> None:
        self._records: dict[str, RecipePagesRecord] = {}
        self._lock = threading.Lock()

    def create(self, rid: str) -> None:
        """Register an empty record for ``rid``, replacing any existing one."""
        with self._lock:
            self._records[rid] = RecipePagesRecord()

    def remove(self, rid: str) -> None:
        with self._lock:
            self._records.pop(rid, None)

    def get(self, rid: str) -> RecipePagesRecord | None:
        with self._lock:
            return self._records.get(rid)

    def invalidate(self, rid: str) -> None:
        """Invalidate both pages of ``rid``; unknown ids are ignored."""
        record = self.get(rid)
        if record is not None:
            record.invalidate()

    def invalidate_all(self) -> None:
        with self._lock:
            records = list(self._records.values())
        for record in records:
            record.invalidate()

    def __contains__(self, rid: object) -> bool:
        with self._lock:
            return rid in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._records))
