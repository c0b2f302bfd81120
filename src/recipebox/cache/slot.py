"""Lazily rendered, invalidatable page slot.

A slot holds at most one rendered page. ``get_or_render`` returns the stored
page without locking; on a miss it takes the slot lock, checks again and
renders. Concurrent misses on one slot therefore collapse into a single
render, and every caller receives the page that render produced.

A render that raises leaves the slot empty. Callers that were waiting behind
it do not see the exception; they retry the render themselves.
"""

from __future__ import annotations

import io
import threading
from collections.abc import Callable
from enum import Enum
from typing import TextIO

RenderFunction = Callable[[TextIO], None]
"""Writes a page into the given text sink; may raise."""


class SlotState(Enum):
    EMPTY = "empty"
    COMPUTING = "computing"
    READY = "ready"


class PageCacheSlot:
    """One cached page with single-flight fill."""

    __slots__ = ("_value", "_lock", "_computing")

    def __init__(self) -> None:
        self._value: str | None = None
        self._lock = threading.Lock()
        self._computing = False

    @property
    def state(self) -> SlotState:
        if self._computing:
            return SlotState.COMPUTING
        if self._value is None:
            return SlotState.EMPTY
        return SlotState.READY

    def invalidate(self) -> None:
        """Drop the stored page; the next read renders again."""
        with self._lock:
            self._value = None

    def get_or_render(self, render: RenderFunction) -> str:
        value = self._value
        if value is not None:
            return value
        return self._render(render)

    def _render(self, render: RenderFunction) -> str:
        with self._lock:
            value = self._value
            if value is None:
                sink = io.StringIO()
                self._computing = True
                try:
                    render(sink)
                finally:
                    self._computing = False
                value = sink.getvalue()
                self._value = value
            return value
