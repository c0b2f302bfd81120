"""Render cache: single-flight page slots, per-recipe records, facade."""

from recipebox.cache.pages import PageCacheMap, RecipePagesRecord
from recipebox.cache.render import PageRenderer, RenderCache
from recipebox.cache.slot import PageCacheSlot, RenderFunction, SlotState

__all__ = [
    "PageCacheMap",
    "PageCacheSlot",
    "PageRenderer",
    "RecipePagesRecord",
    "RenderCache",
    "RenderFunction",
    "SlotState",
]
