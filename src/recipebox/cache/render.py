"""Render cache facade.

Binds every cached page to the renderer call that produces it. The home
listing and the create form are process-wide singleton slots; recipe and edit
pages live in a ``PageCacheMap`` record per recipe id.

Renders read the store at computation time, so a page rendered after an
invalidation always reflects the store's current document.

Lock order is coordinator lock -> map lock -> slot lock. Nothing in this
module acquires the coordinator lock, and slots never call back into the map.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, TextIO

import structlog

from recipebox.cache.pages import PageCacheMap
from recipebox.cache.slot import PageCacheSlot

if TYPE_CHECKING:
    from recipebox.recipes.models import Recipe
    from recipebox.recipes.store import RecipeStore

logger = structlog.get_logger()


class PageRenderer(Protocol):
    """Renders pages into a text sink. Any method may raise."""

    def render_home(self, sink: TextIO, recipes: Mapping[str, Recipe]) -> None: ...

    def render_create(self, sink: TextIO) -> None: ...

    def render_recipe(self, sink: TextIO, rid: str, recipe: Recipe) -> None: ...

    def render_edit_recipe(self, sink: TextIO, rid: str, recipe: Recipe) -> None: ...


class RenderCache:
    def __init__(self, renderer: PageRenderer, store: RecipeStore) -> None:
        self.renderer = renderer
        self.store = store

        self.home = PageCacheSlot()
        self.create = PageCacheSlot()
        self.recipes = PageCacheMap()

        for rid in store.get_all():
            self.recipes.create(rid)

    # -----------------------------------------------------------------
    # Maintenance. Callers must hold the coordinator's write lock, with
    # the store already updated to what the next render should show.
    # -----------------------------------------------------------------

    def add_recipe(self, rid: str) -> None:
        self.recipes.create(rid)

    def remove_recipe(self, rid: str) -> None:
        self.recipes.remove(rid)

    def invalidate_home(self) -> None:
        self.home.invalidate()

    def invalidate_recipe(self, rid: str) -> None:
        self.recipes.invalidate(rid)

    def invalidate_all(self) -> None:
        self.recipes.invalidate_all()
        self.home.invalidate()
        self.create.invalidate()

    # -----------------------------------------------------------------
    # Page access
    # -----------------------------------------------------------------

    def get_home(self) -> str:
        def render(sink: TextIO) -> None:
            self.renderer.render_home(sink, self.store.get_all())

        return self.home.get_or_render(render)

    def get_create_page(self) -> str:
        return self.create.get_or_render(self.renderer.render_create)

    def get_recipe_page(self, rid: str) -> str | None:
        """Rendered recipe page, or None if ``rid`` is unknown."""
        record = self.recipes.get(rid)
        if record is None:
            return None

        def render(sink: TextIO) -> None:
            self.renderer.render_recipe(sink, rid, self.store.get_must_exist(rid))

        return record.recipe_page.get_or_render(render)

    def get_recipe_edit_page(self, rid: str) -> str | None:
        """Rendered edit page, or None if ``rid`` is unknown."""
        record = self.recipes.get(rid)
        if record is None:
            return None

        def render(sink: TextIO) -> None:
            self.renderer.render_edit_recipe(sink, rid, self.store.get_must_exist(rid))

        return record.edit_page.get_or_render(render)
