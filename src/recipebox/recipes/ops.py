"""Recipe operations: store mutations and cached page reads.

This module implements the RecipesCoordinator, the only entry point HTTP
handlers and file-change notifications use. It enforces the consistency
invariants between the store and the render cache:

- Every mutation holds the write lock from the store change until the
  affected cache slots are invalidated, so no reader sees a page rendered from
  a superseded recipe.
- A cache record exists for an id exactly when the store holds that id. Both
  sides change together in ``_add`` and ``_remove``.
- Page reads hold the read lock for the whole lookup, including a render on a
  cache miss. Cache hits only contend on the shared lock.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from recipebox.cache.render import PageRenderer, RenderCache
from recipebox.core.locks import ReadWriteLock

if TYPE_CHECKING:
    from recipebox.recipes.models import Recipe
    from recipebox.recipes.store import RecipeStore

logger = structlog.get_logger()


class RecipesCoordinator:
    """
    Serializes recipe mutations against cached page reads.

    Usage::

        store = RecipeStore.load(Path("recipes"))
        recipes = RecipesCoordinator(store, PageRenderer(base_url, templates))

        html = recipes.get_recipe_page("nasi-goreng")  # None if unknown
        already_exists = recipes.add_recipe("crepe", recipe)
    """

    def __init__(self, store: RecipeStore, renderer: PageRenderer) -> None:
        self.store = store
        self.cache = RenderCache(renderer, store)
        self._lock = ReadWriteLock()

    # -----------------------------------------------------------------
    # Paired store + cache changes. Write lock must be held.
    # -----------------------------------------------------------------

    def _add(self, rid: str, recipe: Recipe) -> bool:
        if self.store.add(rid, recipe):
            return True
        self.cache.add_recipe(rid)
        self.cache.invalidate_home()
        return False

    def _remove(self, rid: str) -> bool:
        if not self.store.remove(rid):
            return False
        self.cache.remove_recipe(rid)
        self.cache.invalidate_home()
        return True

    def _replace(self, rid: str, recipe: Recipe) -> None:
        self.store.replace(rid, recipe)
        self.cache.invalidate_recipe(rid)
        self.cache.invalidate_home()

    # -----------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------

    def add_recipe(self, rid: str, recipe: Recipe) -> bool:
        """Add a new recipe. Returns True if the id already exists."""
        with self._lock.write():
            return self._add(rid, recipe)

    def replace_recipe(self, rid: str, old_rid: str, recipe: Recipe) -> bool:
        """Store ``recipe`` under ``rid`` in place of the recipe at ``old_rid``.

        A changed id is an add followed by a remove under one write lock. If
        ``rid`` is already taken nothing changes and True is returned; the old
        recipe stays in place.
        """
        with self._lock.write():
            if rid != old_rid:
                if self._add(rid, recipe):
                    return True
                self._remove(old_rid)
                return False

            if rid not in self.store:
                logger.info("replace_of_unknown_recipe", id=rid)
                return self._add(rid, recipe)
            self._replace(rid, recipe)
            return False

    def remove_recipe(self, rid: str) -> bool:
        """Delete a recipe. Returns False if the id is unknown."""
        with self._lock.write():
            return self._remove(rid)

    def invalidate_all(self) -> None:
        """Drop every cached page, e.g. after the templates changed."""
        with self._lock.write():
            self.cache.invalidate_all()
        logger.debug("render_cache_invalidated")

    # -----------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------

    def get_home_page(self) -> str:
        with self._lock.read():
            return self.cache.get_home()

    def get_create_page(self) -> str:
        with self._lock.read():
            return self.cache.get_create_page()

    def get_recipe_page(self, rid: str) -> str | None:
        with self._lock.read():
            return self.cache.get_recipe_page(rid)

    def get_recipe_edit_page(self, rid: str) -> str | None:
        with self._lock.read():
            return self.cache.get_recipe_edit_page(rid)

    def recipe_count(self) -> int:
        with self._lock.read():
            return len(self.store)
