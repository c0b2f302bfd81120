"""In-memory recipe store mirrored to one JSON file per recipe.

The store has no lock of its own. Every mutation and every read that must be
consistent with the render cache goes through ``RecipesCoordinator``, which
serializes them with its read/write lock.

Persistence ordering: the file is written (or removed) first and the
in-memory mapping changes only after the file operation succeeded. A failed
write therefore never leaves a recipe in memory that is missing on disk.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

import structlog
from pydantic import ValidationError

from recipebox.config.constants import RECIPE_FILE_SUFFIX
from recipebox.core.errors import InternalError, StoreError
from recipebox.recipes.models import Recipe

logger = structlog.get_logger()


def parse_recipe_file(path: Path) -> Recipe:
    """Read one recipe JSON file."""
    try:
        return Recipe.model_validate_json(path.read_bytes())
    except (OSError, ValidationError) as e:
        raise StoreError.load_failed(str(path), str(e)) from e


def write_recipe_file(path: Path, recipe: Recipe) -> None:
    """Write a recipe atomically: temp file in the same folder, then rename."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(recipe.to_json())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


class RecipeStore:
    """Authoritative mapping from recipe id to recipe document."""

    def __init__(self, path: Path, recipes: dict[str, Recipe] | None = None) -> None:
        self.path = path
        self._recipes: dict[str, Recipe] = dict(recipes or {})

    @classmethod
    def load(cls, path: Path) -> RecipeStore:
        """Create the folder if needed and read every recipe file in it."""
        logger.info("loading_recipes", path=str(path))
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError.load_failed(str(path), str(e)) from e

        recipes: dict[str, Recipe] = {}
        for file in sorted(path.iterdir()):
            if file.suffix != RECIPE_FILE_SUFFIX or not file.is_file():
                continue
            recipes[file.stem] = parse_recipe_file(file)

        logger.info("recipes_loaded", count=len(recipes))
        return cls(path, recipes)

    def _file_for(self, rid: str) -> Path:
        return self.path / f"{rid}{RECIPE_FILE_SUFFIX}"

    def _persist(self, rid: str, recipe: Recipe) -> None:
        file = self._file_for(rid)
        try:
            write_recipe_file(file, recipe)
        except OSError as e:
            raise StoreError.write_failed(rid, str(file), str(e)) from e

    def add(self, rid: str, recipe: Recipe) -> bool:
        """Insert a new recipe.

        Returns:
            True if the id already exists (nothing changed), False once the
            recipe was written and inserted.

        Raises:
            StoreError: If the file could not be written. The store is unchanged.
        """
        if rid in self._recipes:
            return True
        self._persist(rid, recipe)
        self._recipes[rid] = recipe
        return False

    def replace(self, rid: str, recipe: Recipe) -> None:
        """Overwrite the recipe stored under ``rid`` and re-persist it."""
        self._persist(rid, recipe)
        self._recipes[rid] = recipe

    def remove(self, rid: str) -> bool:
        """Delete a recipe.

        Returns:
            False if the id is unknown, True once file and entry are gone.

        Raises:
            StoreError: If the file could not be deleted. The store is unchanged.
        """
        if rid not in self._recipes:
            return False
        file = self._file_for(rid)
        try:
            file.unlink()
        except FileNotFoundError:
            logger.warning("recipe_file_already_missing", id=rid, path=str(file))
        except OSError as e:
            raise StoreError.delete_failed(rid, str(file), str(e)) from e
        del self._recipes[rid]
        return True

    def get(self, rid: str) -> Recipe | None:
        return self._recipes.get(rid)

    def get_must_exist(self, rid: str) -> Recipe:
        """Look up a recipe the caller knows to be present.

        A miss means the store and the render cache disagree about which
        recipes exist, which is a programming error.
        """
        recipe = self._recipes.get(rid)
        if recipe is None:
            logger.critical("recipe_should_be_in_store", id=rid)
            raise InternalError.invariant_violation("recipe should be in store", id=rid)
        return recipe

    def get_all(self) -> Mapping[str, Recipe]:
        """Read-only live view of all recipes."""
        return MappingProxyType(self._recipes)

    def __contains__(self, rid: object) -> bool:
        return rid in self._recipes

    def __len__(self) -> int:
        return len(self._recipes)
