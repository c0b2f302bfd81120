"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

from __future__ import annotations

import sys
import threading
from collections import Counter
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TextIO

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local recipebox package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of recipebox modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("recipebox"):
        del sys.modules[module_name]

from recipebox.recipes.models import Ingredient, IngredientsSection, Recipe  # noqa: E402


class CountingRenderer:
    """Renderer double that records every render call.

    Pages embed the recipe name so tests can tell which version of a
    document a cached page was rendered from. ``fail`` makes the next
    renders of a page kind raise.
    """

    def __init__(self) -> None:
        self.calls: Counter[str] = Counter()
        self.fail: set[str] = set()
        self._lock = threading.Lock()

    def _count(self, kind: str) -> None:
        with self._lock:
            self.calls[kind] += 1
        if kind in self.fail:
            raise RuntimeError(f"{kind} render failed")

    def render_home(self, sink: TextIO, recipes: Mapping[str, Recipe]) -> None:
        self._count("home")
        sink.write("home:" + ",".join(f"{rid}={r.name}" for rid, r in sorted(recipes.items())))

    def render_create(self, sink: TextIO) -> None:
        self._count("create")
        sink.write("create")

    def render_recipe(self, sink: TextIO, rid: str, recipe: Recipe) -> None:
        self._count("recipe")
        sink.write(f"recipe:{rid}:{recipe.name}")

    def render_edit_recipe(self, sink: TextIO, rid: str, recipe: Recipe) -> None:
        self._count("edit")
        sink.write(f"edit:{rid}:{recipe.name}")


@pytest.fixture
def counting_renderer() -> CountingRenderer:
    return CountingRenderer()


@pytest.fixture
def make_recipe() -> Callable[..., Recipe]:
    """Factory for small recipes."""

    def factory(name: str = "Pfannkuchen", **kwargs: object) -> Recipe:
        data: dict[str, object] = {
            "name": name,
            "description": "Einfach und schnell",
            "ingredients_sections": [
                IngredientsSection(
                    heading="Teig",
                    ingredients=[
                        Ingredient(name="Mehl", amount="250", unit="g"),
                        Ingredient(name="Eier", amount="3"),
                        Ingredient(name="Milch", amount="500", unit="ml"),
                    ],
                )
            ],
            "instructions": "Alles **verrühren** und ausbacken.",
            "source": "Oma",
        }
        data.update(kwargs)
        return Recipe(**data)  # type: ignore[arg-type]

    return factory
