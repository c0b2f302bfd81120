"""Recipe documents, their store, and the coordinating operations layer."""

from recipebox.recipes.ids import to_id_string
from recipebox.recipes.models import (
    BakedRecipe,
    Ingredient,
    IngredientsSection,
    IngredientSummary,
    Recipe,
    bake_markdown,
    make_ingredient_summaries,
)
from recipebox.recipes.ops import RecipesCoordinator
from recipebox.recipes.store import RecipeStore

__all__ = [
    "BakedRecipe",
    "Ingredient",
    "IngredientSummary",
    "IngredientsSection",
    "Recipe",
    "RecipeStore",
    "RecipesCoordinator",
    "bake_markdown",
    "make_ingredient_summaries",
    "to_id_string",
]
