"""Tests for recipes/models.py."""

from __future__ import annotations

import json
from collections.abc import Callable

from markupsafe import Markup

from recipebox.recipes.models import (
    BakedRecipe,
    Ingredient,
    IngredientsSection,
    Recipe,
    bake_markdown,
    make_ingredient_summaries,
)

ON_DISK = {
    "Name": "Pfannkuchen",
    "ImagePath": "/static/img/pfannkuchen.jpg",
    "Description": "Süß",
    "IngredientsSections": [
        {
            "Heading": "Teig",
            "Ingredients": [
                {"Name": "Mehl", "Amount": "250", "Unit": "g"},
                {"Name": "Eier", "Amount": "3"},
            ],
        }
    ],
    "Instructions": "Verrühren.",
    "Source": "",
}


class TestRecipeJson:
    """On-disk JSON format."""

    def test_parses_aliased_fields(self) -> None:
        recipe = Recipe.model_validate_json(json.dumps(ON_DISK))

        assert recipe.name == "Pfannkuchen"
        assert recipe.image_path == "/static/img/pfannkuchen.jpg"
        assert recipe.ingredients_sections[0].ingredients[1].unit == ""

    def test_serializes_aliased_fields_and_omits_empty_unit(self) -> None:
        recipe = Recipe.model_validate(ON_DISK)
        data = json.loads(recipe.to_json())

        assert data["Name"] == "Pfannkuchen"
        ingredients = data["IngredientsSections"][0]["Ingredients"]
        assert ingredients[0] == {"Name": "Mehl", "Amount": "250", "Unit": "g"}
        assert ingredients[1] == {"Name": "Eier", "Amount": "3"}

    def test_missing_fields_default_to_empty(self) -> None:
        recipe = Recipe.model_validate_json('{"Name": "Brot"}')
        assert recipe.description == ""
        assert recipe.ingredients_sections == []

    def test_unknown_fields_ignored(self) -> None:
        recipe = Recipe.model_validate({"Name": "Brot", "Rating": 5})
        assert recipe.name == "Brot"


class TestRecipeCleaned:
    """Normalization of submitted recipes."""

    def test_trims_and_uses_decimal_point(self) -> None:
        recipe = Recipe(
            name="  Brot  ",
            description=" lecker ",
            ingredients_sections=[
                IngredientsSection(
                    heading=" Teig ",
                    ingredients=[Ingredient(name=" Mehl ", amount=" 0,5 ", unit=" kg ")],
                )
            ],
            instructions="  Backen.  ",
        )

        cleaned = recipe.cleaned()

        assert cleaned.name == "Brot"
        assert cleaned.description == "lecker"
        section = cleaned.ingredients_sections[0]
        assert section.heading == "Teig"
        assert section.ingredients[0] == Ingredient(name="Mehl", amount="0.5", unit="kg")
        # Original is left untouched
        assert recipe.name == "  Brot  "


class TestIngredientSummaries:
    """Shopping list totals."""

    def test_sums_per_name_and_unit_in_first_appearance_order(self) -> None:
        sections = [
            IngredientsSection(
                ingredients=[
                    Ingredient(name="Zucker", amount="100", unit="g"),
                    Ingredient(name="Mehl", amount="200", unit="g"),
                ]
            ),
            IngredientsSection(
                ingredients=[
                    Ingredient(name="Mehl", amount="50", unit="g"),
                    Ingredient(name="Zucker", amount="1", unit="EL"),
                    Ingredient(name="Salz", amount="eine Prise"),
                ]
            ),
        ]

        summaries = make_ingredient_summaries(sections)

        assert [(s.name, s.unit, s.amount) for s in summaries] == [
            ("Zucker", "g", 100.0),
            ("Mehl", "g", 250.0),
            ("Zucker", "EL", 1.0),
        ]

    def test_empty(self) -> None:
        assert make_ingredient_summaries([]) == []


class TestBake:
    """Display form."""

    def test_markdown_is_rendered(self) -> None:
        html = bake_markdown("Alles **verrühren**.")
        assert isinstance(html, Markup)
        assert "<strong>verrühren</strong>" in html

    def test_markdown_is_sanitized(self) -> None:
        html = bake_markdown("Hallo <script>alert(1)</script>")
        assert "<script>" not in html

    def test_bake_builds_summaries(self, make_recipe: Callable[..., Recipe]) -> None:
        baked = make_recipe().bake()

        assert isinstance(baked, BakedRecipe)
        assert baked.name == "Pfannkuchen"
        assert [s.name for s in baked.ingredient_summaries] == ["Mehl", "Eier", "Milch"]
        assert "<strong>" in baked.instructions

    def test_blank_has_one_empty_section(self) -> None:
        blank = BakedRecipe.blank()
        assert len(blank.ingredients_sections) == 1
        assert blank.ingredients_sections[0].ingredients == []
