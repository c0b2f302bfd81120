"""Recipe documents and their display form.

The JSON field names (``Name``, ``IngredientsSections``, ...) are the on-disk
format of the recipes folder and of the edit form's request body.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import markdown
import nh3
from markupsafe import Markup
from pydantic import BaseModel, ConfigDict, Field, model_serializer


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Ingredient(_Document):
    name: str = Field(default="", alias="Name")
    amount: str = Field(default="", alias="Amount")
    unit: str = Field(default="", alias="Unit")

    @model_serializer(mode="plain")
    def _serialize(self) -> dict[str, str]:
        data = {"Name": self.name, "Amount": self.amount}
        if self.unit:
            data["Unit"] = self.unit
        return data


class IngredientsSection(_Document):
    heading: str = Field(default="", alias="Heading")
    ingredients: list[Ingredient] = Field(default_factory=list, alias="Ingredients")


class Recipe(_Document):
    """A recipe as stored on disk and posted by the edit form."""

    name: str = Field(default="", alias="Name")
    image_path: str = Field(default="", alias="ImagePath")
    description: str = Field(default="", alias="Description")
    ingredients_sections: list[IngredientsSection] = Field(
        default_factory=list, alias="IngredientsSections"
    )
    instructions: str = Field(default="", alias="Instructions")
    source: str = Field(default="", alias="Source")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def cleaned(self) -> Recipe:
        """Return a copy with surrounding whitespace trimmed and decimal commas as dots."""
        return Recipe(
            name=self.name.strip(),
            image_path=self.image_path,
            description=self.description.strip(),
            ingredients_sections=[
                IngredientsSection(
                    heading=section.heading.strip(),
                    ingredients=[
                        Ingredient(
                            name=ingredient.name.strip(),
                            amount=ingredient.amount.strip().replace(",", "."),
                            unit=ingredient.unit.strip(),
                        )
                        for ingredient in section.ingredients
                    ],
                )
                for section in self.ingredients_sections
            ],
            instructions=self.instructions,
            source=self.source,
        )

    def bake(self) -> BakedRecipe:
        """Build the display form used by the recipe page."""
        return BakedRecipe(
            name=self.name,
            image_path=self.image_path,
            description=self.description,
            ingredients_sections=self.ingredients_sections,
            ingredient_summaries=make_ingredient_summaries(self.ingredients_sections),
            instructions=bake_markdown(self.instructions),
            source=bake_markdown(self.source),
        )


@dataclass
class IngredientSummary:
    """Total amount of one ingredient/unit pair across all sections."""

    name: str
    unit: str
    amount: float
    recipe_offset: int


@dataclass
class BakedRecipe:
    name: str = ""
    image_path: str = ""
    description: str = ""
    ingredients_sections: list[IngredientsSection] = field(default_factory=list)
    ingredient_summaries: list[IngredientSummary] = field(default_factory=list)
    instructions: Markup = field(default_factory=Markup)
    source: Markup = field(default_factory=Markup)

    @classmethod
    def blank(cls) -> BakedRecipe:
        """Form model for the create page: one empty section."""
        return cls(ingredients_sections=[IngredientsSection()])


def _parse_amount(amount: str) -> float | None:
    try:
        return float(amount)
    except ValueError:
        return None


def make_ingredient_summaries(sections: list[IngredientsSection]) -> list[IngredientSummary]:
    """Sum numeric amounts per (name, unit), ordered by first appearance.

    Ingredients whose amount is not a number ("eine Prise") are skipped.
    """
    summaries: dict[tuple[str, str], IngredientSummary] = {}
    for section in sections:
        for ingredient in section.ingredients:
            amount = _parse_amount(ingredient.amount)
            if amount is None:
                continue
            key = (ingredient.name, ingredient.unit)
            summary = summaries.get(key)
            if summary is None:
                summaries[key] = IngredientSummary(
                    name=ingredient.name,
                    unit=ingredient.unit,
                    amount=amount,
                    recipe_offset=len(summaries),
                )
            else:
                summary.amount += amount
    return sorted(summaries.values(), key=lambda s: s.recipe_offset)


def bake_markdown(text: str) -> Markup:
    """Render user markdown to sanitized HTML safe for templates."""
    html = markdown.markdown(text)
    return Markup(nh3.clean(html))
