"""Page renderer: template execution followed by HTML minification."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TextIO

import minify_html
import structlog

from recipebox.core.errors import RenderError
from recipebox.recipes.models import BakedRecipe

if TYPE_CHECKING:
    from recipebox.recipes.models import Recipe
    from recipebox.render.templates import PageTemplates

logger = structlog.get_logger()

HOME_TITLE = "Rezepte"
CREATE_TITLE = "Neues Rezept"
EDIT_TITLE_PREFIX = "Bearbeiten: "


def minify(html: str) -> str:
    return minify_html.minify(
        html,
        minify_css=True,
        minify_js=True,
        keep_closing_tags=True,
        keep_html_and_head_opening_tags=True,
    )


class PageRenderer:
    """Renders the site's pages from the active template set."""

    def __init__(self, base_url: str, templates: PageTemplates) -> None:
        self.base_url = base_url
        self.templates = templates

    def _page(self, title: str, rid: str = "", **data: Any) -> dict[str, Any]:
        return {"base_url": self.base_url, "title": title, "id": rid, **data}

    def _render(self, sink: TextIO, name: str, data: dict[str, Any]) -> None:
        html = self.templates.render(name, data)
        try:
            html = minify(html)
        except Exception as e:
            raise RenderError.template_failed(name, f"minify: {e}") from e
        sink.write(html)

    def render_home(self, sink: TextIO, recipes: Mapping[str, Recipe]) -> None:
        logger.debug("rendering_home_page")
        listing = sorted(recipes.items())
        self._render(sink, "home.html", self._page(HOME_TITLE, recipes=listing))

    def render_recipe(self, sink: TextIO, rid: str, recipe: Recipe) -> None:
        logger.debug("rendering_recipe_page", id=rid)
        baked = recipe.bake()
        self._render(sink, "recipe-page.html", self._page(baked.name, rid, recipe=baked))

    def render_edit_recipe(self, sink: TextIO, rid: str, recipe: Recipe) -> None:
        logger.debug("rendering_recipe_edit_page", id=rid)
        title = EDIT_TITLE_PREFIX + recipe.name
        self._render(sink, "edit-recipe-page.html", self._page(title, rid, recipe=recipe))

    def render_create(self, sink: TextIO) -> None:
        logger.debug("rendering_create_page")
        page = self._page(CREATE_TITLE, recipe=BakedRecipe.blank())
        self._render(sink, "edit-recipe-page.html", page)

    def render_authentication(
        self, sink: TextIO, cookie_set: bool, user: str, token: str
    ) -> None:
        page = self._page("Anmeldung", cookie_set=cookie_set, user=user, token=token)
        self._render(sink, "authentication.html", page)
