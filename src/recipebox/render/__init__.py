"""Template loading and page rendering."""

from recipebox.render.renderer import PageRenderer, minify
from recipebox.render.templates import (
    BUNDLED_TEMPLATES_DIR,
    PageTemplates,
    format_amount,
    unit_needs_space,
)

__all__ = [
    "BUNDLED_TEMPLATES_DIR",
    "PageRenderer",
    "PageTemplates",
    "format_amount",
    "minify",
    "unit_needs_space",
]
