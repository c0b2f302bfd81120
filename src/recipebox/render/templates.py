"""Page template set, reloadable while the server runs.

Templates are read into memory and compiled up front, so a broken template is
reported when the set is loaded rather than on the first request. A reload
swaps the complete set at once; if it fails, the previous set stays active.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import structlog
from jinja2 import DictLoader, Environment, Template, TemplateError, select_autoescape

from recipebox.config.constants import REQUIRED_TEMPLATES
from recipebox.core.errors import RenderError

logger = structlog.get_logger()

BUNDLED_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_SI_UNITS = frozenset("glm")
_SI_PREFIXES = frozenset("kdcmµ")


def unit_needs_space(unit: str) -> bool:
    """Whether an amount and this unit are separated by a space.

    SI units ("g", "kg", "ml") follow the amount directly; everything else
    ("EL", "Prise") gets a space. A prefix letter on its own ("k", "m") is
    not a unit and gets a space too.
    """
    if not unit:
        return False
    ch = unit[0]
    if ch in _SI_PREFIXES:
        if len(unit) == 1:
            return True
        ch = unit[1]
    return ch not in _SI_UNITS


def format_amount(amount: float) -> str:
    """Render a summed amount without a trailing '.0'."""
    return f"{amount:g}"


def _read_templates(folder: Path, pattern: str) -> dict[str, str]:
    sources: dict[str, str] = {}
    for file in sorted(folder.glob(pattern)):
        if file.is_file():
            sources[file.name] = file.read_text(encoding="utf-8")
    return sources


def _build_environment(sources: dict[str, str]) -> Environment:
    env = Environment(
        loader=DictLoader(sources),
        autoescape=select_autoescape(default=True, default_for_string=True),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["unit_needs_space"] = unit_needs_space
    env.filters["amount"] = format_amount
    env.globals["unit_needs_space"] = unit_needs_space
    return env


class PageTemplates:
    """The active template set."""

    def __init__(self, folder: Path | None = None, pattern: str = "*.html") -> None:
        self.folder = folder or BUNDLED_TEMPLATES_DIR
        self.pattern = pattern
        self._lock = threading.Lock()
        self._templates: dict[str, Template] = {}

    def load(self) -> None:
        """(Re)load the template set from ``folder``.

        Raises:
            RenderError: If a file cannot be read or compiled, or a required
                template is missing. The previously loaded set stays active.
        """
        try:
            sources = _read_templates(self.folder, self.pattern)
        except OSError as e:
            raise RenderError.load_failed(str(self.folder), str(e)) from e

        env = _build_environment(sources)
        templates: dict[str, Template] = {}
        for name in sources:
            try:
                templates[name] = env.get_template(name)
            except TemplateError as e:
                raise RenderError.load_failed(str(self.folder), f"{name}: {e}") from e

        for name in REQUIRED_TEMPLATES:
            if name not in templates:
                raise RenderError.missing_template(name)

        with self._lock:
            self._templates = templates
        logger.info("templates_loaded", path=str(self.folder), count=len(templates))

    def get(self, name: str) -> Template:
        with self._lock:
            template = self._templates.get(name)
        if template is None:
            raise RenderError.missing_template(name)
        return template

    def render(self, name: str, data: dict[str, Any]) -> str:
        template = self.get(name)
        try:
            return template.render(data)
        except TemplateError as e:
            raise RenderError.template_failed(name, str(e)) from e
