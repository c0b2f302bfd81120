"""Configuration constants.

Values here are not user-configurable. For configurable values, see
models.py.
"""

from pathlib import Path

PORT_MIN = 0
PORT_MAX = 65535
"""Valid port range."""

SITE_CONFIG_NAME = "recipebox.yaml"
"""Per-site config file, looked up in the working directory."""

GLOBAL_CONFIG_PATH = Path("~/.config/recipebox/config.yaml").expanduser()

REQUIRED_TEMPLATES = (
    "home.html",
    "recipe-page.html",
    "edit-recipe-page.html",
    "authentication.html",
)
"""Templates every template set must provide."""

RECIPE_FILE_SUFFIX = ".json"
