"""CLI utilities."""

from __future__ import annotations

from typing import Any

from rich.console import Console

# Console for user-facing output; logs go through structlog
_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "info": "[blue]→[/blue] ",
}


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info") -> None:
    """Print a one-line status message with a style marker."""
    _console.print(f"{_STYLES.get(style, '')}{message}", highlight=False)


def nested_overrides(**sections: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Drop unset (None) CLI options, keeping only sections with values.

    The result is passed to ``load_config`` as keyword overrides.
    """
    result: dict[str, dict[str, Any]] = {}
    for section, values in sections.items():
        present = {k: v for k, v in values.items() if v is not None}
        if present:
            result[section] = present
    return result
