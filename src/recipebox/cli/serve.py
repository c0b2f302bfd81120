"""recipebox serve command - run the recipe site."""

from __future__ import annotations

import asyncio
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click

from recipebox.cli.utils import get_console, nested_overrides
from recipebox.config.loader import load_config
from recipebox.core.errors import RecipeBoxError


def _version() -> str:
    try:
        return version("recipebox")
    except PackageNotFoundError:
        return "dev"


def _print_banner(host: str, port: int, secure: bool, base_url: str, recipes: int) -> None:
    """Print startup banner with endpoint info using Rich."""
    console = get_console()
    banner_width = 64
    rule_line = "─" * banner_width
    scheme = "https" if secure else "http"
    display_host = f"[{host}]" if ":" in host else host
    url = f"{scheme}://{display_host}:{port}{base_url}"

    console.print()
    console.print(rule_line, style="dim cyan", highlight=False)
    console.print(
        f"RecipeBox v{_version()} · Ready".center(banner_width), style="bold cyan", highlight=False
    )
    console.print(rule_line, style="dim cyan", highlight=False)
    console.print()
    console.print(f"  Site:            {url}/", style="green", highlight=False)
    console.print(f"  Health Check:    {url}/health", highlight=False)
    console.print(f"  Recipes:         {recipes}", style="dim", highlight=False)
    console.print()


@click.command()
@click.option("--address", "host", help="Bind address")
@click.option("--port", "-p", type=int, help="Server port")
@click.option("--base-url", help="URL prefix, e.g. /rezepte")
@click.option("--templates-dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--templates-pattern", help="Glob selecting template files")
@click.option("--tokens", "tokens_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--tokens-key", "tokens_key_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--recipes", "recipes_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--static-dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--disable-https", is_flag=True, help="Serve plain HTTP (behind a TLS proxy)")
@click.option("--cert", "cert_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--key", "key_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def serve_command(
    ctx: click.Context,
    host: str | None,
    port: int | None,
    base_url: str | None,
    templates_dir: Path | None,
    templates_pattern: str | None,
    tokens_file: Path | None,
    tokens_key_file: Path | None,
    recipes_dir: Path | None,
    static_dir: Path | None,
    disable_https: bool,
    cert_file: Path | None,
    key_file: Path | None,
    log_file: Path | None,
) -> None:
    """Serve the recipe site from the current directory.

    Options override values from recipebox.yaml and RECIPEBOX__* environment
    variables. Runs in foreground.
    """
    from recipebox.config.models import LoggingConfig, LogOutputConfig
    from recipebox.core.logging import configure_logging
    from recipebox.daemon.lifecycle import build_controller, run_server

    def opt(value: Path | None) -> str | None:
        return str(value) if value is not None else None

    overrides = nested_overrides(
        server={
            "host": host,
            "port": port,
            "base_url": base_url,
            "secure": False if disable_https else None,
            "cert_file": opt(cert_file),
            "key_file": opt(key_file),
        },
        paths={
            "templates_dir": opt(templates_dir),
            "templates_pattern": templates_pattern,
            "tokens_file": opt(tokens_file),
            "tokens_key_file": opt(tokens_key_file),
            "recipes_dir": opt(recipes_dir),
            "static_dir": opt(static_dir),
        },
        logging={"file": opt(log_file)},
    )

    try:
        config = load_config(**overrides)
    except RecipeBoxError as e:
        raise click.ClickException(str(e)) from e

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    outputs = [LogOutputConfig(destination="stderr", format="console", level="INFO")]
    if config.logging.file:
        outputs.append(LogOutputConfig(destination=config.logging.file, format="json"))
    configure_logging(
        config=LoggingConfig(level="DEBUG" if verbose else config.logging.level, outputs=outputs),
    )

    try:
        controller = build_controller(config)
    except RecipeBoxError as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(f"Failed to start: {e}") from e

    _print_banner(
        config.server.host,
        config.server.port,
        config.server.secure,
        config.server.base_url,
        controller.coordinator.recipe_count(),
    )

    try:
        asyncio.run(run_server(controller, config))
    except KeyboardInterrupt:
        click.echo("\nStopped")
