"""RecipeBox CLI - recipebox command."""

import click

from recipebox.cli.serve import serve_command
from recipebox.cli.tokens import keygen_command, token_command
from recipebox.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="recipebox")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """RecipeBox - a small self-hosted recipe site."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(serve_command, name="serve")
cli.add_command(keygen_command, name="keygen")
cli.add_command(token_command, name="token")


if __name__ == "__main__":
    cli()
