"""recipebox keygen / token commands - manage write access."""

from __future__ import annotations

from pathlib import Path

import click

from recipebox.auth.tokens import (
    TokenManager,
    add_token_to_file,
    generate_key,
    read_tokens_key_file,
    write_tokens_key_file,
)
from recipebox.cli.utils import status
from recipebox.config.loader import load_config
from recipebox.core.errors import RecipeBoxError


@click.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--force", is_flag=True, help="Overwrite an existing key file")
def keygen_command(path: Path, force: bool) -> None:
    """Write a new random HMAC key to PATH.

    Replacing the key invalidates every token issued with the old one.
    """
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to replace it)")
    write_tokens_key_file(path, generate_key())
    status(f"Key written to {path}", style="success")


@click.command()
@click.argument("identifier")
@click.option("--tokens", "tokens_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--tokens-key", "tokens_key_file", type=click.Path(dir_okay=False, path_type=Path))
def token_command(
    identifier: str, tokens_file: Path | None, tokens_key_file: Path | None
) -> None:
    """Issue a write access token for IDENTIFIER.

    The token is stored in the tokens file (a running server picks it up)
    and printed to stdout.
    """
    identifier = identifier.strip()
    if not identifier:
        raise click.BadParameter("identifier must not be empty", param_hint="IDENTIFIER")

    try:
        config = load_config()
        key_path = tokens_key_file or Path(config.paths.tokens_key_file)
        tokens_path = tokens_file or Path(config.paths.tokens_file)
        key = read_tokens_key_file(key_path)
    except RecipeBoxError as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(f"Cannot read key: {e}") from e

    token = TokenManager(config.server.cookie_name, key).issue(identifier)
    try:
        add_token_to_file(tokens_path, identifier, token)
    except RecipeBoxError as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(f"Cannot write tokens file: {e}") from e
    status(f"Token for {identifier} stored in {tokens_path}", style="success")
    click.echo(token)
