"""Tests for the recipebox CLI."""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from recipebox.auth.tokens import TokenManager, read_tokens_key_file, write_tokens_key_file
from recipebox.cli.main import cli
from recipebox.render.templates import BUNDLED_TEMPLATES_DIR

runner = CliRunner()

KEY = b"c" * 32


@pytest.fixture
def site(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run commands inside an isolated site folder without global config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        "recipebox.config.constants.GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml"
    )
    for key in list(os.environ):
        if key.upper().startswith("RECIPEBOX__"):
            monkeypatch.delenv(key)
    write_tokens_key_file(tmp_path / "tokens.key", KEY)
    return tmp_path


class TestGroup:
    def test_help_lists_commands(self) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("serve", "keygen", "token"):
            assert command in result.output

    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "recipebox" in result.output


class TestKeygenCommand:
    """recipebox keygen."""

    def test_writes_new_key(self, tmp_path: Path) -> None:
        key_file = tmp_path / "new.key"

        result = runner.invoke(cli, ["keygen", str(key_file)])

        assert result.exit_code == 0
        assert len(read_tokens_key_file(key_file)) == 32

    def test_refuses_to_overwrite(self, tmp_path: Path) -> None:
        key_file = tmp_path / "existing.key"
        write_tokens_key_file(key_file, KEY)

        result = runner.invoke(cli, ["keygen", str(key_file)])

        assert result.exit_code != 0
        assert read_tokens_key_file(key_file) == KEY

    def test_force_overwrites(self, tmp_path: Path) -> None:
        key_file = tmp_path / "existing.key"
        write_tokens_key_file(key_file, KEY)

        result = runner.invoke(cli, ["keygen", "--force", str(key_file)])

        assert result.exit_code == 0
        assert read_tokens_key_file(key_file) != KEY


class TestTokenCommand:
    """recipebox token."""

    def test_issues_and_stores_token(self, site: Path) -> None:
        result = runner.invoke(cli, ["token", "anna"])

        assert result.exit_code == 0
        expected = TokenManager("token", KEY).issue("anna")
        assert expected in result.stdout
        assert json.loads((site / "tokens.json").read_text()) == {"anna": expected}

    def test_explicit_paths(self, tmp_path: Path) -> None:
        key_file = tmp_path / "other.key"
        tokens_file = tmp_path / "other-tokens.json"
        write_tokens_key_file(key_file, KEY)

        result = runner.invoke(
            cli,
            ["token", "bert", "--tokens", str(tokens_file), "--tokens-key", str(key_file)],
        )

        assert result.exit_code == 0
        assert "bert" in json.loads(tokens_file.read_text())

    def test_missing_key_fails(self, site: Path) -> None:
        (site / "tokens.key").unlink()
        result = runner.invoke(cli, ["token", "anna"])
        assert result.exit_code != 0

    def test_corrupt_tokens_file_reported(self, site: Path) -> None:
        (site / "tokens.json").write_text("{broken")

        result = runner.invoke(cli, ["token", "anna"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert (site / "tokens.json").read_text() == "{broken"

    def test_blank_identifier_rejected(self, site: Path) -> None:
        result = runner.invoke(cli, ["token", "  "])
        assert result.exit_code != 0


class TestServeCommand:
    """recipebox serve (server start mocked)."""

    def test_applies_overrides_and_runs(self, site: Path) -> None:
        shutil.copytree(BUNDLED_TEMPLATES_DIR, site / "tpl")

        with patch("recipebox.daemon.lifecycle.run_server", new_callable=AsyncMock) as run:
            result = runner.invoke(
                cli,
                [
                    "serve",
                    "--port",
                    "9000",
                    "--disable-https",
                    "--base-url",
                    "/rezepte/",
                    "--templates-dir",
                    str(site / "tpl"),
                    "--recipes",
                    str(site / "meine-rezepte"),
                    "--log-file",
                    str(site / "logs" / "serve.log"),
                ],
            )

        assert result.exit_code == 0, result.output
        controller, config = run.await_args.args
        assert config.server.port == 9000
        assert config.server.secure is False
        assert config.server.base_url == "/rezepte"
        assert controller.templates.folder == (site / "tpl").resolve()
        assert (site / "meine-rezepte").is_dir()

    @pytest.mark.parametrize("content", ["not json", '{"anna": 123}'])
    def test_malformed_tokens_file_reported(self, site: Path, content: str) -> None:
        """A broken tokens file ends startup with a readable error."""
        (site / "tokens.json").write_text(content)

        with patch("recipebox.daemon.lifecycle.run_server", new_callable=AsyncMock) as run:
            result = runner.invoke(
                cli, ["serve", "--disable-https", "--log-file", str(site / "serve.log")]
            )

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Invalid tokens file" in result.output
        run.assert_not_awaited()

    def test_startup_error_reported(self, site: Path) -> None:
        (site / "tokens.key").write_text("not-hex")

        with patch("recipebox.daemon.lifecycle.run_server", new_callable=AsyncMock) as run:
            result = runner.invoke(cli, ["serve", "--log-file", str(site / "serve.log")])

        assert result.exit_code != 0
        run.assert_not_awaited()
