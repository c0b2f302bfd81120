"""Tests for daemon/lifecycle.py.

Covers:
- build_controller() wiring from config
- template and token reload handlers
- ServerController start/stop
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from watchfiles import Change

from recipebox.auth.tokens import TokenManager, write_tokens_key_file
from recipebox.config.models import (
    PathsConfig,
    RecipeBoxConfig,
    ServerConfig,
    WatcherConfig,
)
from recipebox.core.errors import AuthError, RenderError
from recipebox.daemon.lifecycle import ServerController, build_controller
from recipebox.render.templates import BUNDLED_TEMPLATES_DIR

KEY = b"s" * 32


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """Site folder with a key, a template copy and one recipe."""
    write_tokens_key_file(tmp_path / "tokens.key", KEY)
    shutil.copytree(BUNDLED_TEMPLATES_DIR, tmp_path / "templates")
    recipes = tmp_path / "recipes"
    recipes.mkdir()
    (recipes / "brot.json").write_text(json.dumps({"Name": "Brot"}), encoding="utf-8")
    return tmp_path


@pytest.fixture
def config() -> RecipeBoxConfig:
    return RecipeBoxConfig(
        server=ServerConfig(base_url="/rezepte", secure=False),
        paths=PathsConfig(templates_dir="templates"),
        watcher=WatcherConfig(debounce_ms=50, step_ms=10, force_polling=True),
    )


class TestBuildController:
    """build_controller()."""

    def test_wires_components(self, site: Path, config: RecipeBoxConfig) -> None:
        controller = build_controller(config, site)

        assert controller.coordinator.recipe_count() == 1
        assert controller.base_url == "/rezepte"
        assert controller.templates.folder == (site / "templates").resolve()
        assert controller.tokens_file == (site / "tokens.json").resolve()
        assert json.loads(controller.tokens_file.read_text()) == {}
        assert controller.static_dir is None
        assert controller.secure is False

    def test_static_dir_used_when_present(self, site: Path, config: RecipeBoxConfig) -> None:
        (site / "static").mkdir()
        controller = build_controller(config, site)
        assert controller.static_dir == (site / "static").resolve()

    def test_bundled_templates_by_default(self, site: Path) -> None:
        controller = build_controller(RecipeBoxConfig(), site)
        assert controller.templates.folder == BUNDLED_TEMPLATES_DIR

    def test_missing_key_raises(self, site: Path, config: RecipeBoxConfig) -> None:
        (site / "tokens.key").unlink()
        with pytest.raises(OSError):
            build_controller(config, site)

    def test_forged_token_file_raises(self, site: Path, config: RecipeBoxConfig) -> None:
        (site / "tokens.json").write_text(json.dumps({"anna": "Zm9yZ2Vk"}))
        with pytest.raises(AuthError):
            build_controller(config, site)

    def test_broken_templates_raise(self, site: Path, config: RecipeBoxConfig) -> None:
        (site / "templates" / "home.html").unlink()
        with pytest.raises(RenderError):
            build_controller(config, site)


class TestReloadHandlers:
    """Reactions to watched file changes."""

    @pytest.fixture
    def controller(self, site: Path, config: RecipeBoxConfig) -> ServerController:
        return build_controller(config, site)

    def test_template_change_reloads_and_invalidates(
        self, controller: ServerController, site: Path
    ) -> None:
        before = controller.coordinator.get_home_page()
        (site / "templates" / "home.html").write_text(
            '{% extends "base.html" %}{% block content %}Neue Startseite{% endblock %}'
        )

        controller.on_templates_changed([(Change.modified, site / "templates" / "home.html")])

        after = controller.coordinator.get_home_page()
        assert "Neue Startseite" not in before
        assert "Neue Startseite" in after

    def test_broken_template_keeps_previous_pages(
        self, controller: ServerController, site: Path
    ) -> None:
        before = controller.coordinator.get_home_page()
        controller.coordinator.invalidate_all = MagicMock()  # type: ignore[method-assign]
        (site / "templates" / "home.html").write_text("{% for %}")

        controller.on_templates_changed([(Change.modified, site / "templates" / "home.html")])

        controller.coordinator.invalidate_all.assert_not_called()
        assert controller.coordinator.get_home_page() == before

    def test_tokens_change_reloads(self, controller: ServerController) -> None:
        token = TokenManager("token", KEY).issue("anna")
        controller.tokens_file.write_text(json.dumps({"anna": token}))

        controller.on_tokens_changed([(Change.modified, controller.tokens_file)])

        assert controller.tokens.get(token) == "anna"

    def test_invalid_tokens_file_keeps_previous(self, controller: ServerController) -> None:
        token = TokenManager("token", KEY).issue("anna")
        controller.tokens_file.write_text(json.dumps({"anna": token}))
        controller.on_tokens_changed([])

        controller.tokens_file.write_text("{broken")
        controller.on_tokens_changed([(Change.modified, controller.tokens_file)])

        assert controller.tokens.get(token) == "anna"

    @pytest.mark.parametrize("content", ['{"anna": 123}', "[]"])
    def test_malformed_tokens_file_logged_and_ignored(
        self, controller: ServerController, content: str
    ) -> None:
        """Broken tokens files are logged and the loaded tokens stay active."""
        token = TokenManager("token", KEY).issue("anna")
        controller.tokens_file.write_text(json.dumps({"anna": token}))
        controller.on_tokens_changed([])

        controller.tokens_file.write_text(content)
        controller.on_tokens_changed([(Change.modified, controller.tokens_file)])

        assert controller.tokens.get(token) == "anna"


class TestServerController:
    """start/stop."""

    @pytest.mark.asyncio
    async def test_start_registers_watches_and_stop_shuts_down(
        self, site: Path, config: RecipeBoxConfig
    ) -> None:
        controller = build_controller(config, site)

        await controller.start()
        try:
            assert controller.watcher.running
            assert controller.watcher.watched_dirs() == {
                (site / "templates").resolve(),
                site.resolve(),
            }
        finally:
            await controller.stop()

        assert not controller.watcher.running
        assert controller.wait_for_shutdown().is_set()
