"""Server lifecycle management."""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import uvicorn

from recipebox.auth.tokens import TokenManager, ensure_tokens_file, read_tokens_key_file
from recipebox.config.models import TimeoutsConfig, WatcherConfig
from recipebox.core.errors import RecipeBoxError
from recipebox.daemon.watcher import FileChange, FileWatcher
from recipebox.recipes.ops import RecipesCoordinator
from recipebox.recipes.store import RecipeStore
from recipebox.render.renderer import PageRenderer
from recipebox.render.templates import BUNDLED_TEMPLATES_DIR, PageTemplates

if TYPE_CHECKING:
    from recipebox.config.models import RecipeBoxConfig

logger = structlog.get_logger()


@dataclass
class ServerController:
    """
    Orchestrates server components.

    Components:
    - RecipesCoordinator: Recipe store and render cache
    - PageTemplates: Active template set, reloaded on change
    - TokenManager: Write access tokens, reloaded on change
    - FileWatcher: Async filesystem monitoring
    """

    coordinator: RecipesCoordinator
    renderer: PageRenderer
    tokens: TokenManager
    tokens_file: Path
    static_dir: Path | None = None
    secure: bool = True
    watcher_config: WatcherConfig = field(default_factory=WatcherConfig)
    timeouts_config: TimeoutsConfig = field(default_factory=TimeoutsConfig)

    watcher: FileWatcher = field(init=False)
    _shutdown_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)

    def __post_init__(self) -> None:
        self.watcher = FileWatcher(
            debounce_ms=self.watcher_config.debounce_ms,
            step_ms=self.watcher_config.step_ms,
            force_polling=self.watcher_config.force_polling,
        )

    @property
    def base_url(self) -> str:
        return self.renderer.base_url

    @property
    def templates(self) -> PageTemplates:
        return self.renderer.templates

    def on_templates_changed(self, changes: list[FileChange]) -> None:
        """Reload templates, then drop every page rendered with the old set."""
        logger.info("templates_changed", count=len(changes))
        try:
            self.templates.load()
        except RecipeBoxError as e:
            logger.warning("templates_reload_failed", error=str(e))
            return
        self.coordinator.invalidate_all()

    def on_tokens_changed(self, changes: list[FileChange]) -> None:
        """Reload the tokens file, keeping the previous tokens on failure."""
        logger.info("tokens_file_changed", count=len(changes))
        try:
            self.tokens.reload_from_file(self.tokens_file)
        except (OSError, RecipeBoxError) as e:
            logger.warning("tokens_reload_failed", path=str(self.tokens_file), error=str(e))

    def register_watches(self) -> None:
        """Watch the templates folder and the tokens file."""
        self.watcher.add_folder_watch(self.templates.folder, self.on_templates_changed)
        self.watcher.add_file_watch(self.tokens_file, self.on_tokens_changed)

    async def start(self) -> None:
        """Start all server components."""
        logger.info("server starting", recipes=self.coordinator.recipe_count())
        self.register_watches()
        await self.watcher.start()
        logger.info("server started")

    async def stop(self) -> None:
        """Stop all server components gracefully."""
        logger.info("server stopping")

        try:
            async with asyncio.timeout(self.timeouts_config.server_stop_sec):
                await self.watcher.stop()
        except TimeoutError:
            logger.warning(
                "server_stop_timeout",
                message=f"Shutdown timed out after {self.timeouts_config.server_stop_sec}s",
            )

        self._shutdown_event.set()
        logger.info("server stopped")

    def wait_for_shutdown(self) -> asyncio.Event:
        """Get the shutdown event for external coordination."""
        return self._shutdown_event


def build_controller(config: RecipeBoxConfig, root: Path | None = None) -> ServerController:
    """Load key, tokens, templates and recipes and wire them into a controller.

    Relative paths in ``config.paths`` are resolved against ``root`` (default:
    the current directory).

    Raises:
        AuthError: If the tokens key or a token is invalid.
        RenderError: If the templates cannot be loaded.
        StoreError: If a recipe file cannot be parsed.
    """
    base = (root or Path.cwd()).resolve()
    paths = config.paths

    def resolve(value: str) -> Path:
        return (base / Path(value).expanduser()).resolve()

    key = read_tokens_key_file(resolve(paths.tokens_key_file))
    tokens_file = resolve(paths.tokens_file)
    ensure_tokens_file(tokens_file)
    tokens = TokenManager(config.server.cookie_name, key)
    tokens.reload_from_file(tokens_file)

    templates_dir = resolve(paths.templates_dir) if paths.templates_dir else BUNDLED_TEMPLATES_DIR
    templates = PageTemplates(templates_dir, paths.templates_pattern)
    templates.load()

    store = RecipeStore.load(resolve(paths.recipes_dir))
    renderer = PageRenderer(config.server.base_url, templates)
    static_dir = resolve(paths.static_dir)

    return ServerController(
        coordinator=RecipesCoordinator(store, renderer),
        renderer=renderer,
        tokens=tokens,
        tokens_file=tokens_file,
        static_dir=static_dir if static_dir.is_dir() else None,
        secure=config.server.secure,
        watcher_config=config.watcher,
        timeouts_config=config.timeouts,
    )


async def run_server(controller: ServerController, config: RecipeBoxConfig) -> None:
    """Serve until a shutdown signal arrives."""
    from recipebox.daemon.app import create_app

    app = create_app(controller)

    ssl_options: dict[str, str] = {}
    if config.server.secure:
        ssl_options = {
            "ssl_certfile": config.server.cert_file,
            "ssl_keyfile": config.server.key_file,
        }

    uvicorn_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="warning",  # Use structlog instead
        ws="none",
        **ssl_options,
    )
    server = uvicorn.Server(uvicorn_config)

    loop = asyncio.get_running_loop()
    shutdown_count = 0

    def signal_handler() -> None:
        nonlocal shutdown_count
        shutdown_count += 1
        logger.info("shutdown_signal_received", count=shutdown_count)
        server.should_exit = True
        if shutdown_count > 1:
            server.force_exit = True

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await controller.start()
        await server.serve()
    finally:
        await controller.stop()
