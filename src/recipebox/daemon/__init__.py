"""RecipeBox server - HTTP routes, file watching and lifecycle."""

from recipebox.daemon.app import create_app
from recipebox.daemon.lifecycle import ServerController, build_controller, run_server
from recipebox.daemon.watcher import FileWatcher

__all__ = [
    "FileWatcher",
    "ServerController",
    "build_controller",
    "create_app",
    "run_server",
]
