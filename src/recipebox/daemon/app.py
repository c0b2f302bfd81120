"""Starlette application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.routing import BaseRoute, Mount
from starlette.staticfiles import StaticFiles

from recipebox.daemon.middleware import RequestIdMiddleware
from recipebox.daemon.routes import create_routes

if TYPE_CHECKING:
    from recipebox.daemon.lifecycle import ServerController


def create_app(controller: ServerController) -> Starlette:
    """Create the Starlette application serving the recipe site."""
    routes: list[BaseRoute] = list(create_routes(controller))

    if controller.static_dir is not None:
        routes.append(Mount("/static", app=StaticFiles(directory=controller.static_dir), name="static"))

    app = Starlette(routes=routes)
    app.add_middleware(RequestIdMiddleware)
    return app
