"""HTTP routes for the recipe site.

Pages are served from the render cache. Writes require a token cookie and
answer with a 303 redirect on success or a short plain text error code that
the edit page script maps to a message.
"""

from __future__ import annotations

import importlib.metadata
import time
from collections.abc import Awaitable, Callable
from io import StringIO
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import (
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)
from starlette.routing import Route

from recipebox.core.errors import RecipeBoxError
from recipebox.recipes.ids import to_id_string
from recipebox.recipes.models import Recipe

if TYPE_CHECKING:
    from recipebox.daemon.lifecycle import ServerController

logger = structlog.get_logger()

# Error codes sent to clients
ACCESS_DENIED = "access-denied"
INVALID_REQUEST_BODY = "invalid-request-body"
EMPTY_ID = "empty-id"
ALREADY_EXISTS = "already-exists"
INTERNAL_ERROR = "internal-error"

TOKEN_FORM_FIELD = "cookie-input"
# Effectively permanent
COOKIE_MAX_AGE = 2147483647

WriteHandler = Callable[[Request, str], Awaitable[Response]]


def _get_version() -> str:
    """Get package version from installed metadata."""
    try:
        return importlib.metadata.version("recipebox")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _error(code: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(code, status_code=status_code)


def _not_found() -> PlainTextResponse:
    return PlainTextResponse("Not Found", status_code=404)


def create_routes(controller: ServerController) -> list[Route]:
    """Create HTTP routes bound to the server controller."""
    start_time = time.time()
    version = _get_version()
    recipes = controller.coordinator

    def redirect(path: str) -> RedirectResponse:
        return RedirectResponse(controller.base_url + path, status_code=303)

    def authenticated(handler: WriteHandler) -> Callable[[Request], Awaitable[Response]]:
        """Reject requests without a known token cookie."""

        async def endpoint(request: Request) -> Response:
            user = controller.tokens.identify(request.cookies)
            if user is None:
                logger.info("access_denied", path=request.url.path)
                return _error(ACCESS_DENIED, 403)
            return await handler(request, user)

        return endpoint

    async def page(render: Callable[[], str | None]) -> Response:
        try:
            html = await run_in_threadpool(render)
        except RecipeBoxError as e:
            logger.error("page_render_failed", error=str(e))
            return _error(INTERNAL_ERROR, 500)
        if html is None:
            return _not_found()
        return HTMLResponse(html)

    async def read_recipe(request: Request) -> Recipe | None:
        body = await request.body()
        try:
            return Recipe.model_validate_json(body).cleaned()
        except ValidationError as e:
            logger.info("invalid_request_body", error_count=e.error_count())
            return None

    # -----------------------------------------------------------------
    # Pages
    # -----------------------------------------------------------------

    async def home(request: Request) -> Response:
        _ = request  # unused
        return await page(recipes.get_home_page)

    async def recipe_page(request: Request) -> Response:
        rid = request.path_params["rid"].lower()
        return await page(lambda: recipes.get_recipe_page(rid))

    async def create_page(request: Request) -> Response:
        _ = request  # unused
        return await page(recipes.get_create_page)

    async def edit_page(request: Request) -> Response:
        rid = request.path_params["rid"].lower()
        return await page(lambda: recipes.get_recipe_edit_page(rid))

    async def authentication(request: Request) -> Response:
        token = controller.tokens.token_from_cookies(request.cookies)
        user = controller.tokens.get(token) if token is not None else None

        def render() -> str:
            sink = StringIO()
            controller.renderer.render_authentication(
                sink, token is not None, user or "", token or ""
            )
            return sink.getvalue()

        return await page(render)

    async def authentication_set(request: Request) -> Response:
        form = await request.form()
        token = str(form.get(TOKEN_FORM_FIELD, ""))
        response = redirect("/authentication")
        response.set_cookie(
            controller.tokens.cookie_name,
            token,
            max_age=COOKIE_MAX_AGE,
            path="/",
            httponly=True,
            samesite="strict",
            secure=controller.secure,
        )
        return response

    # -----------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------

    async def create(request: Request, user: str) -> Response:
        recipe = await read_recipe(request)
        if recipe is None:
            return _error(INVALID_REQUEST_BODY, 400)
        rid = to_id_string(recipe.name)
        if not rid:
            return _error(EMPTY_ID, 400)

        try:
            exists = await run_in_threadpool(recipes.add_recipe, rid, recipe)
        except RecipeBoxError as e:
            logger.error("recipe_create_failed", id=rid, user=user, error=str(e))
            return _error(INTERNAL_ERROR, 500)
        if exists:
            return _error(ALREADY_EXISTS, 400)

        logger.info("recipe_created", id=rid, user=user)
        return redirect(f"/recipe/{rid}")

    async def edit(request: Request, user: str) -> Response:
        old_rid = request.path_params["rid"]
        recipe = await read_recipe(request)
        if recipe is None:
            return _error(INVALID_REQUEST_BODY, 400)
        rid = to_id_string(recipe.name)
        if not rid:
            return _error(EMPTY_ID, 400)

        try:
            exists = await run_in_threadpool(recipes.replace_recipe, rid, old_rid, recipe)
        except RecipeBoxError as e:
            logger.error("recipe_edit_failed", id=rid, old_id=old_rid, user=user, error=str(e))
            return _error(INTERNAL_ERROR, 500)
        if exists:
            return _error(ALREADY_EXISTS, 400)

        logger.info("recipe_edited", id=rid, old_id=old_rid, user=user)
        return redirect(f"/recipe/{rid}")

    async def delete(request: Request, user: str) -> Response:
        rid = request.path_params["rid"]
        try:
            existed = await run_in_threadpool(recipes.remove_recipe, rid)
        except RecipeBoxError as e:
            logger.error("recipe_delete_failed", id=rid, user=user, error=str(e))
            return _error(INTERNAL_ERROR, 500)
        if not existed:
            return _not_found()

        logger.info("recipe_deleted", id=rid, user=user)
        return redirect("/")

    # -----------------------------------------------------------------
    # Diagnostics
    # -----------------------------------------------------------------

    async def health(request: Request) -> JSONResponse:
        """Health check endpoint suitable for liveness probes."""
        _ = request  # unused
        count = await run_in_threadpool(recipes.recipe_count)
        return JSONResponse(
            {
                "status": "healthy",
                "version": version,
                "recipes": count,
                "uptime_seconds": round(time.time() - start_time, 1),
                "watcher": {"running": controller.watcher.running},
            }
        )

    return [
        Route("/", home, methods=["GET"]),
        Route("/recipe/{rid}", recipe_page, methods=["GET"]),
        Route("/create", create_page, methods=["GET"]),
        Route("/create", authenticated(create), methods=["POST"]),
        Route("/edit/{rid}", edit_page, methods=["GET"]),
        Route("/edit/{rid}", authenticated(edit), methods=["POST"]),
        Route("/delete/{rid}", authenticated(delete), methods=["POST"]),
        Route("/authentication", authentication, methods=["GET"]),
        Route("/authentication/set", authentication_set, methods=["POST"]),
        Route("/health", health, methods=["GET"]),
    ]
