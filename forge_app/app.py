import contextlib
from datetime import datetime, timezone
import functools
import logging
from typing import Any, Awaitable, Callable

from rich.logging import RichHandler
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from forge.generation import RecipeWebhook, UpstreamError
from forge.placeholders import PlaceholderRecipe
from forge.repository import ArtifactNotFound, ArtifactRepository, PersistenceError
from forge.services import (
    ValidationError,
    delete_recipe,
    generate_recipe,
    get_recipe,
    ingest_recipe,
    list_recipes,
)
from forge_app import config


logger = logging.getLogger(__name__)


def aJSONResponse(route: Callable[..., Awaitable[Any | tuple[Any, int]]]):
    @functools.wraps(route)
    async def wrapper(*args: Any, **kwargs: Any) -> JSONResponse:
        resp = await route(*args, **kwargs)
        if not isinstance(resp, tuple):
            data, code = resp, 200
        else:
            data, code = resp
        return JSONResponse(data, status_code=code)

    return wrapper


async def json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be JSON") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def optional_str(body: dict[str, Any], key: str) -> str | None:
    value = body.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value


@aJSONResponse
async def health(request: Request) -> dict[str, str]:
    return {
        "message": "Recipe API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@aJSONResponse
async def generate(request: Request) -> dict[str, Any]:
    body = await json_body(request)
    recipe = await generate_recipe(
        body.get("prompt"),
        generator=request.app.state.webhook,
    )
    return {"recipe": recipe, "success": True}


@aJSONResponse
async def ingest(request: Request) -> dict[str, Any]:
    body = await json_body(request)
    cfg: config.Config = request.app.state.config
    result = await ingest_recipe(
        body.get("prompt"),
        owner_key=optional_str(body, "ownerKey"),
        title=optional_str(body, "title"),
        generator=request.app.state.webhook,
        repository=request.app.state.repo,
        placeholders=request.app.state.placeholders,
        anonymous_owner=cfg.anonymous_owner,
    )
    return result.to_dict()


@aJSONResponse
async def recipes(request: Request) -> dict[str, Any]:
    cfg: config.Config = request.app.state.config
    summaries = await list_recipes(
        request.query_params.get("ownerKey"),
        repository=request.app.state.repo,
        limit=cfg.list_limit,
    )
    return {"items": [s.to_dict() for s in summaries], "count": len(summaries)}


@aJSONResponse
async def recipe_item(request: Request) -> dict[str, Any]:
    id = request.path_params["id"]
    repo: ArtifactRepository = request.app.state.repo
    match request.method.lower():
        case "get":
            artifact = await get_recipe(id, repository=repo)
            return {"item": artifact.to_dict()}
        case "delete":
            summary = await delete_recipe(id, repository=repo)
            return {"deleted": summary.to_dict()}
        case _:
            raise ValueError("Unsupported method.")


async def on_validation_error(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=400)


async def on_not_found(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": "Recipe not found"}, status_code=404)


async def on_upstream_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Error generating recipe: %s", exc)
    return JSONResponse(
        {"error": "Failed to generate recipe", "details": str(exc), "success": False},
        status_code=502,
    )


async def on_persistence_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Store error: %s (%r)", exc, exc.__cause__)
    return JSONResponse(
        {"error": str(exc), "details": repr(exc.__cause__)},
        status_code=500,
    )


@contextlib.asynccontextmanager
async def lifespan(app: Starlette):
    try:
        await app.state.repo.connect()
    except PersistenceError:
        logger.exception("Could not connect to DB.")
    yield
    await app.state.repo.disconnect()
    await app.state.webhook.aclose()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def create_app(
    cfg: config.Config | None = None,
    *,
    repository: ArtifactRepository | None = None,
    webhook: RecipeWebhook | None = None,
) -> Starlette:
    cfg = config.Config() if cfg is None else cfg
    configure_logging(cfg.log_level)

    app = Starlette(
        debug=True if cfg.env == config.Env.local else False,
        routes=[
            Route("/api", health, methods=["GET"]),
            Route("/api", generate, methods=["POST"]),
            Route("/api/ai", ingest, methods=["POST"]),
            Route("/api/recipes", recipes, methods=["GET"]),
            Route("/api/recipes/{id:path}", recipe_item, methods=["GET", "DELETE"]),
        ],
        exception_handlers={
            ValidationError: on_validation_error,
            ArtifactNotFound: on_not_found,
            UpstreamError: on_upstream_error,
            PersistenceError: on_persistence_error,
        },
        lifespan=lifespan,
    )

    app.state.config = cfg
    app.state.repo = (
        ArtifactRepository(cfg.db_url) if repository is None else repository
    )
    app.state.webhook = (
        RecipeWebhook(cfg.webhook_url, timeout=cfg.webhook_timeout)
        if webhook is None
        else webhook
    )
    app.state.placeholders = PlaceholderRecipe(
        fallback=cfg.fallback_template,
        error=cfg.error_template,
    )
    return app
