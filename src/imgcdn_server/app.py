"""HTTP app serving the local provider's ``/_image`` URLs.

Starlette app that decodes paths produced by
:class:`~imgcdn.providers.local.LocalProvider`, loads the source and runs
it through an :class:`~imgcdn_server.engine.ImageEngine`:

    GET /_image/{provider}/{kind}/{format}/{modifiers}/{source}
    GET /health

Serve it with any ASGI server, e.g. ``uvicorn imgcdn_server.app:app``.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from pathlib import Path

import httpx
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from imgcdn.errors import (
    ConfigurationError,
    ContractViolationError,
    SourceNotFoundError,
    UpstreamError,
)
from imgcdn.providers.local import DEFAULT_BASE_URL, parse_local_path

from .engine import ImageEngine, PassthroughEngine
from .fetch import SourceLoader
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


def _raw_path(request: Request) -> str:
    """The request path with percent-encoding intact."""
    raw = request.scope.get("raw_path")
    if raw:
        return raw.decode("latin-1")
    return request.url.path


def create_app(
    engine: ImageEngine | None = None,
    *,
    public_dir: str | Path | None = None,
    http_client: httpx.AsyncClient | None = None,
    retry_policy: RetryPolicy | None = None,
    route_prefix: str = DEFAULT_BASE_URL,
) -> Starlette:
    """Build the proxy app.

    Args:
        engine: Pixel engine; defaults to PassthroughEngine.
        public_dir: Directory that ``local`` source paths are read from.
        http_client: Shared client for remote sources (owned by the caller).
        retry_policy: Retry settings for remote fetches.
        route_prefix: Must match the local provider's base URL path.
    """
    prefix = route_prefix.rstrip("/")
    image_engine: ImageEngine = engine or PassthroughEngine()
    loader = SourceLoader(
        http_client=http_client, public_dir=public_dir, retry_policy=retry_policy
    )

    async def _handle_image(request: Request) -> Response:
        path = _raw_path(request)
        try:
            image_request = parse_local_path(path, prefix=prefix)
            source = await loader.load(image_request)
            data, media_type = await image_engine.transform(
                source.data, source.media_type, image_request
            )
        except ContractViolationError as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)
        except SourceNotFoundError as exc:
            return JSONResponse({"error": str(exc)}, status_code=404)
        except UpstreamError as exc:
            logger.warning("Upstream failure for %s: %s", path, exc)
            return JSONResponse({"error": str(exc)}, status_code=502)
        except ConfigurationError as exc:
            logger.error("Misconfigured proxy: %s", exc)
            return JSONResponse({"error": str(exc)}, status_code=500)

        logger.info(
            "Served %s (%s, %d bytes) for %s",
            image_request.source,
            media_type,
            len(data),
            image_request.modifiers.model_dump(exclude_defaults=True),
        )
        return Response(data, media_type=media_type)

    async def _handle_health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        yield
        await loader.aclose()

    routes = [
        Route(f"{prefix}/{{path:path}}", _handle_image, methods=["GET"]),
        Route("/health", _handle_health, methods=["GET"]),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.loader = loader
    app.state.engine = image_engine
    return app


app = create_app()
