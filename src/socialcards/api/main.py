"""Social Cards - FastAPI Application.

This module defines the application factory, the route handlers, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
Every card request goes through the same pipeline::

    raw path --match_path--> path segments + ext
             --reconcile---> ParamSet (defaults < segments < block < query)
             --derive_key--> cache key
             --cache get---> hit: 200
             --generate----> SVG (icon fetched over httpx)
             --rasterize---> PNG (cairosvg, off the event loop)
             --cache put---> 201 (200 if the write failed)

- **Configuration** is a :class:`~socialcards.core.config.SocialCardsConfig`
  passed to :func:`create_app` and kept on ``app.state.config``.
- **The icon fetcher** owns one ``httpx.AsyncClient`` for the lifetime of
  the application.
- **The cache store** is chosen by ``cache_backend`` (memory, file, none).
- **The HTML page** is served as a raw ``HTMLResponse``; it reads the
  documented parameters from ``/api/config`` on page load.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/``                         Documentation homepage
GET       ``/api/config``               Version and documented parameters
GET       ``/favicon.{ico,svg,png}``    Favicon proxied from the icon CDN
GET       ``/robots.txt``               Crawler rules
GET       ``/{title}.{ext}``            Card with a title
GET       ``/{title}/{subtitle}.{ext}`` Card with title and subtitle
GET       ``/{params}/{t}/{s}.{ext}``   Card with a parameter block
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    socialcards

Direct invocation::

    python -m socialcards.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from socialcards import __version__
from socialcards.api.responses import image_response
from socialcards.api.routing import RouteMatch, match_path
from socialcards.core.cache_key import derive_key, wants_no_cache
from socialcards.core.cache_store import CacheStore, CacheStoreError, create_cache_store
from socialcards.core.config import SocialCardsConfig
from socialcards.core.constants import DEFAULT_PARAMS, PARAM_DOCS
from socialcards.core.icons import IconFetcher
from socialcards.core.params import ParamSet
from socialcards.core.raster import rasterize
from socialcards.core.reconcile import reconcile
from socialcards.core.svg import generate_svg

logger = logging.getLogger(__name__)

TEMPLATES_DIR: Path = Path(__file__).resolve().parent.parent / "templates"

ROBOTS_TXT = "User-agent: *\nDisallow:\n"

Rasterizer = Callable[[str], bytes]


# ---------------------------------------------------------------------------
# Request handling helpers.
# ---------------------------------------------------------------------------


def _error_response(config: SocialCardsConfig, error: Exception) -> Response:
    """Build the 500 response for a failed render.

    The body is empty unless ``debug`` is enabled.
    """
    if config.debug:
        return PlainTextResponse(f"{type(error).__name__}: {error}", status_code=500)
    return Response(status_code=500)


async def _read_cache(store: CacheStore, key: str) -> bytes | None:
    try:
        return await store.get(key)
    except CacheStoreError as e:
        logger.warning(f"Cache read failed for {key}, treating as miss: {e}")
        return None


async def _write_cache(
    store: CacheStore,
    config: SocialCardsConfig,
    key: str,
    data: bytes,
    params: ParamSet,
) -> bool:
    """Store a rendered image; return whether the write succeeded."""
    try:
        await store.put(
            key,
            data,
            config.cache_ttl_seconds,
            metadata={"params": params.to_display_string()},
        )
    except CacheStoreError as e:
        logger.warning(f"Cache write failed for {key}: {e}")
        return False
    return True


async def _render(
    params: ParamSet,
    ext: str,
    fetcher: IconFetcher,
    rasterizer: Rasterizer,
    config: SocialCardsConfig,
) -> bytes:
    svg = await generate_svg(params, fetcher, cdn_url=config.cdn_url)
    if ext == "svg":
        return svg.encode("utf-8")
    return await run_in_threadpool(rasterizer, svg)


async def serve_card(request: Request, match: RouteMatch) -> Response:
    """Serve one card: cache lookup, generation, cache store.

    Args:
        request: Incoming request (query string and application state).
        match: Image route match carrying the raw path segments.

    Returns:
        The image response, or a 500 response when generation fails.
    """
    state = request.app.state
    config: SocialCardsConfig = state.config
    ext = match.ext or "png"

    params = reconcile(match.path_params, ParamSet.from_query(request.query_params))
    # The routed extension decides the output format, whatever the query says.
    params = params.set("ext", ext)
    key = derive_key(params, config.cache_key_prefix)
    no_cache = wants_no_cache(params)

    if not no_cache:
        cached = await _read_cache(state.cache_store, key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return image_response(cached, ext)

    try:
        data = await _render(params, ext, state.icon_fetcher, state.rasterizer, config)
    except Exception as e:
        logger.error(f"Failed to generate card {key}: {e}", exc_info=True)
        return _error_response(config, e)

    if no_cache:
        return image_response(data, ext, cache="none")

    stored = await _write_cache(state.cache_store, config, key, data, params)
    logger.info(f"Generated {ext} card {key} ({len(data)} bytes, stored={stored})")
    return image_response(data, ext, status_code=201 if stored else 200)


async def serve_favicon(request: Request, ext: str) -> Response:
    """Proxy the configured favicon, rasterized for ``ico`` and ``png``."""
    state = request.app.state
    config: SocialCardsConfig = state.config
    try:
        svg = await state.icon_fetcher.fetch_text(config.favicon_url)
        if ext == "svg":
            return image_response(svg.encode("utf-8"), "svg")
        data = await run_in_threadpool(state.rasterizer, svg)
    except Exception as e:
        logger.error(f"Failed to serve favicon: {e}", exc_info=True)
        return _error_response(config, e)
    return image_response(data, "png")


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    config: SocialCardsConfig,
    *,
    cache_store: CacheStore | None = None,
    rasterizer: Rasterizer = rasterize,
    icon_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Service configuration.
        cache_store: Cache backend; defaults to the one selected by
            ``config.cache_backend``.
        rasterizer: SVG to PNG converter, run in a worker thread.
        icon_transport: Optional ``httpx`` transport for icon requests
            (tests pass an ``httpx.MockTransport``).

    Returns:
        The configured application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application startup and shutdown lifecycle.

        On startup:
            Opens the shared ``httpx.AsyncClient``, wraps it in an
            :class:`IconFetcher`, and creates the cache store. Both are
            stored on ``app.state``.

        On shutdown:
            Closes the HTTP client.
        """
        # --- Startup -----------------------------------------------------------
        client = httpx.AsyncClient(
            timeout=config.icon_fetch_timeout,
            transport=icon_transport,
        )
        app.state.icon_fetcher = IconFetcher(client, config.fallback_icon_url)
        app.state.cache_store = cache_store if cache_store is not None else create_cache_store(config)
        logger.info(f"Icon fetcher ready (cdn={config.cdn_url}).")

        yield  # Application runs here.

        # --- Shutdown ----------------------------------------------------------
        await client.aclose()
        logger.info("Icon fetcher closed on shutdown.")

    app = FastAPI(
        title="Social Cards",
        description="Open Graph card images rendered from URL parameters.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.rasterizer = rasterizer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        """Serve the documentation homepage.

        Raises:
            HTTPException: 404 if ``index.html`` is not found.
        """
        index_path = TEMPLATES_DIR / "index.html"
        if index_path.exists():
            return HTMLResponse(content=index_path.read_text(encoding="utf-8"))
        raise HTTPException(status_code=404, detail="index.html not found")

    @app.get("/api/config")
    async def get_config() -> dict:
        """Return the version, default parameters and documented parameters."""
        return {
            "version": __version__,
            "cdn_url": config.cdn_url,
            "defaults": DEFAULT_PARAMS,
            "params": [
                {"name": name, "default": default, "comment": comment}
                for name, default, comment in PARAM_DOCS
            ],
        }

    @app.get("/{path:path}")
    async def dispatch(request: Request, path: str) -> Response:
        """Route every other path by its raw, percent-encoded form."""
        raw_path = request.scope.get("raw_path", b"").decode("latin-1").split("?", 1)[0]
        match = match_path(raw_path or request.url.path, request.url.query)

        if match.kind == "redirect":
            return RedirectResponse(url=match.location or "/", status_code=301)
        if match.kind == "robots":
            return PlainTextResponse(ROBOTS_TXT, headers={"Access-Control-Allow-Origin": "*"})
        if match.kind == "favicon":
            return await serve_favicon(request, match.ext or "svg")
        if match.kind == "home":
            return await index()
        return await serve_card(request, match)

    return app


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads settings from ``SOCIALCARDS_*`` environment variables (and
    ``.env``), configures logging, and serves :func:`create_app` on
    ``server_host:server_port`` (``0.0.0.0:8000`` by default).

    This function is registered as the ``socialcards`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    config = SocialCardsConfig()
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        create_app(config),
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
