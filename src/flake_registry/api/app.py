from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.middleware.cors import CORSMiddleware

from flake_registry import __version__
from flake_registry.config import get_settings
from flake_registry.errors import ExternalServiceError
from flake_registry.middleware import RequestLoggingMiddleware
from flake_registry.search import FlakeIndex, FlakeIndexConfig, get_search_client
from flake_registry.store import get_connection_pool
from .routers.flake import router as flake_router
from .routers.publish import router as publish_router


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Long-lived clients, shared by every request through app.state
    app.state.index_config = FlakeIndexConfig(index_name=settings.opensearch_index)
    # Pool creation and the index check block on I/O; keep them off the event loop
    app.state.pool = await asyncio.to_thread(get_connection_pool, settings)
    app.state.search_client = get_search_client(settings)

    try:
        index = FlakeIndex(app.state.search_client, app.state.index_config)
        await asyncio.to_thread(index.ensure_index)
    except ExternalServiceError as e:
        logger.warning("Could not ensure search index exists: %s", e)

    try:
        yield
    finally:
        app.state.search_client.close()
        app.state.pool.closeall()
        logger.info("Database connection pool closed")


"""
FastAPI application

The auto-registered OpenAPI/docs routes are disabled and replaced by explicit
JSONResponse-based endpoints, so the schema is always served as
application/json and the Swagger UI works behind a subpath.
"""

# API_BASE_PATH (e.g. /registry) is used as the ASGI root_path and advertised
# via OpenAPI "servers" so Swagger UI "Try it out" hits the prefixed URLs.
app = FastAPI(
    title="Flake Registry",
    version=__version__,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    root_path=settings.api_base_path,
)


# CORS: allow browser apps hosted on other origins to call this API.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One log line per request: method, URI, client address, status
app.add_middleware(RequestLoggingMiddleware)


# Mount routers
app.include_router(flake_router)
app.include_router(publish_router)


@app.get("/health", tags=["ops"], summary="Health check")
async def health():
    return {"status": "ok"}


def _with_servers(base_path: str | None):
    """Return OpenAPI schema optionally annotated with servers -> [{url: base_path}]."""
    schema = app.openapi()
    if base_path and base_path != "/":
        # FastAPI caches app.openapi(); don't mutate it in place
        schema = {**schema, "servers": [{"url": base_path}]}
    return schema


@app.get("/openapi.json", include_in_schema=False)
def openapi_json():
    return JSONResponse(_with_servers(settings.api_base_path or None))


# Relative openapi_url so the UI also works under a subpath
@app.get("/docs", include_in_schema=False)
def swagger_ui():
    return get_swagger_ui_html(openapi_url="openapi.json", title="Flake Registry API Docs")
