"""
rqserve — FastAPI Application Factory
=======================================

What:  Compiles the query template tree and assembles the FastAPI application.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (`uvicorn rqserve.main:app`) and by `python -m rqserve`.
When:  Once at server startup. Template compilation happens inside
       create_app(), so a malformed template stops the process before it
       serves anything.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌──────────┐ ┌────────┐ ┌──────┐  │
    │  │  Request ID  │→│ Logging  │→│  GZip  │→│ CORS │  │
    │  └──────────────┘ └──────────┘ └────────┘ └──────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌────────────┐ ┌───────────────┐  │
    │  │ /<template>  │ │ /spec.yaml │ │ /health, /    │  │
    │  └──────────────┘ └────────────┘ └───────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ NoEndpoint→400 │ Missing→400 │ Backend→502   │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    create_app():  compile templates → route table → middleware
    Startup:       configure logging, log the compiled route count
    Shutdown:      close the shared SPARQL HTTP client
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from rqserve import __version__
from rqserve.config import Settings, settings as default_settings
from rqserve.exceptions import (
    BackendExecutionError,
    MissingParameterError,
    NoEndpointConfiguredError,
    RqServeError,
)
from rqserve.logging_config import setup_logging
from rqserve.middleware.logging import RequestLoggingMiddleware
from rqserve.middleware.request_id import RequestIDMiddleware, request_id_var
from rqserve.routes import docs, health
from rqserve.routes.queries import build_route_table, register_routes
from rqserve.schemas.health import ErrorResponse
from rqserve.services.backend_base import QueryBackend
from rqserve.services.binder import RequestBinder
from rqserve.services.route_registry import RouteRegistry
from rqserve.services.sparql_client import SparqlClient

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log readiness on startup; close the backend's pooled connections on shutdown."""
    setup_logging(app.state.settings.log_level)
    logger.info(
        "rqserve %s ready: %d query route(s), default endpoint %s",
        __version__,
        len(app.state.registry),
        app.state.binder.default_endpoint or "(none)",
    )

    yield

    logger.info("rqserve shutting down...")
    await app.state.backend.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        NoEndpointConfiguredError → 400 text/plain
        MissingParameterError     → 400 JSON
        BackendExecutionError     → 502 JSON
        RqServeError (base)       → 500 JSON
        Exception (fallback)      → 500 JSON

    Endpoint URLs, response bodies and stack traces are logged, never returned.
    """

    @app.exception_handler(NoEndpointConfiguredError)
    async def handle_no_endpoint(request: Request, exc: NoEndpointConfiguredError):
        rid = request_id_var.get("")
        logger.warning("[%s] %s for %s", rid, exc.message, request.url.path)
        return PlainTextResponse(exc.message, status_code=400)

    @app.exception_handler(MissingParameterError)
    async def handle_missing_parameter(request: Request, exc: MissingParameterError):
        rid = request_id_var.get("")
        logger.warning("[%s] %s", rid, exc.message)
        return _error_response(
            400,
            ErrorResponse(
                error="missing_parameter",
                message=exc.message,
                details={"missing": exc.names},
                request_id=rid,
            ),
        )

    @app.exception_handler(BackendExecutionError)
    async def handle_backend_error(request: Request, exc: BackendExecutionError):
        rid = request_id_var.get("")
        logger.error("[%s] Backend error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(
            502,
            ErrorResponse(error="backend_error", message=exc.message, request_id=rid),
        )

    @app.exception_handler(RqServeError)
    async def handle_application_error(request: Request, exc: RqServeError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return _error_response(
            500,
            ErrorResponse(error="server_error", message=exc.message, request_id=rid),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error_response(
            500,
            ErrorResponse(error="internal_server_error", message="An unexpected error occurred.", request_id=rid),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    backend: Optional[QueryBackend] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:  Configuration; defaults to the environment-loaded singleton.
        backend:   Query backend; defaults to an httpx SparqlClient.

    Raises:
        MalformedMetadataError: a template's metadata block cannot be compiled.
    """
    settings = settings or default_settings

    registry = RouteRegistry.from_directory(settings.query_dir, settings.query_extension)
    binder = RequestBinder(
        default_endpoint=settings.default_endpoint(),
        validate_required=settings.validate_required_params,
    )
    backend = backend or SparqlClient(timeout=settings.sparql_timeout)

    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        # /spec.yaml describes the query routes; FastAPI's own docs would not.
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.binder = binder
    app.state.backend = backend

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Link", "X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(docs.router)

    query_router = APIRouter(tags=["Queries"])
    register_routes(query_router, build_route_table(registry, binder, backend))
    app.include_router(query_router)

    return app


# uvicorn expects `rqserve.main:app` to be importable
app = create_app()
