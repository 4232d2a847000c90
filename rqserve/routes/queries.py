"""
rqserve — Generated Query Route Handlers
==========================================

What:  One HTTP handler per compiled query template.
How:   build_route_table() turns the registry into a static list of
       (path, method, handler) entries once at startup; register_routes()
       hands that list to FastAPI. Nothing is re-derived per request.

Request flow (per handler):
    query string → RequestBinder.bind() → QueryBackend.execute()
                 → shape_result() → JSON response (+ Link header)

Errors raised here (NoEndpointConfiguredError, MissingParameterError,
BackendExecutionError) are turned into responses by the global handlers.
"""

import logging
from typing import Awaitable, Callable, Dict, List, NamedTuple, Tuple

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from rqserve.schemas.route import RouteDefinition
from rqserve.services.backend_base import QueryBackend
from rqserve.services.binder import RequestBinder
from rqserve.services.result_shaper import shape_result
from rqserve.services.route_registry import RouteRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]


class RouteEntry(NamedTuple):
    path: str
    method: str
    handler: Handler


def request_base_url(request: Request) -> str:
    """Scheme, host and path of the request, without the query string."""
    return str(request.url).split("?", 1)[0]


def make_handler(route: RouteDefinition, binder: RequestBinder, backend: QueryBackend) -> Handler:
    async def run_query(request: Request) -> Response:
        params = dict(request.query_params)
        bound = binder.bind(route, params)
        raw = await backend.execute(bound.query, bound.endpoint)
        shaped = shape_result(raw, route, bound.pagination, request_base_url(request))

        headers = {"Link": shaped.link} if shaped.link else None
        return JSONResponse(content=shaped.body, headers=headers)

    run_query.__name__ = f"query_{route.relative_path.replace('/', '_')}"
    return run_query


def build_route_table(
    registry: RouteRegistry,
    binder: RequestBinder,
    backend: QueryBackend,
) -> List[RouteEntry]:
    """
    Build the static route table.

    A later template with the same path and method replaces the earlier entry,
    the same way it replaces the earlier operation in /spec.yaml.
    """
    table: Dict[Tuple[str, str], RouteEntry] = {}
    for route in registry:
        key = (route.route_path, route.method)
        if key in table:
            logger.warning(
                "Template %s shadows an earlier template for %s %s",
                route.template_name,
                route.method,
                route.route_path,
            )
        table[key] = RouteEntry(route.route_path, route.method, make_handler(route, binder, backend))
    return list(table.values())


def register_routes(router: APIRouter, table: List[RouteEntry]) -> None:
    for entry in table:
        router.add_api_route(
            entry.path,
            entry.handler,
            methods=[entry.method],
            name=f"{entry.method} {entry.path}",
            include_in_schema=False,
        )
        logger.info("Route registered: %s %s", entry.method, entry.path)
