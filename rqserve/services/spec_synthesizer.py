"""
rqserve — Interface Description Synthesizer
=============================================

What:  Builds the OpenAPI 3.0 document describing every compiled route.
How:   A pure function of the route registry: no request handling, no backend
       calls. The same registry always produces the same document and the
       same YAML bytes.
Who:   Called by GET /spec.yaml.

Per-route operation:
    summary       route summary, or the relative template path
    description   route description, or "SPARQL query: <template file>"
    tags          route tags
    parameters    one per ParameterSpec, then `endpoint` (if the caller may
                  choose it), then `page` (if paginated)
"""

import copy
from typing import Any, Dict, Iterable, List, Optional

import yaml

from rqserve.schemas.route import ParameterSpec, RouteDefinition

OPENAPI_VERSION = "3.0.3"

ENDPOINT_PARAMETER: Dict[str, Any] = {
    "name": "endpoint",
    "in": "query",
    "schema": {"type": "string", "format": "uri"},
    "description": "Override SPARQL endpoint",
}

PAGE_PARAMETER: Dict[str, Any] = {
    "name": "page",
    "in": "query",
    "schema": {"type": "integer", "minimum": 1, "default": 1},
}

RESULT_RESPONSES: Dict[str, Any] = {
    "200": {
        "description": "SPARQL result",
        "content": {"application/json": {"schema": {"type": "object"}}},
    }
}


def describe_parameter(spec: ParameterSpec) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": spec.value_type}
    if spec.format is not None:
        schema["format"] = spec.format
    if spec.enum is not None:
        schema["enum"] = list(spec.enum)

    parameter: Dict[str, Any] = {
        "name": spec.param_name,
        "in": "query",
        "required": spec.required,
        "schema": schema,
    }
    if spec.default is not None:
        schema["default"] = copy.deepcopy(spec.default)
        parameter["default"] = copy.deepcopy(spec.default)
    return parameter


def describe_operation(route: RouteDefinition) -> Dict[str, Any]:
    parameters: List[Dict[str, Any]] = [describe_parameter(spec) for spec in route.parameters]
    if route.endpoint_selectable_by_caller:
        parameters.append(copy.deepcopy(ENDPOINT_PARAMETER))
    if route.paginated:
        parameters.append(copy.deepcopy(PAGE_PARAMETER))

    return {
        "summary": route.summary.strip() or route.relative_path,
        "description": route.description.strip() or f"SPARQL query: {route.template_name}",
        "tags": list(route.tags),
        "parameters": parameters,
        "responses": copy.deepcopy(RESULT_RESPONSES),
    }


def synthesize_spec(
    routes: Iterable[RouteDefinition],
    server_base_url: str,
    title: str = "rqserve API",
    description: str = "OpenAPI generated from local SPARQL queries",
    version: str = "1.0.0",
) -> Dict[str, Any]:
    """
    Build the interface description for `routes`.

    A later route with the same path and method replaces the earlier
    operation. Top-level tags are the union of route tags, sorted by name.
    """
    paths: Dict[str, Dict[str, Any]] = {}
    tag_names: Dict[str, None] = {}

    for route in routes:
        tag_names.update(dict.fromkeys(route.tags))
        path_item = paths.setdefault(route.route_path, {})
        path_item[route.method.lower()] = describe_operation(route)

    return {
        "openapi": OPENAPI_VERSION,
        "info": {"title": title, "description": description, "version": version},
        "servers": [{"url": server_base_url}],
        "paths": paths,
        "tags": [{"name": name} for name in sorted(tag_names)],
    }


def render_yaml(document: Dict[str, Any], width: Optional[int] = 120) -> str:
    """Serialize the document as YAML, keeping key insertion order."""
    return yaml.safe_dump(
        document,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=width,
    )

