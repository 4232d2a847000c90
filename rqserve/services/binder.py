"""
rqserve — Request Binder
==========================

What:  Turns a RouteDefinition plus the request's query parameters into the
       final SPARQL text, the endpoint to run it on, and the pagination window.
Who:   Called by the generated route handlers for every request.

Value substitution:
    string + uri format   → <value>            (no escaping)
    string, date, other   → "value"            (only `"` is escaped, as `\\"`)
    integer/number/boolean → value             (raw)

    Every whole-token occurrence of `?placeholder` is replaced in one pass, so
    text inserted for one parameter is never re-scanned for another. A parameter
    that is absent or blank leaves its placeholder untouched.

Endpoint resolution (first non-blank wins):
    route `endpoint` metadata → request `endpoint` (if the route allows it) → default

Pagination:
    page = max(1, leading integer of `page`, default 1)
    offset = (page - 1) * limit
    " LIMIT <limit + 1> OFFSET <offset>" is appended; the extra row tells the
    shaper whether a next page exists.
"""

import logging
import re
from typing import Dict, Mapping, Optional

from rqserve.exceptions import MissingParameterError, NoEndpointConfiguredError
from rqserve.schemas.route import BoundQuery, PaginationContext, ParameterSpec, RouteDefinition

logger = logging.getLogger(__name__)

ENDPOINT_PARAM = "endpoint"
PAGE_PARAM = "page"

RAW_TYPES = {"integer", "number", "boolean"}

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _present(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def format_value(spec: ParameterSpec, value: str) -> str:
    """Render a request value as a SPARQL term for the parameter's type."""
    if spec.value_type == "string" and spec.format == "uri":
        return f"<{value}>"
    if spec.value_type in RAW_TYPES:
        return value
    # Only double quotes are escaped; backslashes and newlines pass through.
    escaped = value.replace('"', '\\"')
    return f'"{escaped}"'


def substitute(query_text: str, bindings: Mapping[str, str]) -> str:
    """Replace `?placeholder` tokens found in `bindings` with their rendered values."""
    if not bindings:
        return query_text
    alternatives = "|".join(re.escape(token) for token in bindings)
    pattern = re.compile(r"\?(" + alternatives + r")(?!\w)")
    return pattern.sub(lambda match: bindings[match.group(1)], query_text)


def parse_page(raw: Optional[str]) -> int:
    """Leading integer of `raw`, clamped to at least 1; unparseable values count as 1."""
    if raw is None:
        return 1
    match = _LEADING_INT.match(raw)
    if not match:
        return 1
    return max(1, int(match.group(1)))


def pagination_window(route: RouteDefinition, params: Mapping[str, str]) -> Optional[PaginationContext]:
    if route.pagination_size is None:
        return None
    page = parse_page(params.get(PAGE_PARAM))
    limit = route.pagination_size
    return PaginationContext(page=page, limit=limit, offset=(page - 1) * limit)


class RequestBinder:
    """
    Binds requests to compiled routes.

    Args:
        default_endpoint:   Process-wide SPARQL endpoint, or None.
        validate_required:  Reject requests missing a required suffixed parameter
                            (`?name_literal`, `?x_iri`) with MissingParameterError
                            instead of leaving the placeholder in the query. Bare
                            tokens such as `?person` are usually result variables
                            and are never demanded.
    """

    def __init__(self, default_endpoint: Optional[str] = None, validate_required: bool = False):
        self.default_endpoint = default_endpoint
        self.validate_required = validate_required

    def resolve_endpoint(self, route: RouteDefinition, params: Mapping[str, str]) -> str:
        """
        Raises:
            NoEndpointConfiguredError: no candidate is non-blank.
        """
        candidates = [route.endpoint_override]
        if route.endpoint_selectable_by_caller:
            candidates.append(params.get(ENDPOINT_PARAM))
        candidates.append(self.default_endpoint)

        for candidate in candidates:
            if _present(candidate):
                return candidate.strip()

        raise NoEndpointConfiguredError(context={"route": route.route_path})

    def bind(self, route: RouteDefinition, params: Mapping[str, str]) -> BoundQuery:
        """
        Build the executable query for one request.

        Raises:
            NoEndpointConfiguredError: no endpoint could be resolved.
            MissingParameterError: a required parameter is missing and
                validation is enabled.
        """
        endpoint = self.resolve_endpoint(route, params)

        if self.validate_required:
            missing = [
                spec.param_name
                for spec in route.parameters
                if spec.required and spec.has_suffix and not _present(params.get(spec.param_name))
            ]
            if missing:
                raise MissingParameterError(missing, context={"route": route.route_path})

        bindings: Dict[str, str] = {
            spec.placeholder: format_value(spec, params[spec.param_name])
            for spec in route.parameters
            if _present(params.get(spec.param_name))
        }
        query = substitute(route.query_body, bindings)

        pagination = pagination_window(route, params)
        if pagination is not None:
            query += f" LIMIT {pagination.fetch_size} OFFSET {pagination.offset}"

        logger.debug(
            "Bound %s %s: %d/%d parameters, endpoint=%s, page=%s",
            route.method,
            route.route_path,
            len(bindings),
            len(route.parameters),
            endpoint,
            pagination.page if pagination else None,
        )
        return BoundQuery(query=query, endpoint=endpoint, pagination=pagination)
