"""
rqserve — Result Shaper
=========================

What:  Builds the JSON response document and the `Link` header for a result.
How:   The shape is chosen by the result type alone, never by the route:

    TabularResult → {"head": {"vars": [...]}, "results": {"bindings": [...]}}
    bool          → {"head": {}, "boolean": true|false}

    Each binding maps a variable to {"type": "uri"|"literal", "value": ...}
    plus "xml:lang" / "datatype" when the endpoint reported them.
"""

import logging
from typing import Any, Dict, List, Optional

from rqserve.schemas.result import QueryResult, ShapedResponse, SparqlTerm, TabularResult
from rqserve.schemas.route import PaginationContext, RouteDefinition

logger = logging.getLogger(__name__)


def shape_term(term: SparqlTerm) -> Dict[str, str]:
    binding = {
        "type": "uri" if term.is_uri else "literal",
        "value": term.lexical_form(),
    }
    if term.language:
        binding["xml:lang"] = term.language
    if term.datatype:
        binding["datatype"] = term.datatype
    return binding


def build_link_header(base_url: str, page: int, has_next: bool) -> Optional[str]:
    """
    `Link` header value for the adjacent pages, or None when there are none.

    Links carry only the `page` parameter; `base_url` must already have its
    query string removed.
    """
    links: List[str] = []
    if page > 1:
        links.append(f'<{base_url}?page={page - 1}>; rel="previous"')
    if has_next:
        links.append(f'<{base_url}?page={page + 1}>; rel="next"')
    return ", ".join(links) if links else None


def shape_result(
    raw: QueryResult,
    route: RouteDefinition,
    pagination: Optional[PaginationContext],
    request_base_url: str,
) -> ShapedResponse:
    """
    Shape a backend result for the caller.

    Args:
        raw:               TabularResult or bool from the SPARQL client.
        route:             The route that produced the query.
        pagination:        Window used by the binder, None when the route is unpaged.
        request_base_url:  Request URL without query string, used for `Link`.
    """
    if not isinstance(raw, TabularResult):
        return ShapedResponse(body={"head": {}, "boolean": bool(raw)})

    rows = raw.rows
    has_next = False
    if pagination is not None:
        has_next = pagination.has_next(len(rows))
        if has_next:
            rows = rows[: pagination.limit]

    body: Dict[str, Any] = {
        "head": {"vars": list(raw.variables)},
        "results": {
            "bindings": [
                {name: shape_term(term) for name, term in row.items()}
                for row in rows
            ]
        },
    }

    link = None
    if pagination is not None:
        link = build_link_header(request_base_url, pagination.page, has_next)

    logger.debug(
        "Shaped %s: %d rows returned, %d kept, has_next=%s",
        route.route_path,
        len(raw.rows),
        len(rows),
        has_next,
    )

    return ShapedResponse(body=body, link=link)
