"""
rqserve — SPARQL Protocol Client
==================================

What:  QueryBackend implementation that talks to a SPARQL 1.1 endpoint over HTTP.
How:   POSTs the query as the `query` form field and asks for the SPARQL
       Query Results JSON Format, then decodes the document into a
       TabularResult (SELECT) or a bool (ASK).
Who:   Created once by the application factory; shared by all requests.

Failure handling:
    Transport errors, non-2xx responses and undecodable bodies all become a
    BackendExecutionError. There is no retry; the timeout is off unless
    `sparql_timeout` is configured.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from rqserve.exceptions import BackendExecutionError
from rqserve.schemas.result import QueryResult, SparqlTerm, TabularResult
from rqserve.services.backend_base import QueryBackend

logger = logging.getLogger(__name__)

RESULTS_MEDIA_TYPE = "application/sparql-results+json"


def decode_term(raw: Dict[str, Any]) -> SparqlTerm:
    return SparqlTerm(
        kind=str(raw.get("type", "literal")),
        value=str(raw.get("value", "")),
        language=raw.get("xml:lang"),
        datatype=raw.get("datatype"),
    )


def decode_results(payload: Any, endpoint: str) -> QueryResult:
    """
    Decode a SPARQL Query Results JSON document.

    Raises:
        BackendExecutionError: the document is neither a SELECT nor an ASK
            result, or its bindings or head have the wrong shape.
    """
    if isinstance(payload, dict) and "boolean" in payload:
        value = payload["boolean"]
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return bool(value)

    if isinstance(payload, dict) and isinstance(payload.get("results"), dict):
        try:
            head = payload.get("head") or {}
            rows = [
                {name: decode_term(term) for name, term in (binding or {}).items()}
                for binding in payload["results"].get("bindings") or []
            ]
            return TabularResult(variables=tuple(head.get("vars") or ()), rows=rows)
        except (AttributeError, TypeError, ValueError) as e:
            raise BackendExecutionError(
                endpoint=endpoint,
                message="SPARQL endpoint returned a malformed result document",
                context={"detail": str(e)},
            ) from e

    raise BackendExecutionError(
        endpoint=endpoint,
        message="SPARQL endpoint returned an unrecognized result document",
    )


class SparqlClient(QueryBackend):
    """
    httpx-based SPARQL endpoint client.

    Args:
        timeout:    Seconds for connect/read/write/pool, or None for no timeout.
        transport:  Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = httpx.Timeout(timeout)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        # Created on first use so the client binds to the running event loop.
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                headers={"Accept": RESULTS_MEDIA_TYPE},
            )
        return self._client

    async def execute(self, query: str, endpoint: str) -> QueryResult:
        client = self._get_client()
        start_time = time.perf_counter()

        try:
            response = await client.post(endpoint, data={"query": query})
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("SPARQL request to %s failed: %s", endpoint, e)
            raise BackendExecutionError(
                endpoint=endpoint,
                message=f"SPARQL endpoint could not be reached ({e.__class__.__name__})",
                context={"detail": str(e)},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000

        if response.is_error:
            logger.error(
                "SPARQL endpoint %s answered HTTP %d after %.1fms",
                endpoint,
                response.status_code,
                duration_ms,
            )
            raise BackendExecutionError(
                endpoint=endpoint,
                message=f"SPARQL endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
                context={"body": response.text[:500]},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise BackendExecutionError(
                endpoint=endpoint,
                message="SPARQL endpoint returned a body that is not JSON",
                status_code=response.status_code,
                context={"content_type": response.headers.get("content-type", "")},
            ) from e

        result = decode_results(payload, endpoint)
        logger.info(
            "SPARQL %s on %s: %s in %.1fms",
            "SELECT" if isinstance(result, TabularResult) else "ASK",
            endpoint,
            f"{len(result.rows)} rows" if isinstance(result, TabularResult) else result,
            duration_ms,
        )
        return result

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
