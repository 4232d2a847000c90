"""
rqserve — SPARQL Client Unit Tests (Mocked Transport)
=======================================================

What:  Tests the SPARQL protocol request and result decoding.
How:   httpx.MockTransport stands in for the endpoint; no network access.
"""

from urllib.parse import parse_qs

import httpx
import pytest

from rqserve.exceptions import BackendExecutionError
from rqserve.schemas.result import TabularResult
from rqserve.services.sparql_client import SparqlClient, decode_results

ENDPOINT = "http://sparql.test/query"

SELECT_DOCUMENT = {
    "head": {"vars": ["s", "label"]},
    "results": {
        "bindings": [
            {
                "s": {"type": "uri", "value": "http://ex.org/a"},
                "label": {"type": "literal", "value": "A", "xml:lang": "en"},
            },
            {"s": {"type": "bnode", "value": "b1"}},
        ]
    },
}


def client_returning(response: httpx.Response, seen=None) -> SparqlClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return response

    return SparqlClient(transport=httpx.MockTransport(handler))


class TestDecodeResults:
    def test_select(self):
        result = decode_results(SELECT_DOCUMENT, ENDPOINT)

        assert isinstance(result, TabularResult)
        assert result.variables == ("s", "label")
        assert result.rows[0]["s"].is_uri
        assert result.rows[0]["label"].language == "en"
        assert result.rows[1]["s"].lexical_form() == "_:b1"
        assert "label" not in result.rows[1]

    @pytest.mark.parametrize("raw, expected", [(True, True), (False, False), ("true", True), ("false", False)])
    def test_ask(self, raw, expected):
        assert decode_results({"head": {}, "boolean": raw}, ENDPOINT) is expected

    def test_unrecognized_document(self):
        with pytest.raises(BackendExecutionError, match="unrecognized"):
            decode_results({"head": {}}, ENDPOINT)

    @pytest.mark.parametrize(
        "document",
        [
            {"head": {"vars": ["s"]}, "results": {"bindings": [{"s": "oops"}]}},
            {"head": ["s"], "results": {"bindings": []}},
            {"head": {"vars": ["s"]}, "results": {"bindings": ["oops"]}},
        ],
    )
    def test_malformed_select_document(self, document):
        with pytest.raises(BackendExecutionError, match="malformed"):
            decode_results(document, ENDPOINT)


class TestSparqlClient:
    @pytest.mark.asyncio
    async def test_posts_query_as_form_field(self):
        seen = []
        client = client_returning(httpx.Response(200, json=SELECT_DOCUMENT), seen)

        result = await client.execute("SELECT * WHERE { ?s ?p ?o }", ENDPOINT)
        await client.aclose()

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == ENDPOINT
        assert request.headers["accept"] == "application/sparql-results+json"
        assert parse_qs(request.content.decode())["query"] == ["SELECT * WHERE { ?s ?p ?o }"]
        assert len(result.rows) == 2

    @pytest.mark.asyncio
    async def test_ask_result(self):
        client = client_returning(httpx.Response(200, json={"head": {}, "boolean": True}))
        assert await client.execute("ASK {}", ENDPOINT) is True

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client = client_returning(httpx.Response(400, text="Parse error"))

        with pytest.raises(BackendExecutionError) as excinfo:
            await client.execute("SELEC", ENDPOINT)
        assert excinfo.value.status_code == 400
        assert excinfo.value.context["body"] == "Parse error"

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self):
        client = client_returning(httpx.Response(200, text="<html>nope</html>"))

        with pytest.raises(BackendExecutionError, match="not JSON"):
            await client.execute("ASK {}", ENDPOINT)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = SparqlClient(transport=httpx.MockTransport(handler))

        with pytest.raises(BackendExecutionError, match="could not be reached"):
            await client.execute("ASK {}", ENDPOINT)

    @pytest.mark.asyncio
    async def test_aclose_is_idempotent(self):
        client = client_returning(httpx.Response(200, json={"boolean": False}))
        await client.execute("ASK {}", ENDPOINT)

        await client.aclose()
        await client.aclose()
