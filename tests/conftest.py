"""
rqserve — Test Configuration (conftest.py)
============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own template tree under tmp_path and its own
       Settings instance; nothing touches the module-level singleton.

Fixtures:
    ├── template_dir:    empty template root for the test
    ├── write_template:  writes a template file under template_dir
    ├── make_settings:   Settings bound to template_dir (overrides as kwargs)
    ├── fake_backend:    scripted QueryBackend that records every call
    └── client_for:      builds an HTTPX AsyncClient for a FastAPI app
"""

from typing import Any, List, Tuple

import pytest
from httpx import ASGITransport, AsyncClient

from rqserve.config import Settings
from rqserve.schemas.result import QueryResult, TabularResult
from rqserve.services.backend_base import QueryBackend


class FakeBackend(QueryBackend):
    """
    QueryBackend test double.

    Returns `result` (or raises it, when it is an exception) and records
    (query, endpoint) for every call.
    """

    def __init__(self, result: Any = None):
        self.result = result if result is not None else TabularResult()
        self.calls: List[Tuple[str, str]] = []
        self.closed = False

    async def execute(self, query: str, endpoint: str) -> QueryResult:
        self.calls.append((query, endpoint))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    async def aclose(self) -> None:
        self.closed = True

    @property
    def last_query(self) -> str:
        return self.calls[-1][0]

    @property
    def last_endpoint(self) -> str:
        return self.calls[-1][1]


@pytest.fixture
def template_dir(tmp_path):
    root = tmp_path / "queries"
    root.mkdir()
    return root


@pytest.fixture
def write_template(template_dir):
    """
    Write a template relative to template_dir.

    Usage:
        write_template("people/by_name.rq", "SELECT ?x WHERE { ?x ?p ?o }")
    """

    def _write(relative: str, text: str):
        path = template_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_settings(template_dir, tmp_path):
    def _make(**overrides) -> Settings:
        values = {
            "query_dir": str(template_dir),
            "sparql_endpoint": "",
            "endpoint_file": str(tmp_path / "endpoint.txt"),
            "log_level": "WARNING",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def client_for():
    """
    Usage:
        async with client_for(app) as client:
            response = await client.get("/spec.yaml")
    """

    def _client(app) -> AsyncClient:
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    return _client
