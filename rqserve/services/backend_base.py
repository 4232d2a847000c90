"""
rqserve — Abstract Query Backend Interface
============================================

What:  Contract for executing a bound SPARQL query against an endpoint.
How:   Concrete implementations inherit from QueryBackend and implement execute().
Who:   Called by the generated route handlers after binding.

Implementations:
    - SparqlClient: SPARQL 1.1 Protocol over HTTP (httpx)
    - Test doubles in tests/conftest.py return canned results
"""

from abc import ABC, abstractmethod

from rqserve.schemas.result import QueryResult


class QueryBackend(ABC):
    """
    Executes SPARQL text and returns a TabularResult (SELECT) or bool (ASK).

    Contract:
        - Every failure is raised as BackendExecutionError
        - No retries, no caching: one call, one request to the endpoint
    """

    @abstractmethod
    async def execute(self, query: str, endpoint: str) -> QueryResult:
        """
        Run `query` against `endpoint`.

        Raises:
            BackendExecutionError: the endpoint could not be reached, answered
                with an error status, or returned an undecodable body.
        """
        ...

    async def aclose(self) -> None:
        """Release pooled connections. Called once on application shutdown."""
        return None
