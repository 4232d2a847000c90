"""
rqserve — Custom Exception Hierarchy
======================================

What:  Application-specific exceptions for the compile and request phases.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch the request-time
       ones and return responses with the matching HTTP status code.
Who:   Raised by the template compiler, the binder and the SPARQL client.

Exception Hierarchy:
    RqServeError (base)
    ├── MalformedMetadataError     → startup aborted (never reaches HTTP)
    ├── NoEndpointConfiguredError  → 400 Bad Request (plain text)
    ├── MissingParameterError      → 400 Bad Request (opt-in validation)
    └── BackendExecutionError      → 502 Bad Gateway
"""

from typing import Any, Dict, Iterable, Optional


class RqServeError(Exception):
    """
    Base exception for all rqserve application errors.

    Attributes:
        message:  Human-readable error description (safe to return in a response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class MalformedMetadataError(RqServeError):
    """
    Raised when a template's leading comment block cannot be compiled.

    When:    The block is not valid YAML, is not a mapping, declares an
             unsupported HTTP method, or has a non-integer pagination size.
    Effect:  Startup is aborted. A half-compiled registry would serve a
             different set of routes than the template tree describes.
    """

    def __init__(
        self,
        template: str,
        message: str = "Template metadata could not be parsed",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["template"] = template
        super().__init__(message=f"{template}: {message}", context=ctx)
        self.template = template


class NoEndpointConfiguredError(RqServeError):
    """
    Raised when a request cannot be routed to any SPARQL endpoint.

    When:    The route has no fixed endpoint, the caller supplied none (or is
             not allowed to), and no process-wide default is configured.
    HTTP:    400 Bad Request with a plain-text body
    """

    def __init__(
        self,
        message: str = "No SPARQL endpoint configured",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MissingParameterError(RqServeError):
    """
    Raised when required query parameters are absent or blank.

    Only raised when `validate_required_params` is enabled; otherwise the
    placeholder stays in the query text and the endpoint reports the problem.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        names: Iterable[str],
        context: Optional[Dict[str, Any]] = None,
    ):
        self.names = list(names)
        message = "Missing required parameter(s): " + ", ".join(self.names)
        ctx = context or {}
        ctx["missing"] = self.names
        super().__init__(message=message, context=ctx)


class BackendExecutionError(RqServeError):
    """
    Raised when the SPARQL endpoint could not produce a usable result.

    What:    Connection failure, timeout, non-2xx status or an undecodable body.
             All of these are one failure class; nothing is retried.
    HTTP:    502 Bad Gateway
    """

    def __init__(
        self,
        endpoint: str,
        message: str = "The SPARQL endpoint failed to execute the query",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["endpoint"] = endpoint
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.endpoint = endpoint
        self.status_code = status_code
