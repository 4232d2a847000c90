"""
rqserve — Status Response Schemas
===================================

What:  Response bodies for the health endpoint and for JSON error responses.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for JSON error responses.

    Example:
        {
            "error": "backend_error",
            "message": "SPARQL endpoint returned HTTP 500",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and container health checks."""
    status: str = Field(description="Overall service status: healthy or degraded")
    version: str = Field(description="Application version")
    routes: int = Field(description="Number of compiled query routes")
    default_endpoint_configured: bool = Field(
        description="Whether a process-wide default SPARQL endpoint is set"
    )
    uptime_seconds: float = Field(description="Seconds since service started")
