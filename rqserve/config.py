"""
rqserve — Application Configuration
=====================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a default `settings` object.
Who:   Read by the application factory, which hands the relevant values to the
       template registry, the request binder and the SPARQL client explicitly.
When:  Loaded once at module import time; validated before the app starts.

Environment variables (case-insensitive):
    QUERY_DIR          Root directory of the .rq query templates
    SPARQL_ENDPOINT    Process-wide default SPARQL endpoint
    ENDPOINT_FILE      File whose first line is used when SPARQL_ENDPOINT is empty
    LOG_LEVEL          DEBUG, INFO, WARNING, ERROR or CRITICAL
"""

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development. Tests build their own
    instances (`Settings(query_dir=...)`) instead of patching the singleton.
    """

    # ── Query Templates ───────────────────────────────────────────────────
    # Templates are compiled once at startup; changes need a restart.
    query_dir: str = Field(
        default="queries",
        description="Root directory scanned recursively for query templates",
    )
    query_extension: str = Field(default=".rq")

    # ── SPARQL Backend ────────────────────────────────────────────────────
    sparql_endpoint: str = Field(
        default="",
        description="Default SPARQL endpoint used when a route has no fixed endpoint",
    )
    endpoint_file: str = Field(default="endpoint.txt")

    # None disables the HTTP timeout entirely (requests wait for the endpoint).
    sparql_timeout: Optional[float] = Field(default=None, gt=0)

    # Off: a missing required parameter leaves its placeholder in the query.
    # On:  the request is rejected with 400 before the endpoint is contacted.
    validate_required_params: bool = Field(default=False)

    # ── Interface Description ─────────────────────────────────────────────
    api_title: str = Field(default="rqserve API")
    api_description: str = Field(default="OpenAPI generated from local SPARQL queries")
    api_version: str = Field(default="1.0.0")

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: comma-separated origins, or "*"
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=4567, ge=1024, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("query_extension")
    @classmethod
    def validate_query_extension(cls, v: str) -> str:
        if not v.startswith("."):
            v = "." + v
        return v

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def default_endpoint(self) -> Optional[str]:
        """
        Resolve the process-wide default SPARQL endpoint.

        Order: SPARQL_ENDPOINT, then the first line of `endpoint_file` when the
        file exists. Returns None when neither yields a non-blank value.
        """
        if self.sparql_endpoint.strip():
            return self.sparql_endpoint.strip()

        path = Path(self.endpoint_file)
        if path.is_file():
            content = path.read_text(encoding="utf-8").strip()
            if content:
                return content.splitlines()[0].strip()
        return None


settings = Settings()
