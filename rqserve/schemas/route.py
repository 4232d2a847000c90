"""
rqserve — Compiled Route Models
=================================

What:  Immutable models describing one compiled query template and the
       per-request values derived from it.
Who:   RouteDefinition/ParameterSpec are produced by the template compiler at
       startup; PaginationContext/BoundQuery are produced by the binder for
       each request and discarded with the response.

All models are frozen: the registry built at startup is shared by every
request without locking, so nothing may mutate it afterwards.
"""

from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field


class ParameterSpec(BaseModel):
    """
    One request parameter inferred from a placeholder in the query body.

    Example:
        ?limit_optional_integer → param_name="limit", placeholder="limit_optional_integer",
                                  required=False, value_type="integer"
    """
    param_name: str = Field(description="Query-string key (placeholder without its shape suffix)")
    placeholder: str = Field(description="Variable name in the query body, without the '?' marker")
    required: bool = Field(default=True)
    value_type: str = Field(default="string")
    format: Optional[str] = Field(default=None)
    enum: Optional[Tuple[Any, ...]] = Field(default=None)
    default: Any = Field(default=None)

    model_config = {"frozen": True}

    @property
    def has_suffix(self) -> bool:
        """True when the placeholder carries a shape suffix (`name_literal` vs `name`)."""
        return self.placeholder != self.param_name


class RouteDefinition(BaseModel):
    """
    A compiled query template: HTTP route, metadata and parameter schema.

    Paths:
        template_name:  "people/by_name.rq"   (relative to the template root)
        relative_path:  "people/by_name"
        route_path:     "/people/by_name"
    """
    route_path: str
    relative_path: str
    template_name: str
    method: str = Field(default="GET")
    query_body: str
    summary: str = Field(default="")
    description: str = Field(default="")
    tags: Tuple[str, ...] = Field(default=())
    pagination_size: Optional[int] = Field(default=None)
    endpoint_override: Optional[str] = Field(default=None)
    endpoint_selectable_by_caller: bool = Field(default=True)
    parameters: Tuple[ParameterSpec, ...] = Field(default=())

    model_config = {"frozen": True}

    @property
    def paginated(self) -> bool:
        return self.pagination_size is not None


class PaginationContext(BaseModel):
    """
    Pagination window for one request.

    The binder asks the endpoint for `limit + 1` rows; a result longer than
    `limit` means another page exists. There is no separate count query.
    """
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    offset: int = Field(ge=0)

    model_config = {"frozen": True}

    @property
    def fetch_size(self) -> int:
        return self.limit + 1

    def has_next(self, row_count: int) -> bool:
        return row_count > self.limit


class BoundQuery(BaseModel):
    """Result of binding a request to a route: what to run, where, and which window."""
    query: str
    endpoint: str
    pagination: Optional[PaginationContext] = None

    model_config = {"frozen": True}
