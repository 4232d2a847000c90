"""
rqserve — SPARQL Result Models
================================

What:  The two result shapes the SPARQL client hands to the result shaper.
How:   Decoded from the SPARQL 1.1 Query Results JSON Format:
         SELECT → TabularResult(variables, rows)
         ASK    → plain bool
"""

from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field


class SparqlTerm(BaseModel):
    """
    One RDF term bound to a variable in a result row.

    kind is the term type reported by the endpoint: "uri", "literal",
    "typed-literal" (SPARQL 1.0 endpoints) or "bnode".
    """
    kind: str
    value: str
    language: Optional[str] = None
    datatype: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def is_uri(self) -> bool:
        return self.kind == "uri"

    def lexical_form(self) -> str:
        if self.kind == "bnode":
            return f"_:{self.value}"
        return self.value


class TabularResult(BaseModel):
    """Variable bindings of a SELECT query; unbound variables are absent from a row."""
    variables: Tuple[str, ...] = Field(default=())
    rows: List[Dict[str, SparqlTerm]] = Field(default_factory=list)


QueryResult = Union[TabularResult, bool]


class ShapedResponse(BaseModel):
    """JSON document returned to the caller plus the optional `Link` header value."""
    body: dict
    link: Optional[str] = None
