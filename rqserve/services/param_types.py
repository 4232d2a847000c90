"""
rqserve — Parameter Type Registry
===================================

What:  Maps a placeholder's shape suffix to an OpenAPI type and format.
How:   `?since_date` → suffix "date" → {"type": "string", "format": "date"}.
       Unknown suffixes fall back to the plain string entry.
"""

from typing import Dict, NamedTuple, Optional


class ParamType(NamedTuple):
    type: str
    format: Optional[str] = None


DEFAULT_TYPE = ParamType("string")

PARAM_TYPES: Dict[str, ParamType] = {
    "": DEFAULT_TYPE,
    "literal": ParamType("string"),
    "langString": ParamType("string"),
    "iri": ParamType("string", "uri"),
    "url": ParamType("string", "uri"),
    "integer": ParamType("integer"),
    "float": ParamType("number"),
    "double": ParamType("number"),
    "boolean": ParamType("boolean"),
    "date": ParamType("string", "date"),
    "dateTime": ParamType("string", "date-time"),
}


def lookup_type(suffix: str) -> ParamType:
    """Suffix lookup is case-sensitive (`dateTime`, `langString`)."""
    return PARAM_TYPES.get(suffix, DEFAULT_TYPE)
