"""
rqserve — Query Template Compiler
===================================

What:  Turns one `.rq` template file into an immutable RouteDefinition.
How:   1. Split the leading run of comment lines (metadata) from the query body
       2. Parse the metadata block as YAML and normalize its known keys
       3. Derive the route path from the file location
       4. Infer one ParameterSpec per `?placeholder` in the query body
Who:   Called by RouteRegistry for every template at startup.

Template layout:
    #+ summary: People by name
    #+ tags:
    #+   - people
    #+ pagination: 10
    #+ enumerate:
    #+   - lang:
    #+     - en
    #+     - fr
    SELECT ?person WHERE { ?person <urn:name> ?name_literal }

    Each metadata line loses its `#`, at most one `+` and at most one space;
    the remaining text keeps its indentation and is parsed as YAML. Extra
    spaces after the marker are therefore YAML indentation: a header mixing
    `#summary: a` with `#  tags: [x]` is not valid YAML and aborts startup.
    The first line that is not a comment ends the metadata block for good:
    later comment lines belong to the query body.

Placeholder naming:
    ?name                   → "name", required, string
    ?name_literal           → "name", required, string
    ?homepage_iri           → "homepage", required, string/uri
    ?limit_optional_integer → "limit", optional, integer
    ?first_name             → "first", required, string ("name" is an unknown suffix)
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import yaml

from rqserve.exceptions import MalformedMetadataError
from rqserve.schemas.route import ParameterSpec, RouteDefinition
from rqserve.services.param_types import lookup_type

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"
PLACEHOLDER_MARKER = "?"
OPTIONAL_MARKER = "optional_"

SUPPORTED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")

_METADATA_PREFIX = re.compile(r"^\s*#\+?[ \t]?")
_PLACEHOLDER = re.compile(r"\?([A-Za-z0-9_]+)")
_OPTIONAL_TOKEN = re.compile(r"^(.*)_(" + OPTIONAL_MARKER + r".*)$")
_SUFFIXED_TOKEN = re.compile(r"^(.*)_([^_]+)$")


# ══════════════════════════════════════════════════════════════════════════
# Metadata Block
# ══════════════════════════════════════════════════════════════════════════

def split_template(lines: Sequence[str]) -> Tuple[List[str], List[str]]:
    """
    Split template lines into (metadata_lines, query_lines).

    Metadata classification stops at the first non-comment line, including
    a blank one; there is no re-entry into metadata mode.
    """
    metadata: List[str] = []
    query: List[str] = []
    in_metadata = True

    for line in lines:
        if in_metadata and line.strip().startswith(COMMENT_MARKER):
            metadata.append(line)
        else:
            in_metadata = False
            query.append(line)

    return metadata, query


def parse_metadata(metadata_lines: Sequence[str], template: str) -> Dict[str, Any]:
    """
    Parse the metadata block as a YAML mapping.

    Returns:
        The parsed mapping. An empty block yields {}.

    Raises:
        MalformedMetadataError: the block is not valid YAML.
    """
    text = "".join(_METADATA_PREFIX.sub("", line, count=1) for line in metadata_lines)

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise MalformedMetadataError(
            template=template,
            message=f"metadata block is not valid YAML ({e.__class__.__name__})",
            context={"detail": str(e)},
        ) from e

    if document is None:
        return {}
    if not isinstance(document, Mapping):
        # Free-text comments at the top of a template parse as a scalar.
        logger.warning(
            "Template %s: metadata block is a %s, not a mapping; ignoring it",
            template,
            type(document).__name__,
        )
        return {}
    return dict(document)


MappingShape = Union[Mapping[Any, Any], Sequence[Mapping[Any, Any]], None]


def normalize_to_mapping(data: MappingShape) -> Dict[str, Any]:
    """
    Normalize the two accepted shapes of `enumerate` / `defaults`.

        {lang: [en, fr], limit: 10}          → used as-is
        [{lang: [en, fr]}, {limit: 10}]      → merged in order, later keys win

    Anything else (scalars, None, lists of scalars) yields {}. Non-mapping
    items inside a list are skipped.
    """
    if isinstance(data, Mapping):
        return {str(key): value for key, value in data.items()}
    if isinstance(data, list):
        merged: Dict[str, Any] = {}
        for item in data:
            if isinstance(item, Mapping):
                merged.update({str(key): value for key, value in item.items()})
        return merged
    return {}


def _coerce_tags(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    items = value if isinstance(value, (list, tuple)) else [value]
    return tuple(dict.fromkeys(str(item) for item in items if item is not None))


def _coerce_method(value: Any, template: str) -> str:
    method = str(value or "GET").strip().upper()
    if method not in SUPPORTED_METHODS:
        raise MalformedMetadataError(
            template=template,
            message=f"unsupported method '{value}' (expected one of {', '.join(SUPPORTED_METHODS)})",
        )
    return method


def _coerce_pagination(value: Any, template: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedMetadataError(template=template, message="pagination must be an integer")
    try:
        size = int(value)
    except (TypeError, ValueError) as e:
        raise MalformedMetadataError(
            template=template,
            message=f"pagination must be an integer, got '{value}'",
        ) from e
    if size <= 0:
        logger.warning("Template %s: pagination %d disables paging", template, size)
        return None
    return size


def _coerce_endpoint(value: Any) -> Optional[str]:
    if value is None:
        return None
    endpoint = str(value).strip()
    return endpoint or None


def _coerce_enum(value: Any) -> Optional[Tuple[Any, ...]]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


# ══════════════════════════════════════════════════════════════════════════
# Parameters
# ══════════════════════════════════════════════════════════════════════════

def extract_placeholders(query_text: str) -> List[str]:
    """Unique placeholder names (without '?') in first-seen order."""
    return list(dict.fromkeys(_PLACEHOLDER.findall(query_text)))


def split_placeholder(token: str) -> Tuple[str, str, bool]:
    """
    Split a placeholder into (param_name, effective_suffix, required).

    Precedence:
        1. `<name>_optional_<suffix>` → optional, suffix without the marker
        2. `<name>_<suffix>`          → required
        3. `<name>`                   → required, empty suffix
    """
    match = _OPTIONAL_TOKEN.match(token)
    if match:
        name, suffix, required = match.group(1), match.group(2)[len(OPTIONAL_MARKER):], False
    else:
        match = _SUFFIXED_TOKEN.match(token)
        if match:
            name, suffix, required = match.group(1), match.group(2), True
        else:
            name, suffix, required = token, "", True

    # "?_integer" has no name in front of its suffix
    if not name:
        return token, "", True
    return name, suffix, required


def derive_parameter(
    token: str,
    enumerations: Mapping[str, Any],
    defaults: Mapping[str, Any],
) -> ParameterSpec:
    name, suffix, required = split_placeholder(token)
    param_type = lookup_type(suffix)
    return ParameterSpec(
        param_name=name,
        placeholder=token,
        required=required,
        value_type=param_type.type,
        format=param_type.format,
        enum=_coerce_enum(enumerations.get(name)),
        default=defaults.get(name),
    )


def resolve_name_collisions(
    parameters: Sequence[ParameterSpec], template: str
) -> Tuple[ParameterSpec, ...]:
    """
    Keep one ParameterSpec per param_name.

    A placeholder with a shape suffix wins over a bare one with the same name
    (`?name` is the projected result variable next to `?name_literal`);
    otherwise the first-seen placeholder wins. Order of the survivors is the
    first-seen order of their placeholders.
    """
    chosen: Dict[str, ParameterSpec] = {}
    for spec in parameters:
        current = chosen.get(spec.param_name)
        if current is None:
            chosen[spec.param_name] = spec
            continue

        winner = spec if (spec.has_suffix and not current.has_suffix) else current
        loser = current if winner is spec else spec
        logger.warning(
            "Template %s: placeholders ?%s and ?%s both map to parameter '%s'; "
            "?%s is bound, ?%s is left as-is",
            template,
            current.placeholder,
            spec.placeholder,
            spec.param_name,
            winner.placeholder,
            loser.placeholder,
        )
        chosen[spec.param_name] = winner

    return tuple(spec for spec in parameters if chosen[spec.param_name] is spec)


# ══════════════════════════════════════════════════════════════════════════
# Entry Point
# ══════════════════════════════════════════════════════════════════════════

def compile_template(file_path: Union[str, Path], template_root: Union[str, Path]) -> RouteDefinition:
    """
    Compile one template file into a RouteDefinition.

    Args:
        file_path:      Path to the template file.
        template_root:  Root of the template tree; the route path is the file
                        path relative to it, without extension.

    Raises:
        MalformedMetadataError: the metadata block cannot be compiled.
    """
    path = Path(file_path)
    template_name = Path(os.path.relpath(path, template_root)).as_posix()
    relative_path = template_name[: -len(path.suffix)] if path.suffix else template_name

    lines = path.read_text(encoding="utf-8-sig").splitlines(keepends=True)
    metadata_lines, query_lines = split_template(lines)
    metadata = parse_metadata(metadata_lines, template_name)
    query_body = "".join(query_lines)

    enumerations = normalize_to_mapping(metadata.get("enumerate"))
    defaults = normalize_to_mapping(metadata.get("defaults"))

    parameters = resolve_name_collisions(
        [derive_parameter(token, enumerations, defaults) for token in extract_placeholders(query_body)],
        template_name,
    )

    route = RouteDefinition(
        route_path="/" + relative_path,
        relative_path=relative_path,
        template_name=template_name,
        method=_coerce_method(metadata.get("method"), template_name),
        query_body=query_body,
        summary=str(metadata.get("summary") or ""),
        description=str(metadata.get("description") or ""),
        tags=_coerce_tags(metadata.get("tags")),
        pagination_size=_coerce_pagination(metadata.get("pagination"), template_name),
        endpoint_override=_coerce_endpoint(metadata.get("endpoint")),
        endpoint_selectable_by_caller=bool(metadata.get("endpoint_in_url", True)),
        parameters=parameters,
    )

    logger.debug(
        "Compiled %s → %s %s (%d parameters)",
        template_name,
        route.method,
        route.route_path,
        len(route.parameters),
    )
    return route
