"""
rqserve — Route Registry
==========================

What:  The ordered, read-only set of RouteDefinitions compiled from a template tree.
How:   Walks the template root recursively once, compiles every file with the
       configured extension (sorted by relative path), and keeps the result.
Who:   Built by the application factory; read by the route table, the
       interface description and the health check.
When:  Once at startup. A MalformedMetadataError from any template aborts the build.
"""

import logging
from pathlib import Path
from typing import Iterator, Sequence, Union

from rqserve.schemas.route import RouteDefinition
from rqserve.services.template_compiler import compile_template

logger = logging.getLogger(__name__)


class RouteRegistry:
    """
    Immutable collection of compiled routes.

    Order is the sorted relative template path, so two processes compiling
    the same tree expose routes (and interface descriptions) in the same order.
    """

    def __init__(self, routes: Sequence[RouteDefinition] = ()):
        self._routes = tuple(routes)

    @classmethod
    def from_directory(
        cls,
        template_root: Union[str, Path],
        extension: str = ".rq",
    ) -> "RouteRegistry":
        """
        Compile every template under `template_root`.

        A missing root yields an empty registry (logged), not an error.

        Raises:
            MalformedMetadataError: from the first template that fails to compile.
        """
        root = Path(template_root)
        if not root.is_dir():
            logger.warning("Template directory %s does not exist; no query routes compiled", root)
            return cls()

        files = sorted(
            (p for p in root.rglob(f"*{extension}") if p.is_file()),
            key=lambda p: p.relative_to(root).as_posix(),
        )
        routes = [compile_template(path, root) for path in files]

        logger.info("Compiled %d query template(s) from %s", len(routes), root.resolve())
        return cls(routes)

    def __iter__(self) -> Iterator[RouteDefinition]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)
