"""
rqserve — Logging Configuration
=================================

What:  Configures the root logger once per process.
When:  From the app lifespan (uvicorn) or from `python -m rqserve` before the
       app module is imported, so template compilation logs are formatted too.
"""

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] rqserve.access: GET /people 200 12.3ms [a1b2c3d4] from 10.0.0.1
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
