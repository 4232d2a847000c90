"""Run the server: `python -m rqserve` (host, port and log level from settings)."""

import uvicorn

from rqserve.config import settings
from rqserve.logging_config import setup_logging


def main() -> None:
    # Configured before uvicorn imports the app, so compile-time logs are kept.
    setup_logging(settings.log_level)
    uvicorn.run(
        "rqserve.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
