#!/usr/bin/env python3
"""Serve the API with uvicorn.

Logfire and logging are configured before the app module is imported, so
errors raised while building the container are reported too.
"""

import sys

import logfire
import uvicorn

from taskboard.config import Settings
from taskboard.util.logging import setup_logging
from taskboard.util.observability import configure_logfire


def main() -> int:
    settings = Settings()
    configure_logfire(settings)
    setup_logging(settings)

    server = settings.server
    logfire.info(
        "Starting task board API",
        host=server.host,
        port=server.port,
        workers=server.workers,
        base_url=settings.base_url,
    )

    try:
        uvicorn.run(
            "taskboard.interface.api.app:app",
            host=server.host,
            port=server.port,
            workers=server.workers,
            proxy_headers=True,
            forwarded_allow_ips=server.forwarded_allow_ips,
            reload=settings.environment == "development",
            log_level="debug" if settings.debug else "info",
        )
    except Exception as e:
        logfire.error(
            "Application startup failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        raise

    return 0


if __name__ == "__main__":
    sys.exit(main())
