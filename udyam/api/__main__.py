"""Run the API with uvicorn.

uvicorn traps SIGINT/SIGTERM: it stops accepting connections, lets
in-flight requests finish, then runs the lifespan shutdown that closes
the database pool.
"""

from __future__ import annotations

import uvicorn

from udyam.api.app import create_app
from udyam.config.settings import AppSettings
from udyam.telemetry.log_setup import configure_logging


def main() -> None:
    settings = AppSettings()
    configure_logging(settings.api.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.api.log_level.lower(),
        timeout_graceful_shutdown=10,
    )


if __name__ == "__main__":
    main()
