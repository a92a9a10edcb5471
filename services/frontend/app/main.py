"""Frontend — entry points.

``main`` builds the server and serves it on the configured address;
``create_app`` is an application factory for ASGI servers
(``uvicorn app.main:create_app --factory``).
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI

from app.core.config import settings
from app.core.errors import StartupError
from app.core.platform import resolve_hostname
from app.server import new_server

from shared.logging import setup_logging
from shared.tracing import setup_tracing

log = structlog.get_logger()


def _setup_observability() -> None:
    setup_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        service_name=settings.service_name,
        static_fields={"hostname": resolve_hostname()},
    )
    setup_tracing(
        service_name=settings.service_name,
        environment=settings.environment,
        console_export=settings.otel_console_export,
    )


def create_app() -> FastAPI:
    _setup_observability()
    return new_server(settings).app


def main() -> None:
    _setup_observability()
    try:
        server = new_server(settings)
        server.run(settings.bind_address)
    except StartupError as exc:
        log.error("frontend_startup_failed", error=str(exc))
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
