"""Frontend — application lifespan (startup / shutdown hooks)."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI

log = structlog.get_logger()

ShutdownHook = Callable[[], Awaitable[None]]


def build_lifespan(
    *,
    platform: str,
    hostname: str,
    on_shutdown: Sequence[ShutdownHook] = (),
) -> Callable[[FastAPI], Any]:
    """Return a lifespan that logs startup and runs ``on_shutdown`` hooks."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("frontend starting up", platform=platform, hostname=hostname)

        yield

        log.info("frontend shutting down")
        for hook in on_shutdown:
            await hook()

    return lifespan
