"""Reusable liveness endpoint.

A single plain-text probe intended for frequent polling. Services register
it with the default route class so per-route instrumentation never counts it.
"""

from __future__ import annotations

from fastapi.responses import PlainTextResponse

HEALTH_PATH = "/healthz"
HEALTH_BODY = "ok"


async def liveness() -> PlainTextResponse:
    """Liveness probe: always 200 ``ok``."""
    return PlainTextResponse(HEALTH_BODY)
